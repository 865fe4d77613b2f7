#!/usr/bin/env python3
"""
Map Task Executor
Executes map tasks by reading an input split into a local aggregator,
partitioning the flushed partial counts by reduce task and optionally
combining them before the shuffle
"""

import time
import zlib
import logging
import threading
from collections import defaultdict
from concurrent.futures import CancelledError
from typing import Dict, Iterator, List, Optional, Tuple

from wordfreq.aggregator import LocalAggregator
from wordfreq.metrics import MetricsReporter, get_memory_usage
from wordfreq.reducer import combine
from wordfreq.tokenizer import Tokenizer

logger = logging.getLogger(__name__)


def partition_for(token: str, num_reduce_tasks: int) -> int:
    """Reduce partition of a token, stable across processes and runs"""
    return zlib.crc32(token.encode('utf-8')) % num_reduce_tasks


def read_split(input_path: str, start_offset: int, end_offset: int) -> Iterator[str]:
    """
    Yield the lines that start inside [start_offset, end_offset)

    A split that doesn't begin at offset 0 skips the line already owned by
    the previous split; the line crossing end_offset is read to its end.
    """
    with open(input_path, 'rb') as f:
        if start_offset > 0:
            f.seek(start_offset - 1)
            f.readline()
        while f.tell() < end_offset:
            line = f.readline()
            if not line:
                break
            yield line.decode('utf-8', errors='replace').rstrip('\r\n')


class MapExecutor:
    """Executes a single map task"""

    def __init__(self, task_id: int, input_path: str, start_offset: int,
                 end_offset: int, num_reduce_tasks: int, tokenizer: Tokenizer,
                 use_combiner: bool, job_id: str, flush_threshold: int = 0,
                 reporter: Optional[MetricsReporter] = None,
                 cancel_event: Optional[threading.Event] = None):
        """
        Initialize the map executor

        Args:
            task_id: Unique ID for this map task
            input_path: Path to input file
            start_offset: Byte offset where this task should start reading
            end_offset: Byte offset where this task should stop reading
            num_reduce_tasks: Number of reduce tasks (for partitioning)
            tokenizer: Tokenizer instance shared read-only by all tasks
            use_combiner: Whether to merge partial counts before the shuffle
            job_id: Unique job identifier
            flush_threshold: Flush early once this many distinct tokens are held (0 = never)
            reporter: Receives the aggregator counters
            cancel_event: Set by the job driver to abort the task
        """
        self.task_id = task_id
        self.input_path = input_path
        self.start_offset = start_offset
        self.end_offset = end_offset
        self.num_reduce_tasks = num_reduce_tasks
        self.use_combiner = use_combiner
        self.job_id = job_id
        self.flush_threshold = flush_threshold
        self.cancel_event = cancel_event
        self.aggregator = LocalAggregator(tokenizer, reporter)

    def execute(self) -> dict:
        """
        Execute the map task

        Returns:
            Dictionary with 'partitions' (partition_id -> records) and task statistics

        Raises:
            OSError: If the input split can't be read
            CancelledError: If the job driver aborted the task
        """
        start_time = time.time()
        logger.info(f"Map task {self.task_id}: Reading {self.input_path} "
                    f"[{self.start_offset}, {self.end_offset})")

        partitions: Dict[int, List[Tuple[str, int]]] = defaultdict(list)
        input_records = 0
        output_records = 0

        try:
            for line in read_split(self.input_path, self.start_offset, self.end_offset):
                if self.cancel_event is not None and self.cancel_event.is_set():
                    raise CancelledError(f"Map task {self.task_id} cancelled")
                self.aggregator.ingest(line)
                input_records += 1

                if self.flush_threshold and len(self.aggregator) >= self.flush_threshold:
                    output_records += self._flush_into(partitions)
                    self.aggregator.reset()

            output_records += self._flush_into(partitions)

        except Exception as e:
            self.aggregator.discard()
            logger.error(f"Map task {self.task_id} failed - Job: {self.job_id}. Error: {e}")
            raise

        combined_records = output_records
        if self.use_combiner:
            partitions = self._apply_combiner(partitions)
            combined_records = sum(len(records) for records in partitions.values())
            logger.info(f"Map task {self.task_id}: Combiner reduced {output_records} "
                        f"records to {combined_records}")

        execution_time = int((time.time() - start_time) * 1000)
        logger.info(f"Map task {self.task_id}: Processed {input_records} records, "
                    f"emitted {output_records} partial counts in {execution_time}ms")

        return {
            'task_id': self.task_id,
            'partitions': dict(partitions),
            'input_records': input_records,
            'output_records': output_records,
            'combined_records': combined_records,
            'memory_bytes': get_memory_usage(),
            'execution_time_ms': execution_time,
        }

    def _flush_into(self, partitions: Dict[int, List[Tuple[str, int]]]) -> int:
        """Flush the aggregator and route every record to its reduce partition"""
        records = self.aggregator.flush()
        for token, count in records:
            partitions[partition_for(token, self.num_reduce_tasks)].append((token, count))
        return len(records)

    def _apply_combiner(self, partitions: Dict[int, List[Tuple[str, int]]]) -> Dict[int, List[Tuple[str, int]]]:
        """
        Merge the partial counts of each reduce partition locally

        Only changes anything when the aggregator flushed more than once.
        """
        return {partition: combine(records) for partition, records in partitions.items()}
