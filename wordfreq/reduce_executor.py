#!/usr/bin/env python3
"""
Reduce Task Executor
Executes reduce tasks by grouping the shuffled partial counts by token,
merging every group and writing the final counts
"""

import os
import time
import logging
from typing import Iterable, List, Tuple

from wordfreq.reducer import group_by_token, merge

logger = logging.getLogger(__name__)


def output_filename(partition_id: int) -> str:
    return f"part-r-{partition_id:05d}"


class ReduceExecutor:
    """Executes a single reduce task"""

    def __init__(self, task_id: int, partition_id: int,
                 partial_records: Iterable[List[Tuple[str, int]]],
                 output_path: str, job_id: str):
        """
        Initialize the reduce executor

        Args:
            task_id: Unique ID for this reduce task
            partition_id: Partition ID this reduce task is responsible for
            partial_records: One list of (token, count) records per map task
            output_path: Directory path where final output should be written
            job_id: Unique job identifier
        """
        self.task_id = task_id
        self.partition_id = partition_id
        self.partial_records = partial_records
        self.output_path = output_path
        self.job_id = job_id

    def execute(self) -> dict:
        """
        Execute the reduce task

        Returns:
            Dictionary with 'output_file', 'output_records', 'output_size_bytes'
            and 'execution_time_ms'
        """
        start_time = time.time()

        try:
            key_groups = self._group_partial_records()
            logger.info(f"Reduce task {self.task_id}: Grouped {len(key_groups)} unique tokens")

            # Sort by token for deterministic output
            results = [merge(token, key_groups[token]) for token in sorted(key_groups)]

            output_file = self._write_output(results)
            execution_time = int((time.time() - start_time) * 1000)
            logger.info(f"Reduce task {self.task_id}: Wrote {len(results)} counts "
                        f"to {output_file} in {execution_time}ms")

            return {
                'task_id': self.task_id,
                'output_file': output_file,
                'output_records': len(results),
                'output_size_bytes': os.path.getsize(output_file),
                'execution_time_ms': execution_time,
            }

        except Exception as e:
            logger.error(f"Reduce task {self.task_id} failed - Job: {self.job_id}. Error: {e}")
            raise

    def _group_partial_records(self) -> dict:
        """Group the records of every map task by token"""
        records = (record for task_records in self.partial_records for record in task_records)
        return group_by_token(records)

    def _write_output(self, results: List[Tuple[str, int]]) -> str:
        """
        Write final reduce output, renaming into place once complete

        Args:
            results: List of (token, count) tuples to write

        Returns:
            Path of the written part file
        """
        os.makedirs(self.output_path, exist_ok=True)

        output_file = os.path.join(self.output_path, output_filename(self.partition_id))
        temp_file = os.path.join(self.output_path, f".{output_filename(self.partition_id)}.tmp")

        with open(temp_file, 'w', encoding='utf-8', newline='\n') as f:
            for token, count in results:
                f.write(f"{token}\t{count}\n")

        os.replace(temp_file, output_file)
        return output_file
