"""
Counters and performance metrics for token frequency jobs.
"""

import time
import json
import threading
from abc import ABC, abstractmethod
from enum import Enum
from dataclasses import dataclass, asdict, field
from typing import Dict, Optional

import psutil


class TokenCounter(Enum):
    """Counters reported by the local aggregators"""
    NUM_TOKENS = "num_tokens"   # distinct tokens emitted (one per record)
    COUNT_SUM = "count_sum"     # occurrences summed over emitted records


class MetricsReporter(ABC):
    """Receives counter increments from aggregators."""

    @abstractmethod
    def increment(self, counter: TokenCounter, amount: int = 1):
        """Add amount to the named counter."""


class NullReporter(MetricsReporter):
    """Reporter that drops every increment."""

    def increment(self, counter, amount=1):
        pass


class CounterSet(MetricsReporter):
    """Thread-safe counter values shared by all tasks of a job."""

    def __init__(self):
        self._values: Dict[TokenCounter, int] = {counter: 0 for counter in TokenCounter}
        self._lock = threading.Lock()

    def increment(self, counter, amount=1):
        with self._lock:
            self._values[counter] += amount

    def get(self, counter: TokenCounter) -> int:
        with self._lock:
            return self._values[counter]

    def to_dict(self) -> Dict[str, int]:
        with self._lock:
            return {counter.value: value for counter, value in self._values.items()}


def get_memory_usage() -> int:
    """Current resident set size of this process in bytes."""
    return psutil.Process().memory_info().rss


@dataclass
class JobMetrics:
    """Metrics for a single token frequency job execution."""

    job_id: str
    start_time: float
    end_time: float = 0.0
    map_phase_start: float = 0.0
    map_phase_end: float = 0.0
    reduce_phase_start: float = 0.0
    reduce_phase_end: float = 0.0
    num_map_tasks: int = 0
    num_reduce_tasks: int = 0
    use_combiner: bool = True
    tokenizer: str = ""
    input_size_bytes: int = 0
    input_records: int = 0
    map_output_records: int = 0
    combine_output_records: int = 0
    output_records: int = 0
    output_size_bytes: int = 0
    peak_memory_bytes: int = 0
    counters: Dict[str, int] = field(default_factory=dict)

    @property
    def total_time_seconds(self) -> float:
        """Total job execution time in seconds."""
        return self.end_time - self.start_time

    @property
    def map_phase_time_seconds(self) -> float:
        """Map phase execution time in seconds."""
        return self.map_phase_end - self.map_phase_start

    @property
    def reduce_phase_time_seconds(self) -> float:
        """Reduce phase execution time in seconds."""
        return self.reduce_phase_end - self.reduce_phase_start

    @property
    def shuffle_records(self) -> int:
        """Records handed to the shuffle, after the combiner if enabled."""
        return self.combine_output_records if self.use_combiner else self.map_output_records

    @property
    def combiner_reduction_ratio(self) -> float:
        """Fraction of map output records removed by the combiner."""
        if not self.use_combiner or self.map_output_records == 0:
            return 0.0
        return 1.0 - (self.combine_output_records / self.map_output_records)

    def to_dict(self) -> dict:
        """Convert metrics to dictionary, derived values included."""
        data = asdict(self)
        data['total_time_seconds'] = self.total_time_seconds
        data['map_phase_time_seconds'] = self.map_phase_time_seconds
        data['reduce_phase_time_seconds'] = self.reduce_phase_time_seconds
        data['shuffle_records'] = self.shuffle_records
        data['combiner_reduction_ratio'] = self.combiner_reduction_ratio
        return data

    def save_to_file(self, filepath: str):
        """Save metrics to JSON file."""
        with open(filepath, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


class MetricsCollector:
    """Collects and manages metrics for token frequency jobs."""

    def __init__(self):
        self.job_metrics: Dict[str, JobMetrics] = {}
        self._lock = threading.Lock()

    def start_job(self, job_id: str, num_map_tasks: int, num_reduce_tasks: int,
                  use_combiner: bool, tokenizer: str, input_size_bytes: int):
        """Initialize metrics tracking for a new job."""
        now = time.time()
        self.job_metrics[job_id] = JobMetrics(
            job_id=job_id,
            start_time=now,
            map_phase_start=now,
            num_map_tasks=num_map_tasks,
            num_reduce_tasks=num_reduce_tasks,
            use_combiner=use_combiner,
            tokenizer=tokenizer,
            input_size_bytes=input_size_bytes,
            peak_memory_bytes=get_memory_usage()
        )

    def record_map_task(self, job_id: str, stats: dict):
        """Fold the statistics of one finished map task into the job metrics."""
        with self._lock:
            metrics = self.job_metrics.get(job_id)
            if metrics is None:
                return
            metrics.input_records += stats.get('input_records', 0)
            metrics.map_output_records += stats.get('output_records', 0)
            metrics.combine_output_records += stats.get('combined_records', 0)
            metrics.peak_memory_bytes = max(metrics.peak_memory_bytes,
                                            stats.get('memory_bytes', 0))

    def end_map_phase(self, job_id: str):
        """Mark the end of the map phase."""
        if job_id in self.job_metrics:
            self.job_metrics[job_id].map_phase_end = time.time()

    def start_reduce_phase(self, job_id: str):
        """Mark the start of the reduce phase."""
        if job_id in self.job_metrics:
            self.job_metrics[job_id].reduce_phase_start = time.time()

    def record_reduce_task(self, job_id: str, output_records: int, output_size_bytes: int):
        """Add the output of one finished reduce task."""
        with self._lock:
            metrics = self.job_metrics.get(job_id)
            if metrics is None:
                return
            metrics.output_records += output_records
            metrics.output_size_bytes += output_size_bytes

    def end_job(self, job_id: str, counters: Optional[CounterSet] = None):
        """Mark job completion and snapshot the counters."""
        if job_id in self.job_metrics:
            metrics = self.job_metrics[job_id]
            now = time.time()
            if metrics.reduce_phase_start and not metrics.reduce_phase_end:
                metrics.reduce_phase_end = now
            metrics.end_time = now
            metrics.peak_memory_bytes = max(metrics.peak_memory_bytes, get_memory_usage())
            if counters is not None:
                metrics.counters = counters.to_dict()

    def get_metrics(self, job_id: str) -> Optional[JobMetrics]:
        """Retrieve metrics for a specific job."""
        return self.job_metrics.get(job_id)
