#!/usr/bin/env python3
"""
Job Manager for the token frequency job
Handles input resolution, split generation, running map and reduce tasks
on a local thread pool, the in-memory shuffle and job state tracking
"""

import os
import copy
import glob
import time
import uuid
import logging
import threading
from enum import Enum
from dataclasses import dataclass, field
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Dict, List, Optional, Tuple

from wordfreq.config import JobConfig
from wordfreq.map_executor import MapExecutor
from wordfreq.metrics import CounterSet, JobMetrics, MetricsCollector
from wordfreq.reduce_executor import ReduceExecutor
from wordfreq.tokenizer import Tokenizer, create_tokenizer

logger = logging.getLogger(__name__)

JOB_NAME = "Token Frequency Calculator"
SUCCESS_MARKER = "_SUCCESS"


class JobStatus(Enum):
    """Status of a token frequency job"""
    PENDING = "pending"
    MAP_PHASE = "map_phase"
    SHUFFLE_PHASE = "shuffle_phase"
    REDUCE_PHASE = "reduce_phase"
    COMPLETED = "completed"
    FAILED = "failed"


class TaskStatus(Enum):
    """Status of individual map or reduce tasks"""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class MapTask:
    """Represents a single map task (one input split)"""
    task_id: int
    input_path: str
    start_offset: int
    end_offset: int
    status: TaskStatus = TaskStatus.PENDING


@dataclass
class ReduceTask:
    """Represents a single reduce task"""
    task_id: int
    partition_id: int
    status: TaskStatus = TaskStatus.PENDING
    output_file: Optional[str] = None


@dataclass
class Job:
    """Represents a complete token frequency job"""
    job_id: str
    input_paths: List[str]
    output_path: str
    config: JobConfig
    tokenizer: Tokenizer
    status: JobStatus = JobStatus.PENDING
    map_tasks: List[MapTask] = field(default_factory=list)
    reduce_tasks: List[ReduceTask] = field(default_factory=list)
    counters: CounterSet = field(default_factory=CounterSet)
    start_time: float = 0.0
    end_time: float = 0.0
    error_message: str = ""


@dataclass
class JobResult:
    """Outcome of a finished job"""
    job_id: str
    success: bool
    output_files: List[str] = field(default_factory=list)
    metrics: Optional[JobMetrics] = None
    error_message: str = ""


def resolve_input_paths(inputs: str) -> List[str]:
    """
    Expand a comma separated list of files, directories and glob patterns

    Directories contribute every regular file whose name doesn't start
    with '_' or '.'. A directory holding no such file adds nothing, so
    the job runs with zero splits and writes empty output.

    Raises:
        FileNotFoundError: If an entry matches nothing or no entry is given
    """
    entries = [part.strip() for part in inputs.split(',') if part.strip()]
    if not entries:
        raise FileNotFoundError(f"No input paths given: '{inputs}'")

    resolved = []
    for entry in entries:
        matches = sorted(glob.glob(entry)) if any(c in entry for c in "*?[") else [entry]
        if not matches or not all(os.path.exists(m) for m in matches):
            raise FileNotFoundError(f"Input path does not exist: {entry}")

        for match in matches:
            if os.path.isdir(match):
                for name in sorted(os.listdir(match)):
                    path = os.path.join(match, name)
                    if not name.startswith(('_', '.')) and os.path.isfile(path):
                        resolved.append(path)
            else:
                resolved.append(match)

    return resolved


class JobManager:
    """Manages token frequency jobs and their lifecycle"""

    def __init__(self, collector: Optional[MetricsCollector] = None):
        self.jobs: Dict[str, Job] = {}
        self.collector = collector if collector is not None else MetricsCollector()
        self.lock = threading.Lock()

    def create_job(self, inputs: str, output_path: str, config: JobConfig) -> Job:
        """
        Create a new job, failing fast on configuration problems

        Raises:
            ConfigurationError: If the tokenizer can't be instantiated
            FileNotFoundError: If an input path doesn't exist
            FileExistsError: If the output directory exists and isn't empty
        """
        config.validate()
        tokenizer = create_tokenizer(config.tokenizer)
        input_paths = resolve_input_paths(inputs)

        if os.path.isdir(output_path) and os.listdir(output_path):
            raise FileExistsError(f"Output directory {output_path} already exists")
        if os.path.exists(output_path) and not os.path.isdir(output_path):
            raise FileExistsError(f"Output path {output_path} is not a directory")

        with self.lock:
            job = Job(
                job_id=str(uuid.uuid4()),
                input_paths=input_paths,
                output_path=output_path,
                config=config,
                tokenizer=tokenizer,
                start_time=time.time()
            )
            self.jobs[job.job_id] = job
            return job

    def generate_map_tasks(self, job: Job) -> List[MapTask]:
        """Cut every input file into splits of at most split_size bytes"""
        split_size = job.config.split_size
        map_tasks = []
        for input_path in job.input_paths:
            file_size = os.path.getsize(input_path)
            start = 0
            while True:
                end = min(start + split_size, file_size)
                map_tasks.append(MapTask(
                    task_id=len(map_tasks),
                    input_path=input_path,
                    start_offset=start,
                    end_offset=end
                ))
                start = end
                if start >= file_size:
                    break

        job.map_tasks = map_tasks
        return map_tasks

    def generate_reduce_tasks(self, job: Job) -> List[ReduceTask]:
        """Create one reduce task per configured reduce partition"""
        job.reduce_tasks = [ReduceTask(task_id=i, partition_id=i)
                            for i in range(job.config.num_reduce_tasks)]
        return job.reduce_tasks

    def run(self, job: Job) -> JobResult:
        """
        Execute all phases of a job

        Task failures are logged and turn into a failed JobResult.
        """
        config = job.config
        self.collector.start_job(job.job_id, 0, config.num_reduce_tasks,
                                 config.use_combiner, config.tokenizer, 0)

        try:
            self.generate_map_tasks(job)
            self.generate_reduce_tasks(job)
            input_size = sum(os.path.getsize(p) for p in job.input_paths)
            metrics = self.collector.get_metrics(job.job_id)
            metrics.num_map_tasks = len(job.map_tasks)
            metrics.input_size_bytes = input_size

            logger.info(f"{JOB_NAME} {job.job_id}: {len(job.map_tasks)} map tasks, "
                        f"{len(job.reduce_tasks)} reduce tasks, {input_size} input bytes")

            with ThreadPoolExecutor(max_workers=config.num_workers) as pool:
                self._set_status(job, JobStatus.MAP_PHASE)
                map_outputs = self._run_map_phase(job, pool)
                self.collector.end_map_phase(job.job_id)

                self._set_status(job, JobStatus.SHUFFLE_PHASE)
                shuffled = self._shuffle(job, map_outputs)

                self._set_status(job, JobStatus.REDUCE_PHASE)
                self.collector.start_reduce_phase(job.job_id)
                output_files = self._run_reduce_phase(job, pool, shuffled)

            with open(os.path.join(job.output_path, SUCCESS_MARKER), 'w'):
                pass
            self._finish(job, JobStatus.COMPLETED)

        except Exception as e:
            job.error_message = str(e)
            logger.error(f"Job {job.job_id} failed: {e}")
            self._finish(job, JobStatus.FAILED)
            return JobResult(job_id=job.job_id, success=False,
                             metrics=self.collector.get_metrics(job.job_id),
                             error_message=job.error_message)

        metrics = self.collector.get_metrics(job.job_id)
        if config.metrics_file:
            metrics.save_to_file(config.metrics_file)
        logger.info(f"Job {job.job_id} completed in {metrics.total_time_seconds:.2f}s: "
                    f"{metrics.output_records} distinct tokens, "
                    f"{job.counters.to_dict()}")
        return JobResult(job_id=job.job_id, success=True, output_files=output_files,
                         metrics=metrics)

    def _run_map_phase(self, job: Job, pool: ThreadPoolExecutor) -> List[dict]:
        """Run every map task; the first failure cancels the others"""
        cancel_event = threading.Event()
        futures = {}
        for task in job.map_tasks:
            executor = MapExecutor(
                task_id=task.task_id,
                input_path=task.input_path,
                start_offset=task.start_offset,
                end_offset=task.end_offset,
                num_reduce_tasks=job.config.num_reduce_tasks,
                tokenizer=copy.deepcopy(job.tokenizer),
                use_combiner=job.config.use_combiner,
                job_id=job.job_id,
                flush_threshold=job.config.flush_threshold,
                reporter=job.counters,
                cancel_event=cancel_event
            )
            task.status = TaskStatus.RUNNING
            futures[pool.submit(executor.execute)] = task

        outputs = []
        try:
            for future in as_completed(futures):
                task = futures[future]
                try:
                    output = future.result()
                except Exception:
                    task.status = TaskStatus.FAILED
                    raise
                task.status = TaskStatus.COMPLETED
                self.collector.record_map_task(job.job_id, output)
                outputs.append(output)
        except Exception:
            cancel_event.set()
            for future in futures:
                future.cancel()
            raise

        # Keep task order so the shuffle is deterministic
        outputs.sort(key=lambda output: output['task_id'])
        return outputs

    def _shuffle(self, job: Job, map_outputs: List[dict]) -> Dict[int, List[List[Tuple[str, int]]]]:
        """Collect the records of every map task per reduce partition"""
        shuffled = {task.partition_id: [] for task in job.reduce_tasks}
        for output in map_outputs:
            for partition_id, records in output['partitions'].items():
                shuffled[partition_id].append(records)
        return shuffled

    def _run_reduce_phase(self, job: Job, pool: ThreadPoolExecutor,
                          shuffled: Dict[int, List[List[Tuple[str, int]]]]) -> List[str]:
        futures = {}
        for task in job.reduce_tasks:
            executor = ReduceExecutor(
                task_id=task.task_id,
                partition_id=task.partition_id,
                partial_records=shuffled[task.partition_id],
                output_path=job.output_path,
                job_id=job.job_id
            )
            task.status = TaskStatus.RUNNING
            futures[pool.submit(executor.execute)] = task

        try:
            for future in as_completed(futures):
                task = futures[future]
                try:
                    output = future.result()
                except Exception:
                    task.status = TaskStatus.FAILED
                    raise
                task.status = TaskStatus.COMPLETED
                task.output_file = output['output_file']
                self.collector.record_reduce_task(job.job_id, output['output_records'],
                                                  output['output_size_bytes'])
        except Exception:
            for future in futures:
                future.cancel()
            raise

        return [task.output_file for task in job.reduce_tasks]

    def _set_status(self, job: Job, status: JobStatus):
        with self.lock:
            job.status = status
        logger.info(f"Job {job.job_id}: {status.value}")

    def _finish(self, job: Job, status: JobStatus):
        with self.lock:
            job.status = status
            job.end_time = time.time()
        self.collector.end_job(job.job_id, job.counters)

    def get_job_status(self, job_id: str) -> Optional[Dict]:
        """Get current job status with progress"""
        with self.lock:
            job = self.jobs.get(job_id)
            if not job:
                return None

            map_completed = sum(1 for t in job.map_tasks if t.status == TaskStatus.COMPLETED)
            reduce_completed = sum(1 for t in job.reduce_tasks if t.status == TaskStatus.COMPLETED)
            total_tasks = len(job.map_tasks) + len(job.reduce_tasks)
            progress = int((map_completed + reduce_completed) / total_tasks * 100) if total_tasks > 0 else 0

            return {
                'status': job.status.value,
                'progress': progress,
                'map_completed': map_completed,
                'map_total': len(job.map_tasks),
                'reduce_completed': reduce_completed,
                'reduce_total': len(job.reduce_tasks),
                'counters': job.counters.to_dict(),
                'error_message': job.error_message
            }


def run_job(inputs: str, output_path: str, config: Optional[JobConfig] = None) -> JobResult:
    """
    Create and run a job in one call

    Raises:
        ConfigurationError, FileNotFoundError, FileExistsError: Startup failures
    """
    manager = JobManager()
    job = manager.create_job(inputs, output_path, config if config is not None else JobConfig())
    return manager.run(job)
