#!/usr/bin/env python3
"""
Benchmark the token frequency job.
Runs the same input under several configurations (combiner on/off,
early flush thresholds) and records runtime and shuffle volume.
"""

import os
import sys
import json
import shutil
import logging
import argparse
import tempfile
from collections import defaultdict
from dataclasses import replace

import numpy as np

from wordfreq.config import JobConfig
from wordfreq.job_manager import run_job

logger = logging.getLogger(__name__)

# Benchmark configurations
BENCHMARKS = [
    {
        "name": "aggregate_partition",
        "use_combiner": True,
        "flush_threshold": 0,
        "description": "Flush once per split, combiner on"
    },
    {
        "name": "aggregate_partition_no_combiner",
        "use_combiner": False,
        "flush_threshold": 0,
        "description": "Flush once per split, combiner off"
    },
    {
        "name": "flush_1000",
        "use_combiner": True,
        "flush_threshold": 1000,
        "description": "Flush every 1000 distinct tokens, combiner on"
    },
    {
        "name": "flush_1000_no_combiner",
        "use_combiner": False,
        "flush_threshold": 1000,
        "description": "Flush every 1000 distinct tokens, combiner off"
    },
    {
        "name": "flush_1",
        "use_combiner": True,
        "flush_threshold": 1,
        "description": "Flush after every record, combiner on"
    },
    {
        "name": "flush_1_no_combiner",
        "use_combiner": False,
        "flush_threshold": 1,
        "description": "Flush after every record, combiner off"
    },
]


def run_benchmark(benchmark: dict, inputs: str, base_config: JobConfig, work_dir: str) -> dict:
    """Run one configuration once and return a flat result record."""
    config = replace(base_config,
                     use_combiner=benchmark["use_combiner"],
                     flush_threshold=benchmark["flush_threshold"],
                     metrics_file=None)
    output_path = tempfile.mkdtemp(prefix=f"{benchmark['name']}-", dir=work_dir)
    try:
        result = run_job(inputs, output_path, config)
    finally:
        shutil.rmtree(output_path, ignore_errors=True)

    record = {
        "benchmark_name": benchmark["name"],
        "description": benchmark["description"],
        "use_combiner": benchmark["use_combiner"],
        "flush_threshold": benchmark["flush_threshold"],
        "success": result.success,
        "error_message": result.error_message,
    }
    metrics = result.metrics
    if result.success and metrics is not None:
        record.update({
            "num_map_tasks": metrics.num_map_tasks,
            "num_reduce_tasks": metrics.num_reduce_tasks,
            "input_size_mb": metrics.input_size_bytes / (1024 ** 2),
            "total_runtime_seconds": metrics.total_time_seconds,
            "map_output_records": metrics.map_output_records,
            "shuffle_records": metrics.shuffle_records,
            "output_records": metrics.output_records,
            "peak_memory_mb": metrics.peak_memory_bytes / (1024 ** 2),
        })
    return record


def aggregate_runs(results):
    """
    Aggregate multiple runs of the same benchmark.
    Returns dict: benchmark_name -> {avg_runtime, std_runtime, shuffle_records, ...}
    """
    by_benchmark = defaultdict(list)

    for r in results:
        if r['success']:  # Only include successful runs
            by_benchmark[r['benchmark_name']].append(r)

    aggregated = {}
    for name, runs in by_benchmark.items():
        runtimes = [r['total_runtime_seconds'] for r in runs]
        first = runs[0]

        aggregated[name] = {
            'benchmark_name': name,
            'description': first['description'],
            'use_combiner': first['use_combiner'],
            'flush_threshold': first['flush_threshold'],
            'input_size_mb': first['input_size_mb'],
            'map_output_records': first['map_output_records'],
            'shuffle_records': first['shuffle_records'],
            'output_records': first['output_records'],
            'avg_runtime': float(np.mean(runtimes)),
            'std_runtime': float(np.std(runtimes)),
            'min_runtime': float(np.min(runtimes)),
            'max_runtime': float(np.max(runtimes)),
            'num_runs': len(runs)
        }

    return aggregated


def run_all(inputs: str, base_config: JobConfig, runs: int = 3, benchmarks=None, work_dir=None):
    """Run every benchmark configuration `runs` times."""
    benchmarks = BENCHMARKS if benchmarks is None else benchmarks
    owns_work_dir = work_dir is None
    work_dir = tempfile.mkdtemp(prefix="wordfreq-bench-") if owns_work_dir else work_dir

    results = []
    try:
        for benchmark in benchmarks:
            for run in range(runs):
                logger.info(f"Benchmark {benchmark['name']} run {run + 1}/{runs}")
                results.append(run_benchmark(benchmark, inputs, base_config, work_dir))
    finally:
        if owns_work_dir:
            shutil.rmtree(work_dir, ignore_errors=True)
    return results


def save_results(results, aggregated, results_file: str):
    """Save raw and aggregated results to a JSON file."""
    directory = os.path.dirname(results_file)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(results_file, 'w') as f:
        json.dump({'runs': results, 'aggregated': aggregated}, f, indent=2)


def main(argv=None):
    parser = argparse.ArgumentParser(description='Benchmark the token frequency job')
    parser.add_argument('inputs', help='Comma separated input paths')
    parser.add_argument('--runs', type=int, default=3, help='Runs per configuration')
    parser.add_argument('--tokenizer', default=JobConfig.tokenizer)
    parser.add_argument('--split-size', type=int, default=JobConfig.split_size)
    parser.add_argument('--workers', type=int, default=JobConfig.num_workers)
    parser.add_argument('--results', default='benchmark_results/results.json',
                        help='Where to write the JSON results')
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO,
                        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    base_config = JobConfig(tokenizer=args.tokenizer, split_size=args.split_size,
                            num_workers=args.workers).validate()
    results = run_all(args.inputs, base_config, runs=args.runs)
    aggregated = aggregate_runs(results)
    save_results(results, aggregated, args.results)

    for name, row in aggregated.items():
        print(f"{name:34s} {row['avg_runtime']:8.3f}s  shuffle={row['shuffle_records']}")
    print(f"Results saved to {args.results}")

    return 0 if all(r['success'] for r in results) else 1


if __name__ == '__main__':
    sys.exit(main())
