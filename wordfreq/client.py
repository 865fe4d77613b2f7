"""
Command line client for running token frequency jobs.
"""

import sys
import json
import logging
import argparse

from wordfreq.config import build_config
from wordfreq.errors import ConfigurationError
from wordfreq.job_manager import JobManager
from wordfreq.tokenizer import available_tokenizers

USAGE = "Usage: <Comma separated input paths> <Output path>"

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='wordfreq',
        description='Token Frequency Calculator',
        usage='%(prog)s [options] <Comma separated input paths> <Output path>'
    )
    parser.add_argument('paths', nargs='*', help='Input paths and output directory')
    parser.add_argument('--tokenizer', help='Tokenizer name, module:Class or file.py:Class')
    parser.add_argument('--num-reduce', type=int, dest='num_reduce_tasks',
                        help='Number of reduce partitions (default 1)')
    parser.add_argument('--workers', type=int, dest='num_workers',
                        help='Number of concurrent tasks')
    parser.add_argument('--no-combiner', action='store_const', const=False,
                        dest='use_combiner', help='Disable the map side combiner')
    parser.add_argument('--split-size', type=int, help='Maximum split size in bytes')
    parser.add_argument('--flush-threshold', type=int,
                        help='Flush a map task early after this many distinct tokens')
    parser.add_argument('--config', help='JSON configuration file')
    parser.add_argument('--metrics-file', help='Write job metrics to this JSON file')
    parser.add_argument('--list-tokenizers', action='store_true',
                        help='List built-in tokenizers and exit')
    parser.add_argument('--verbose', '-v', action='store_true', help='Debug logging')
    return parser


def configure_logging(verbose: bool = False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def main(argv=None) -> int:
    """Parse arguments, run the job and return the process exit code."""
    args = build_parser().parse_args(argv)

    if args.list_tokenizers:
        for name in available_tokenizers():
            print(name)
        return 0

    if len(args.paths) != 2:
        print(USAGE)
        return 1

    configure_logging(args.verbose)
    inputs, output_path = args.paths

    overrides = {
        'tokenizer': args.tokenizer,
        'num_reduce_tasks': args.num_reduce_tasks,
        'num_workers': args.num_workers,
        'use_combiner': args.use_combiner,
        'split_size': args.split_size,
        'flush_threshold': args.flush_threshold,
        'metrics_file': args.metrics_file,
    }

    manager = JobManager()
    try:
        config = build_config(args.config, overrides)
        job = manager.create_job(inputs, output_path, config)
    except (ConfigurationError, FileNotFoundError, FileExistsError) as e:
        logger.error(f"Job not started: {e}")
        return 1

    result = manager.run(job)
    if not result.success:
        print(f"Job {result.job_id} failed: {result.error_message}", file=sys.stderr)
        return 1

    print(json.dumps(manager.get_job_status(result.job_id)['counters']))
    return 0


if __name__ == '__main__':
    sys.exit(main())
