"""
Unit tests for JobManager
Tests input resolution, split generation, job execution and status tracking
"""

import os
import shutil
import tempfile
import unittest
from unittest.mock import patch

from wordfreq.config import JobConfig
from wordfreq.errors import ConfigurationError
from wordfreq.job_manager import (
    SUCCESS_MARKER,
    JobManager,
    JobStatus,
    TaskStatus,
    resolve_input_paths,
)
from wordfreq.tokenizer import StandardTokenizer, Tokenizer, register_tokenizer


class TestResolveInputPaths(unittest.TestCase):
    """Tests for comma separated input resolution"""

    def setUp(self):
        self.temp_dir = tempfile.mkdtemp()
        self.file_a = self._write('a.txt', 'a')
        self.file_b = self._write('b.txt', 'b')

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def _write(self, name, content):
        path = os.path.join(self.temp_dir, name)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w') as f:
            f.write(content)
        return path

    def test_comma_separated_files(self):
        paths = resolve_input_paths(f"{self.file_a}, {self.file_b}")
        self.assertEqual(paths, [self.file_a, self.file_b])

    def test_directory_expands_to_visible_files(self):
        self._write('_SUCCESS', '')
        self._write('.hidden', 'x')
        self._write('sub/nested.txt', 'x')

        paths = resolve_input_paths(self.temp_dir)

        self.assertEqual(paths, [self.file_a, self.file_b])

    def test_glob_pattern(self):
        self._write('c.log', 'c')
        paths = resolve_input_paths(os.path.join(self.temp_dir, '*.txt'))
        self.assertEqual(paths, [self.file_a, self.file_b])

    def test_missing_path_raises(self):
        with self.assertRaises(FileNotFoundError):
            resolve_input_paths(f"{self.file_a},{self.temp_dir}/missing.txt")

    def test_unmatched_glob_raises(self):
        with self.assertRaises(FileNotFoundError):
            resolve_input_paths(os.path.join(self.temp_dir, '*.csv'))

    def test_empty_directory_resolves_to_no_files(self):
        empty = os.path.join(self.temp_dir, 'empty')
        os.makedirs(empty)
        self.assertEqual(resolve_input_paths(empty), [])

    def test_blank_input_list_raises(self):
        with self.assertRaises(FileNotFoundError):
            resolve_input_paths(" , ")



class TestJobManager(unittest.TestCase):
    """Unit tests for JobManager class"""

    def setUp(self):
        """Set up test fixtures"""
        self.temp_dir = tempfile.mkdtemp()
        self.input_path = os.path.join(self.temp_dir, 'input.txt')
        with open(self.input_path, 'w') as f:
            f.write("the cat sat on the mat\nthe cat ran\n")
        self.output_path = os.path.join(self.temp_dir, 'output')
        self.job_manager = JobManager()

    def tearDown(self):
        shutil.rmtree(self.temp_dir)

    def test_create_job(self):
        """Test job creation with correct attributes"""
        job = self.job_manager.create_job(self.input_path, self.output_path, JobConfig())

        self.assertEqual(job.input_paths, [self.input_path])
        self.assertEqual(job.output_path, self.output_path)
        self.assertIsInstance(job.tokenizer, StandardTokenizer)
        self.assertEqual(job.status, JobStatus.PENDING)
        self.assertEqual(len(job.map_tasks), 0)
        self.assertGreater(job.start_time, 0)
        self.assertIn(job.job_id, self.job_manager.jobs)

    def test_bad_tokenizer_fails_before_processing(self):
        with self.assertRaises(ConfigurationError):
            self.job_manager.create_job(self.input_path, self.output_path,
                                        JobConfig(tokenizer='does-not-exist'))
        self.assertEqual(self.job_manager.jobs, {})
        self.assertFalse(os.path.exists(self.output_path))

    def test_existing_output_directory_rejected(self):
        os.makedirs(self.output_path)
        with open(os.path.join(self.output_path, 'part-r-00000'), 'w') as f:
            f.write('old\t1\n')

        with self.assertRaises(FileExistsError):
            self.job_manager.create_job(self.input_path, self.output_path, JobConfig())

    def test_empty_existing_output_directory_allowed(self):
        os.makedirs(self.output_path)
        job = self.job_manager.create_job(self.input_path, self.output_path, JobConfig())
        self.assertTrue(self.job_manager.run(job).success)

    def test_generate_map_tasks_with_proper_offsets(self):
        """Test map task generation with correct file offsets"""
        with open(self.input_path, 'w') as f:
            f.write("a" * 1000)

        job = self.job_manager.create_job(self.input_path, self.output_path,
                                          JobConfig(split_size=300))
        map_tasks = self.job_manager.generate_map_tasks(job)

        self.assertEqual([(t.start_offset, t.end_offset) for t in map_tasks],
                         [(0, 300), (300, 600), (600, 900), (900, 1000)])
        self.assertEqual([t.task_id for t in map_tasks], [0, 1, 2, 3])
        for task in map_tasks:
            self.assertEqual(task.status, TaskStatus.PENDING)

    def test_empty_file_gets_one_split(self):
        open(self.input_path, 'w').close()
        job = self.job_manager.create_job(self.input_path, self.output_path, JobConfig())

        map_tasks = self.job_manager.generate_map_tasks(job)

        self.assertEqual(len(map_tasks), 1)
        self.assertEqual((map_tasks[0].start_offset, map_tasks[0].end_offset), (0, 0))

    def test_generate_reduce_tasks(self):
        job = self.job_manager.create_job(self.input_path, self.output_path,
                                          JobConfig(num_reduce_tasks=3))
        reduce_tasks = self.job_manager.generate_reduce_tasks(job)

        self.assertEqual([t.partition_id for t in reduce_tasks], [0, 1, 2])

    def test_run_completes_job(self):
        job = self.job_manager.create_job(self.input_path, self.output_path,
                                          JobConfig(tokenizer='whitespace'))
        result = self.job_manager.run(job)

        self.assertTrue(result.success)
        self.assertEqual(job.status, JobStatus.COMPLETED)
        self.assertTrue(os.path.exists(os.path.join(self.output_path, SUCCESS_MARKER)))
        self.assertEqual(len(result.output_files), 1)
        with open(result.output_files[0]) as f:
            self.assertEqual(f.read().splitlines(),
                             ['cat\t2', 'mat\t1', 'on\t1', 'ran\t1', 'sat\t1', 'the\t3'])

        status = self.job_manager.get_job_status(job.job_id)
        self.assertEqual(status['status'], 'completed')
        self.assertEqual(status['progress'], 100)
        self.assertEqual(status['counters'], {'num_tokens': 6, 'count_sum': 9})

    def test_metrics_recorded(self):
        metrics_file = os.path.join(self.temp_dir, 'metrics.json')
        job = self.job_manager.create_job(self.input_path, self.output_path,
                                          JobConfig(tokenizer='whitespace', split_size=10,
                                                    metrics_file=metrics_file))
        result = self.job_manager.run(job)

        metrics = result.metrics
        self.assertEqual(metrics.num_map_tasks, len(job.map_tasks))
        self.assertEqual(metrics.input_records, 2)
        self.assertEqual(metrics.output_records, 6)
        self.assertEqual(metrics.counters['count_sum'], 9)
        self.assertGreater(metrics.peak_memory_bytes, 0)
        self.assertGreaterEqual(metrics.total_time_seconds, 0)
        self.assertTrue(os.path.exists(metrics_file))

    def test_task_failure_fails_job(self):
        job = self.job_manager.create_job(self.input_path, self.output_path, JobConfig())

        with patch('wordfreq.map_executor.read_split', side_effect=OSError("unreadable")):
            result = self.job_manager.run(job)

        self.assertFalse(result.success)
        self.assertIn("unreadable", result.error_message)
        self.assertEqual(job.status, JobStatus.FAILED)
        self.assertTrue(all(t.status != TaskStatus.COMPLETED for t in job.map_tasks))
        self.assertFalse(os.path.exists(os.path.join(self.output_path, SUCCESS_MARKER)))
        self.assertEqual(self.job_manager.get_job_status(job.job_id)['status'], 'failed')

    def test_input_removed_before_run_fails_job(self):
        job = self.job_manager.create_job(self.input_path, self.output_path, JobConfig())
        os.remove(self.input_path)

        result = self.job_manager.run(job)

        self.assertFalse(result.success)
        self.assertEqual(job.status, JobStatus.FAILED)
        self.assertIsNotNone(result.metrics)
        self.assertEqual(self.job_manager.get_job_status(job.job_id)['status'], 'failed')

    def test_each_map_task_gets_its_own_tokenizer(self):
        seen = []

        @register_tokenizer('recording-whitespace')
        class RecordingTokenizer(Tokenizer):
            def tokenize(self, text):
                seen.append(id(self))
                return text.split()

        with open(self.input_path, 'w') as f:
            f.write("a b\nc d\ne f\ng h\n")
        job = self.job_manager.create_job(self.input_path, self.output_path,
                                          JobConfig(tokenizer='recording-whitespace',
                                                    split_size=4, num_workers=2))
        result = self.job_manager.run(job)

        self.assertTrue(result.success)
        self.assertEqual(len(job.map_tasks), 4)
        self.assertEqual(len(set(seen)), 4)
        self.assertNotIn(id(job.tokenizer), seen)

    def test_get_job_status_unknown_job(self):

        self.assertIsNone(self.job_manager.get_job_status('nope'))


if __name__ == '__main__':
    unittest.main()
