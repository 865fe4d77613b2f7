"""
Correctness validation tests
Tests that the job produces correct results for known inputs under every
combination of splitting, flushing, combining and reduce partitioning
"""

import pytest
import os
import random
from collections import Counter

from wordfreq.config import JobConfig
from wordfreq.job_manager import run_job
from wordfreq.tokenizer import LowercaseTokenizer, WhitespaceTokenizer


def write_corpus(path, lines):
    with open(path, 'w', encoding='utf-8') as f:
        f.write("\n".join(lines) + "\n")


@pytest.fixture
def corpus(temp_dir):
    """Random multi-file corpus and its expected whitespace token counts"""
    rng = random.Random(7)
    vocabulary = [f"w{i}" for i in range(60)] + ["the", "a", "naïve", "日本"]
    expected = Counter()
    paths = []
    for n in range(3):
        lines = []
        for _ in range(200):
            words = [rng.choice(vocabulary) for _ in range(rng.randint(0, 12))]
            expected.update(words)
            lines.append(" ".join(words))
        path = os.path.join(temp_dir, f"corpus-{n}.txt")
        write_corpus(path, lines)
        paths.append(path)
    return ",".join(paths), dict(expected)


@pytest.mark.integration
class TestWordCountCorrectness:
    """Tests for word count correctness"""

    def test_wordcount_produces_correct_counts(self, temp_dir, read_output):
        """Test that word count produces accurate word frequencies"""
        input_path = os.path.join(temp_dir, 'input.txt')
        write_corpus(input_path, ["the quick brown fox", "the lazy dog", "the fox"])
        output_path = os.path.join(temp_dir, 'output')

        result = run_job(input_path, output_path, JobConfig(tokenizer='whitespace'))

        assert result.success
        assert read_output(output_path) == {
            'the': 3, 'quick': 1, 'brown': 1, 'fox': 2, 'lazy': 1, 'dog': 1
        }

    @pytest.mark.parametrize('split_size', [7, 100, 4096, 32 * 1024 * 1024])
    @pytest.mark.parametrize('flush_threshold', [0, 1, 25])
    @pytest.mark.parametrize('use_combiner', [True, False])
    def test_result_independent_of_execution_settings(self, corpus, temp_dir, read_output,
                                                      split_size, flush_threshold, use_combiner):
        inputs, expected = corpus
        output_path = os.path.join(temp_dir, 'output')
        config = JobConfig(tokenizer='whitespace', split_size=split_size,
                           flush_threshold=flush_threshold, use_combiner=use_combiner,
                           num_reduce_tasks=3, num_workers=4)

        result = run_job(inputs, output_path, config)

        assert result.success, result.error_message
        assert read_output(output_path) == expected

    def test_counters_match_output(self, corpus, temp_dir, read_output):
        inputs, expected = corpus
        output_path = os.path.join(temp_dir, 'output')

        result = run_job(inputs, output_path, JobConfig(tokenizer='whitespace', split_size=500))

        counters = result.metrics.counters
        # Each split flushes once, so a token is counted once per split it occurs in
        assert counters['num_tokens'] == result.metrics.map_output_records
        assert counters['num_tokens'] >= len(expected)
        assert counters['count_sum'] == sum(expected.values())
        assert result.metrics.output_records == len(expected)

    def test_tokenizer_substitution(self, sample_input_file, sample_text, temp_dir, read_output):
        """Test swapping the tokenizer keeps the pipeline consistent"""
        outputs = {}
        for name, tokenizer in (('whitespace', WhitespaceTokenizer()),
                                ('lowercase', LowercaseTokenizer())):
            output_path = os.path.join(temp_dir, f'out-{name}')
            assert run_job(sample_input_file, output_path, JobConfig(tokenizer=name)).success

            counts = read_output(output_path)
            produced = sum(len(tokenizer.tokenize(line)) for line in sample_text.splitlines())
            assert sum(counts.values()) == produced
            outputs[name] = counts

        assert outputs['whitespace'] != outputs['lowercase']

    def test_custom_tokenizer_from_file(self, temp_dir, bigram_tokenizer_file, read_output):
        input_path = os.path.join(temp_dir, 'input.txt')
        write_corpus(input_path, ["The cat sat", "the cat ran"])
        output_path = os.path.join(temp_dir, 'output')

        result = run_job(input_path, output_path,
                         JobConfig(tokenizer=f'{bigram_tokenizer_file}:BigramTokenizer'))

        assert result.success
        assert read_output(output_path) == {'the cat': 2, 'cat sat': 1, 'cat ran': 1}
