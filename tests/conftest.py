"""
Pytest configuration and shared fixtures
"""

import pytest
import os
import tempfile
import shutil

from wordfreq.tokenizer import StandardTokenizer, WhitespaceTokenizer

PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files"""
    dirpath = tempfile.mkdtemp()
    yield dirpath
    shutil.rmtree(dirpath)


@pytest.fixture
def sample_text():
    """Sample text for testing"""
    return """The quick brown fox jumps over the lazy dog.
The dog was really lazy.
The fox was very quick and brown.
Quick brown foxes are amazing animals.
Lazy dogs sleep all day."""


@pytest.fixture
def sample_input_file(temp_dir, sample_text):
    """Create a sample input file for testing"""
    filepath = os.path.join(temp_dir, 'input.txt')
    with open(filepath, 'w') as f:
        f.write(sample_text)
    return filepath


@pytest.fixture
def output_dir(temp_dir):
    """Output directory path that doesn't exist yet"""
    return os.path.join(temp_dir, 'output')


@pytest.fixture
def standard_tokenizer():
    return StandardTokenizer()


@pytest.fixture
def whitespace_tokenizer():
    return WhitespaceTokenizer()


@pytest.fixture
def bigram_tokenizer_file():
    """Path to the custom bigram tokenizer example"""
    return os.path.join(PROJECT_ROOT, 'examples', 'bigram_tokenizer.py')


def _read_output(output_dir):
    counts = {}
    for name in sorted(os.listdir(output_dir)):
        if not name.startswith('part-'):
            continue
        with open(os.path.join(output_dir, name), encoding='utf-8') as f:
            for line in f:
                token, count = line.rstrip('\n').split('\t')
                assert token not in counts, f"{token} written twice"
                counts[token] = int(count)
    return counts


@pytest.fixture
def read_output():
    """Reads every part file of a job output into a {token: count} dict"""
    return _read_output
