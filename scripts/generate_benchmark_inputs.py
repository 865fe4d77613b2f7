#!/usr/bin/env python3
"""
Generate benchmark input files with Zipf distributed word frequencies.
"""

import sys
from pathlib import Path

import numpy as np

# Configuration
INPUT_DIR = Path("benchmark_inputs")

# Target sizes (approximate)
TARGETS = [
    ("corpus_small.txt", 64 * 1024),          # ~64KB
    ("corpus_medium.txt", 1024 * 1024),       # ~1MB
    ("corpus_large.txt", 10 * 1024 * 1024),   # ~10MB
]

WORDS_PER_LINE = 12


def make_vocabulary(size: int):
    """Synthetic words w0 .. w{size-1}"""
    return [f"w{i}" for i in range(size)]


def generate_file(output_path: Path, target_size: int, vocabulary_size: int = 50000,
                  zipf_exponent: float = 1.2, seed: int = 0) -> int:
    """
    Write lines of Zipf distributed words until target_size bytes are reached.

    Args:
        output_path: Path where the output file should be written
        target_size: Target file size in bytes
        vocabulary_size: Number of distinct words to draw from
        zipf_exponent: Zipf distribution parameter (> 1)
        seed: Random seed, same seed gives the same file

    Returns:
        Actual size of the written file
    """
    print(f"Generating {output_path.name} (target: {target_size / (1024*1024):.2f} MB)...")

    rng = np.random.default_rng(seed)
    vocabulary = make_vocabulary(vocabulary_size)
    written = 0

    with open(output_path, 'w', encoding='utf-8') as f:
        while written < target_size:
            ranks = rng.zipf(zipf_exponent, size=WORDS_PER_LINE * 256)
            ranks = ranks[ranks <= vocabulary_size] - 1
            for start in range(0, len(ranks) - WORDS_PER_LINE + 1, WORDS_PER_LINE):
                line = " ".join(vocabulary[r] for r in ranks[start:start + WORDS_PER_LINE]) + "\n"
                f.write(line)
                written += len(line)
                if written >= target_size:
                    break

    actual_size = output_path.stat().st_size
    print(f"  Created: {output_path.name} ({actual_size / (1024*1024):.2f} MB)")
    return actual_size


def main():
    """Generate all benchmark input files."""
    INPUT_DIR.mkdir(parents=True, exist_ok=True)

    total_size = 0
    for seed, (filename, target_size) in enumerate(TARGETS):
        output_path = INPUT_DIR / filename

        # Skip if file already exists and is approximately the right size
        if output_path.exists():
            existing_size = output_path.stat().st_size
            if abs(existing_size - target_size) < target_size * 0.1:  # Within 10%
                print(f"  Skipping {filename} (already exists, size: {existing_size / (1024*1024):.2f} MB)")
                total_size += existing_size
                continue

        total_size += generate_file(output_path, target_size, seed=seed)

    print(f"Total size: {total_size / (1024*1024):.2f} MB in {INPUT_DIR}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
