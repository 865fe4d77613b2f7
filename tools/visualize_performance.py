#!/usr/bin/env python3
"""
Generate performance visualization plots from benchmark results.
"""

import os
import sys
import json

import matplotlib
matplotlib.use('Agg')  # Non-interactive backend
import matplotlib.pyplot as plt


def load_results(json_file):
    """Load aggregated benchmark results written by wordfreq.benchmark."""
    with open(json_file, 'r') as f:
        return json.load(f)['aggregated']


def plot_shuffle_volume(aggregated, output_file):
    """Bar chart of records handed to the shuffle per configuration."""
    names = sorted(aggregated, key=lambda n: aggregated[n]['shuffle_records'])
    shuffle = [aggregated[n]['shuffle_records'] for n in names]
    colors = ['#4ECDC4' if aggregated[n]['use_combiner'] else '#FF6B6B' for n in names]

    fig, ax = plt.subplots(figsize=(12, 6))
    ax.barh(names, shuffle, color=colors)
    ax.set_xlabel('Shuffled records')
    ax.set_title('Shuffle Volume by Configuration')
    ax.grid(axis='x', alpha=0.3)

    distinct = max((row['output_records'] for row in aggregated.values()), default=0)
    if distinct:
        ax.axvline(x=distinct, color='black', linestyle='--', linewidth=1,
                   label=f'Distinct tokens ({distinct})')
        ax.legend()

    plt.tight_layout()
    plt.savefig(output_file, dpi=150)
    plt.close(fig)
    print(f"Saved plot to {output_file}")


def plot_runtime(aggregated, output_file):
    """Average runtime with standard deviation per configuration."""
    names = list(aggregated)
    runtimes = [aggregated[n]['avg_runtime'] for n in names]
    stds = [aggregated[n]['std_runtime'] for n in names]

    fig, ax = plt.subplots(figsize=(12, 6))
    ax.bar(names, runtimes, yerr=stds, capsize=5, color='#FFE66D')
    ax.set_ylabel('Runtime (seconds)')
    ax.set_title('Job Runtime by Configuration')
    ax.tick_params(axis='x', rotation=30)
    ax.grid(axis='y', alpha=0.3)

    plt.tight_layout()
    plt.savefig(output_file, dpi=150)
    plt.close(fig)
    print(f"Saved plot to {output_file}")


def generate_all(results_file, output_dir):
    """Write every plot for a results file, returning the created paths."""
    aggregated = load_results(results_file)
    os.makedirs(output_dir, exist_ok=True)

    outputs = [
        os.path.join(output_dir, 'shuffle_volume.png'),
        os.path.join(output_dir, 'runtime.png'),
    ]
    plot_shuffle_volume(aggregated, outputs[0])
    plot_runtime(aggregated, outputs[1])
    return outputs


def main():
    if len(sys.argv) < 2:
        print("Usage: python3 visualize_performance.py <results.json> [output_dir]")
        sys.exit(1)

    output_dir = sys.argv[2] if len(sys.argv) > 2 else 'benchmark_results/plots'
    print("Generating visualizations...")
    for path in generate_all(sys.argv[1], output_dir):
        print(f"  - {path}")


if __name__ == '__main__':
    main()
