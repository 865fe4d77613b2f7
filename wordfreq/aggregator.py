"""
Local Aggregator
Groups the tokens of one partition in memory and emits one partial count
per distinct token when flushed
"""

from collections import Counter
from typing import List, Optional, Tuple

from wordfreq.metrics import MetricsReporter, NullReporter, TokenCounter
from wordfreq.tokenizer import Tokenizer


class LocalAggregator:
    """Frequency multiset owned by a single partition"""

    def __init__(self, tokenizer: Tokenizer, reporter: Optional[MetricsReporter] = None):
        """
        Initialize the aggregator

        Args:
            tokenizer: Strategy used to split every ingested record
            reporter: Receives NUM_TOKENS / COUNT_SUM increments on flush
        """
        self.tokenizer = tokenizer
        self.reporter = reporter if reporter is not None else NullReporter()
        self.counts = Counter()
        self.flushed = False
        self.emitted_records = 0
        self.emitted_occurrences = 0

    def __len__(self):
        return len(self.counts)

    @property
    def occurrences(self) -> int:
        """Token occurrences currently held"""
        return sum(self.counts.values())

    def ingest(self, record: str):
        """
        Tokenize a record and count every token once

        Raises:
            RuntimeError: If the aggregator was flushed and not reset
        """
        if self.flushed:
            raise RuntimeError("Aggregator already flushed, call reset() before reusing it")
        self.counts.update(self.tokenizer.tokenize(record))

    def flush(self) -> List[Tuple[str, int]]:
        """
        Emit one (token, count) record per held token and exhaust the multiset

        Returns:
            Partial count records in first-seen order
        """
        records = list(self.counts.items())
        occurrences = sum(count for _, count in records)

        self.reporter.increment(TokenCounter.COUNT_SUM, occurrences)
        self.reporter.increment(TokenCounter.NUM_TOKENS, len(records))
        self.emitted_records += len(records)
        self.emitted_occurrences += occurrences

        self.counts = Counter()
        self.flushed = True
        return records

    def reset(self):
        """Start a fresh multiset after a flush"""
        self.counts = Counter()
        self.flushed = False

    def discard(self):
        """Drop held counts without emitting them (aborted partition)"""
        self.counts = Counter()
        self.flushed = True
