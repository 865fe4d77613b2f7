"""
Custom tokenizer example.
Emits adjacent word pairs instead of single words, so the job counts
bigram frequencies.

Run with:
    wordfreq --tokenizer examples/bigram_tokenizer.py:BigramTokenizer <input> <output>
"""

from wordfreq.tokenizer import StandardTokenizer, Tokenizer


class BigramTokenizer(Tokenizer):
    """Joins every pair of neighbouring lower-cased words with a space"""

    def __init__(self):
        self.words = StandardTokenizer()

    def tokenize(self, text):
        words = [word.lower() for word in self.words.tokenize(text)]
        return [f"{first} {second}" for first, second in zip(words, words[1:])]
