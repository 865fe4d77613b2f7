"""
Token frequency calculator: in-memory per-partition aggregation with a
merge step that doubles as combiner and reducer.
"""

__version__ = "0.1.0"
