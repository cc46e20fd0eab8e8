"""
benchmark_labeler — label a product feed by price against market benchmarks.
"""

__version__ = "0.1.0"
