"""
Aggregation of wage records into precomputed partition artifacts.
"""

from .engine import AggregationEngine
from .pyramid import calculate_pyramid
from .statistics import calculate_summary, gini_coefficient, percentile
from .titles import analyze_titles, categorize_title

__all__ = [
    "AggregationEngine",
    "calculate_summary",
    "calculate_pyramid",
    "analyze_titles",
    "categorize_title",
    "gini_coefficient",
    "percentile",
]
