"""
wage-pipeline: batch ingestion and aggregation of public-sector wage records.
"""

__version__ = "0.1.0"
