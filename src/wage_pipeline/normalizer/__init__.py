"""
Record normalizer: parses untrusted wage files into WageRecords.
"""

from .coercion import parse_employee_id, parse_pay, parse_text, parse_timestamp
from .file_reader import WageFile, discover_wage_files, partition_from_path, read_wage_file
from .record_normalizer import RecordNormalizer, parse_payload

__all__ = [
    "RecordNormalizer",
    "parse_payload",
    "parse_pay",
    "parse_employee_id",
    "parse_text",
    "parse_timestamp",
    "WageFile",
    "discover_wage_files",
    "partition_from_path",
    "read_wage_file",
]
