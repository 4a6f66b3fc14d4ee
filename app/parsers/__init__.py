"""
app/parsers package marker.
"""

from app.parsers.csv_stream import CSVParseError, iter_records, parse_csv_text, parse_stream

__all__ = [
    "CSVParseError",
    "iter_records",
    "parse_csv_text",
    "parse_stream",
]
