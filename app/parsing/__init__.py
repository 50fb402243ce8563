"""
app/parsing package marker.
"""

from app.parsing.consumption_csv import ConsumptionCSVParser, CSVFormatError, parse_decimal

__all__ = [
    "ConsumptionCSVParser",
    "CSVFormatError",
    "parse_decimal",
]
