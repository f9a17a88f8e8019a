"""Export package for calculation results."""

from services.export.exporter import (
    export_to_csv,
    export_to_json,
    format_currency,
    format_number,
    generate_report,
    write_export,
)

__all__ = [
    "export_to_csv",
    "export_to_json",
    "format_currency",
    "format_number",
    "generate_report",
    "write_export",
]
