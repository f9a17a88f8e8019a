"""Export of calculation results as JSON, CSV and a plain-text report."""

from __future__ import annotations

import csv
import io
import json
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING

from core.logging import get_logger

if TYPE_CHECKING:
    from services.cfdi.types import BreakdownResult, RateSet

logger = get_logger(__name__)

CSV_HEADER = ("Concept", "Value")


def _now(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now(UTC)


def _iso_timestamp(moment: datetime) -> str:
    """ISO-8601 in UTC with millisecond precision and a ``Z`` suffix."""
    return moment.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_number(value: float, decimals: int = 2) -> str:
    """Format with thousand separators, e.g. ``1,234.50``."""
    return f"{value:,.{decimals}f}"


def format_currency(value: float) -> str:
    """Format as Mexican pesos, e.g. ``$9,280.00`` or ``-$1.00``."""
    sign = "-" if value < 0 else ""
    return f"{sign}${format_number(abs(value))}"


def export_to_json(
    result: BreakdownResult,
    rates: RateSet,
    *,
    now: datetime | None = None,
    indent: int = 2,
    version: str = "1.0.0",
) -> str:
    """
    Serialize a breakdown and the rates it was computed with.

    Args:
        result: Breakdown to export.
        rates: Rates used for the breakdown.
        now: Export time (default: current UTC time).
        indent: JSON indentation.
        version: Application version recorded in the metadata.

    Returns:
        The JSON document.
    """
    moment = _now(now)
    data = {
        "timestamp": _iso_timestamp(moment),
        "calculation": {
            "subtotal": result.subtotal,
            "vat": result.vat,
            "incomeTaxWithheld": result.income_tax_withheld,
            "vatRetention": result.vat_retention,
            "netAmount": result.net_amount,
            "method": result.calculation_method.value,
        },
        "rates": rates.to_dict(),
        "metadata": {
            "version": version,
            "exportedAt": moment.strftime("%m/%d/%Y, %I:%M:%S %p"),
        },
    }
    return json.dumps(data, indent=indent, ensure_ascii=False)


def export_to_csv(result: BreakdownResult) -> str:
    """
    Serialize a breakdown as a two-column ``Concept,Value`` CSV.

    Values always carry exactly two decimals; lines end with ``\\n`` and the
    last row has no trailing newline.
    """
    rows = [
        ("Subtotal", result.subtotal),
        ("VAT", result.vat),
        ("Income Tax Withheld", result.income_tax_withheld),
        ("VAT Retention", result.vat_retention),
        ("Net Amount", result.net_amount),
    ]
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    writer.writerows((concept, f"{value:.2f}") for concept, value in rows)
    return buffer.getvalue().rstrip("\n")


def generate_report(
    result: BreakdownResult,
    rates: RateSet,
    *,
    now: datetime | None = None,
) -> str:
    """Render a human-readable calculation report."""
    moment = _now(now)
    vat_pct = rates.vat_rate * 100
    isr_pct = rates.income_tax_rate * 100
    retention_pct = rates.vat_retention_fraction * 100

    lines = [
        "=== CFDI CALCULATION REPORT ===",
        "",
        f"Date: {moment.strftime('%m/%d/%Y, %I:%M:%S %p')}",
        f"Method: {result.calculation_method.value}",
        "",
        "--- BREAKDOWN ---",
        f"Subtotal: ${result.subtotal:.2f}",
        f"VAT ({vat_pct:.1f}%): ${result.vat:.2f}",
        f"Income Tax Withheld ({isr_pct:.1f}%): ${result.income_tax_withheld:.2f}",
        f"VAT Retention ({retention_pct:.2f}%): ${result.vat_retention:.2f}",
        f"Net Amount: ${result.net_amount:.2f}",
        "",
        "--- USED RATES ---",
        f"VAT: {vat_pct:.1f}%",
        f"Income Tax Withheld: {isr_pct:.1f}%",
        f"VAT Retention Fraction: {retention_pct:.2f}%",
        "",
        "=== END OF REPORT ===",
    ]
    return "\n".join(lines)


def write_export(content: str, path: str | Path) -> Path:
    """
    Write an export to disk, creating parent directories as needed.

    Returns:
        The path written.
    """
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")
    logger.info("Export written", path=str(target), size=len(content))
    return target
