#!/usr/bin/env python
"""
Command-line CFDI calculator.

Usage:
    cfdi-calc subtotal 10000
    cfdi-calc algebraic 9280 --no-round-per-line
    cfdi-calc goal-seek 9280 --format json --output breakdown.json
    cfdi-calc goal-seek 9280 --lang es --vat-rate 0.08
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from core.config import get_settings
from core.logging import bind_context, clear_context, configure_from_settings, get_logger
from core.result import Failure, Success
from services.cfdi import CalculationOptions, CfdiCalculator, RateUpdate
from services.export import (
    export_to_csv,
    export_to_json,
    format_currency,
    generate_report,
    write_export,
)
from services.i18n import SUPPORTED_LANGUAGES, message_for, normalize_language, translate

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    from core.config import Settings
    from core.result import Result
    from services.cfdi import BreakdownResult, CalculationError, RateSet

logger = get_logger(__name__)

FORMATS = ("table", "json", "csv", "report")

_STEP_KEYS = {
    "subtotal": "calculation_from_subtotal",
    "algebraic": "algebraic_formula",
    "goal-seek": "starting_goal_seek",
}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="cfdi-calc",
        description="CFDI invoice breakdown: net amount <-> subtotal (VAT + withholdings)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--vat-rate", type=float, help="VAT rate, 0-1 (default 0.16)")
    common.add_argument(
        "--income-tax-rate", type=float, help="Income tax withheld rate, 0-1 (default 0.10)"
    )
    common.add_argument(
        "--vat-retention-fraction",
        type=float,
        help="Fraction of the VAT withheld, 0-1 (default 2/3)",
    )
    common.add_argument(
        "--no-round-per-line",
        action="store_true",
        help="Keep tax lines unrounded (continuous arithmetic)",
    )
    common.add_argument("--format", choices=FORMATS, default="table", help="Output format")
    common.add_argument("--output", type=Path, help="Write the output to this file")
    common.add_argument("--lang", choices=SUPPORTED_LANGUAGES, help="Message language")
    common.add_argument(
        "--steps", action="store_true", help="Print the calculation steps to stderr"
    )

    subtotal = subparsers.add_parser(
        "subtotal", parents=[common], help="Breakdown from a known subtotal"
    )
    subtotal.add_argument("amount", type=float, help="Invoice subtotal")

    algebraic = subparsers.add_parser(
        "algebraic", parents=[common], help="Subtotal from net amount, direct formula"
    )
    algebraic.add_argument("amount", type=float, help="Net amount received")

    seek = subparsers.add_parser(
        "goal-seek", parents=[common], help="Subtotal from net amount, respecting rounding"
    )
    seek.add_argument("amount", type=float, help="Net amount received")

    return parser


def _step(message: str) -> None:
    print(message, file=sys.stderr)


def _operation(
    calculator: CfdiCalculator,
    command: str,
) -> Callable[[float, CalculationOptions], Result[BreakdownResult, CalculationError]]:
    operations = {
        "subtotal": calculator.calculate_from_subtotal,
        "algebraic": calculator.calculate_from_net_algebraic,
        "goal-seek": calculator.goal_seek_subtotal,
    }
    return operations[command]


def render_table(result: BreakdownResult, language: str) -> str:
    """Render the breakdown as aligned label/amount lines."""
    rows = [
        (translate("subtotal_result", language), result.subtotal),
        (translate("vat_charged_result", language), result.vat),
        (translate("income_tax_withheld_result", language), result.income_tax_withheld),
        (translate("vat_retention_result", language), result.vat_retention),
        (translate("calculated_net_result", language), result.net_amount),
    ]
    width = max(len(label) for label, _ in rows)
    return "\n".join(f"{label:<{width}}  {format_currency(value):>16}" for label, value in rows)


def output_path(path: Path, output_format: str, settings: Settings) -> Path:
    """Resolve ``--output``; a directory gets the configured export filename."""
    if not path.is_dir():
        return path
    if output_format == "json":
        return path / settings.export.json_filename
    csv_name = Path(settings.export.csv_filename)
    if output_format == "csv":
        return path / csv_name
    return path / csv_name.with_suffix(".txt")


def render(
    result: BreakdownResult,
    rates: RateSet,
    output_format: str,
    language: str,
    settings: Settings,
) -> str:
    """Render a breakdown in the requested output format."""
    if output_format == "json":
        return export_to_json(
            result,
            rates,
            indent=settings.export.json_indent,
            version=settings.app_version,
        )
    if output_format == "csv":
        return export_to_csv(result)
    if output_format == "report":
        return generate_report(result, rates)
    return render_table(result, language)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the calculator; returns the process exit status."""
    load_dotenv(Path.cwd() / ".env")
    args = build_parser().parse_args(argv)

    settings = get_settings()
    configure_from_settings(settings)
    language = normalize_language(args.lang or settings.language)
    bind_context(command=args.command)

    try:
        calculator = CfdiCalculator()
        calculator.update_rates(
            RateUpdate(
                vat_rate=args.vat_rate,
                income_tax_rate=args.income_tax_rate,
                vat_retention_fraction=args.vat_retention_fraction,
            )
        )
        options = CalculationOptions(round_per_line=not args.no_round_per_line)

        if args.steps:
            _step(translate(_STEP_KEYS[args.command], language))
            if args.command == "algebraic":
                approximate = calculator.calculate_subtotal_from_net_algebraic(args.amount)
                if isinstance(approximate, Success):
                    label = translate("approximate_subtotal", language)
                    _step(f"{label} {format_currency(approximate.value)}")

        result = _operation(calculator, args.command)(args.amount, options)
        if isinstance(result, Failure):
            logger.info("Calculation rejected", error=str(result.error))
            print(message_for(result.error, language), file=sys.stderr)
            return 1

        if args.steps:
            if args.command == "goal-seek":
                _step(translate("goal_seek_result", language))
            _step(json.dumps(result.value.to_dict(), indent=2))

        content = render(
            result.value, calculator.get_rates(), args.format, language, settings
        )
        if args.output:
            path = write_export(content, output_path(args.output, args.format, settings))
            print(f"{translate('export_written', language)} {path}")
        else:
            print(content)
        return 0
    finally:
        clear_context()


if __name__ == "__main__":
    sys.exit(main())
