import argparse
import logging
import sys
from datetime import date as dt_date

from app.session import LedgerSession
from config import DATA_PATH
from domain.reports import LedgerReport
from domain.validation import month_prefix, parse_month, parse_ymd
from utils.excel_utils import report_to_xlsx
from utils.pdf_utils import report_to_pdf


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Personal ledger: recurring generation, reports and exports"
    )
    parser.add_argument("--data", default=DATA_PATH, help="Path to the CSV data file")
    parser.add_argument(
        "--today",
        type=parse_ymd,
        default=None,
        help="Override today's date (YYYY-MM-DD) for recurring generation",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)
    subparsers.add_parser("sync", help="Generate missing recurring records and save")

    report_parser = subparsers.add_parser("report", help="Print the monthly statement")
    report_parser.add_argument("--month", default=None, help="Month as YYYY-MM")

    subparsers.add_parser("budget", help="Print budget usage for the month")

    for name, help_text in (
        ("export-xlsx", "Export statement to XLSX"),
        ("export-pdf", "Export statement to PDF"),
    ):
        export_parser = subparsers.add_parser(name, help=help_text)
        export_parser.add_argument("path")
        export_parser.add_argument("--month", default=None, help="Month as YYYY-MM")

    return parser.parse_args(argv)


def _month(args: argparse.Namespace, today: dt_date) -> str:
    value = getattr(args, "month", None)
    if not value:
        return month_prefix(today)
    year, month = parse_month(value)
    return f"{year:04d}-{month:02d}"


def run(args: argparse.Namespace) -> int:
    today = args.today or dt_date.today()
    session = LedgerSession.for_csv(args.data, today_provider=lambda: today)
    session.open()
    try:
        snapshot = session.store.snapshot()
        report = LedgerReport(snapshot).month(_month(args, today))
        if args.command == "sync":
            print(f"[ok] {len(snapshot)} records in {args.data}")
        elif args.command == "report":
            print(report.title)
            print(report.as_table())
        elif args.command == "budget":
            print(report.budget_table())
        elif args.command == "export-xlsx":
            report_to_xlsx(report, args.path)
            print(f"[ok] Exported to {args.path}")
        elif args.command == "export-pdf":
            report_to_pdf(report, args.path)
            print(f"[ok] Exported to {args.path}")
    finally:
        saved = session.close()
    if not saved:
        print(f"[error] Data not saved: {session.scheduler.last_error}")
        return 1
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
