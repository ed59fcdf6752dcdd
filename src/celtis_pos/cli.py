from __future__ import annotations

import argparse
import json
import sys

from .calculator import quantize_currency
from .config import ConfigError, PosConfig, load_config
from .engine import TransactionEngine
from .exceptions import PosError, to_user_facing_error
from .logger import configure_logging
from .models import Sale, SaleStatus


def _sale_summary(engine: TransactionEngine, sale: Sale) -> dict:
    return {
        "id": sale.id,
        "cashier": engine.cashier_name(sale.cashier_id),
        "status": sale.status.value,
        "receipt_number": sale.receipt_number,
        "total": str(quantize_currency(sale.total)),
        "items": sum(item.quantity for item in sale.items),
        "completed_at": sale.completed_at.isoformat() if sale.completed_at else None,
    }


def _format_sale_line(engine: TransactionEngine, sale: Sale) -> str:
    summary = _sale_summary(engine, sale)
    return (
        f"{summary['receipt_number'] or '-':<18} {summary['status']:<10} "
        f"{summary['total']:>12} items={summary['items']} cashier={summary['cashier']} id={summary['id']}"
    )


def _emit(payload: object, output_format: str, text: str) -> None:
    if output_format == "json":
        print(json.dumps(payload, indent=2, default=str))
    else:
        print(text)


def run_history(engine: TransactionEngine, status: str | None, query: str | None, output_format: str) -> int:
    rows = engine.search_history(query, status)
    lines = [f"Sales history ({len(rows)} entries)"] + [_format_sale_line(engine, sale) for sale in rows]
    _emit([_sale_summary(engine, sale) for sale in rows], output_format, "\n".join(lines))
    return 0


def run_show(engine: TransactionEngine, sale_id: str) -> int:
    sale = engine.get_sale(sale_id)
    if sale is None:
        print(f"Sale {sale_id} not found", file=sys.stderr)
        return 1
    payload = sale.model_dump(mode="json")
    payload["cashier_name"] = engine.cashier_name(sale.cashier_id)
    print(json.dumps(payload, indent=2))
    return 0


def run_refund(engine: TransactionEngine, sale_id: str, reason: str) -> int:
    sale = engine.refund_sale(sale_id, reason)
    print(f"Refunded {sale.receipt_number or sale.id}")
    return 0


def run_report(engine: TransactionEngine, output_format: str) -> int:
    report = engine.report()
    payload = report.to_dict()
    lines = [
        "Sales Report",
        f"Revenue: {quantize_currency(report.total_revenue)} over {report.transactions} transactions",
        f"Average transaction: {quantize_currency(report.average_transaction)}",
        f"Today: {quantize_currency(report.today_revenue)} ({report.today_transactions})",
        f"This week: {quantize_currency(report.week_revenue)} ({report.week_transactions})",
        f"Items sold: {report.items_sold}",
        f"Refunds: {report.refund_count} totalling {quantize_currency(report.refund_amount)}",
    ]
    for row in report.top_products:
        lines.append(f"  {row.name}: {row.quantity} sold, {quantize_currency(row.revenue)}")
    _emit(payload, output_format, "\n".join(lines))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="celtis-pos", description="Celtis POS register tools")
    parser.add_argument("--env-file", default=None, help="Optional .env file to load")
    sub = parser.add_subparsers(dest="command", required=True)

    history = sub.add_parser("history", help="List finalized sales, most recent first")
    history.add_argument("--status", choices=[status.value for status in SaleStatus])
    history.add_argument("--search", default=None, help="Receipt number, customer or product name")
    history.add_argument("--format", choices=["json", "text"], default="text")

    show = sub.add_parser("show", help="Print one sale as JSON")
    show.add_argument("sale_id")

    refund = sub.add_parser("refund", help="Refund a completed sale")
    refund.add_argument("sale_id")
    refund.add_argument("--reason", required=True)

    report = sub.add_parser("report", help="Revenue, refunds and top products")
    report.add_argument("--format", choices=["json", "text"], default="text")
    return parser


def main(argv: list[str] | None = None, *, engine: TransactionEngine | None = None) -> int:
    args = build_parser().parse_args(argv)
    if engine is None:
        try:
            config: PosConfig = load_config(args.env_file)
            configure_logging(config.log_level)
            engine = TransactionEngine.from_config(config)
        except ConfigError as exc:
            print(str(exc), file=sys.stderr)
            return 2

    try:
        if args.command == "history":
            return run_history(engine, args.status, args.search, args.format)
        if args.command == "show":
            return run_show(engine, args.sale_id)
        if args.command == "refund":
            return run_refund(engine, args.sale_id, args.reason)
        return run_report(engine, args.format)
    except PosError as exc:
        error = to_user_facing_error(exc)
        print(f"{error.message} ({error.details})", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
