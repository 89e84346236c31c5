"""Main entry point with CLI."""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

from price_monitor.config import Config, STATE_DB, config
from price_monitor.display import decision_label, format_price, profit_impact, summary
from price_monitor.errors import DeleteSyncFailed, PriceMonitorError
from price_monitor.jobs.controller import ReconciliationController, create_controller
from price_monitor.jobs.seed import SeedRunner, read_seed_file
from price_monitor.logging_conf import setup_logging
from price_monitor.store.slot import DurableSlot

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Price Monitor")
    parser.add_argument(
        "--state-db",
        type=Path,
        default=STATE_DB,
        help=f"SQLite file holding the product state (default: {STATE_DB})",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Debug logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="Show products and their decisions")

    add = sub.add_parser("add", help="Enroll a product for monitoring")
    add.add_argument("name", help="Product name")
    add.add_argument("my_price", type=float, help="Current listed price")
    add.add_argument("min_price", type=float, help="Floor price")

    approve = sub.add_parser("approve", help="Approve the decision for a product")
    approve.add_argument("product_id")

    delete = sub.add_parser("delete", help="Delete products by id")
    delete.add_argument("product_ids", nargs="+")

    sub.add_parser("refresh", help="Replace local products with the platform's view")

    seed = sub.add_parser("seed", help="Enroll every product listed in a JSON file")
    seed.add_argument("file", type=Path)
    seed.add_argument(
        "--delay",
        type=float,
        default=config.SEED_DELAY,
        help=f"Seconds between enrollments (default: {config.SEED_DELAY})",
    )

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)

    return parser.parse_args(argv)


def print_products(controller: ReconciliationController) -> None:
    records = controller.store.records()
    for record in records:
        impact = profit_impact(record.my_price, record.competitor_price)
        impact_text = f"{impact:+.1f}%" if impact is not None else "n/a"
        print(
            f"{record.id}  {record.name}\n"
            f"    price {format_price(record.my_price)}  floor {format_price(record.floor_price)}  "
            f"{record.competitor_name} {format_price(record.competitor_price)} ({impact_text})\n"
            f"    {decision_label(record.decision)} [{record.status.value}]  {record.reasoning}"
        )
    stats = summary(records)
    print(f"{stats['total']} products, {stats['pending']} pending, {stats['approved']} approved")


async def run_command(args: argparse.Namespace) -> int:
    controller = create_controller(slot=DurableSlot(args.state_db))
    try:
        if args.command == "list":
            print_products(controller)
        elif args.command == "add":
            record = await controller.add(args.name, args.my_price, args.min_price)
            print(f"Added {record.name} as {record.id}")
        elif args.command == "approve":
            record = await controller.approve(args.product_id)
            print(f"Approved {record.name}")
        elif args.command == "delete":
            try:
                deleted = await controller.delete_selected(args.product_ids)
            except DeleteSyncFailed as e:
                logger.warning(str(e))
                deleted = e.removed
            print(f"Deleted {deleted} products")
        elif args.command == "refresh":
            await controller.refresh()
            print_products(controller)
        elif args.command == "seed":
            entries = await read_seed_file(args.file)
            result = await SeedRunner(controller.gateway, delay=args.delay).run(entries)
            return 0 if not result["failed"] else 1
        return 0
    except (PriceMonitorError, ValueError) as e:
        logger.error(str(e))
        return 1
    finally:
        await controller.gateway.aclose()


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging("DEBUG" if args.verbose else None)

    try:
        Config.validate()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    if args.command == "serve":
        import uvicorn
        uvicorn.run("price_monitor.api.main:app", host=args.host, port=args.port)
        return

    try:
        code = asyncio.run(run_command(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
