"""Command-line interface for the lending platform."""
from __future__ import annotations

import argparse
import asyncio
import sys
from typing import Any

import yaml

from .config import load_config
from .errors import PlatformError
from .logging_setup import configure_logging
from .models import to_record
from .services import LendingPlatform


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="kale-lend",
        description="KALE staking and XLM-collateralised lending",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("init", help="Initialize the platform from config")

    stake = sub.add_parser("stake", help="Stake KALE")
    stake.add_argument("user")
    stake.add_argument("amount", type=int)
    stake.add_argument("--auto-adjust", action="store_true")
    stake.add_argument(
        "--threshold", type=int, default=10, help="Rebalance trigger in percent"
    )

    borrow = sub.add_parser("borrow", help="Borrow KALE against XLM collateral")
    borrow.add_argument("user")
    borrow.add_argument("collateral", type=int)
    borrow.add_argument("amount", type=int)

    repay = sub.add_parser("repay", help="Repay a KALE loan")
    repay.add_argument("user")
    repay.add_argument("amount", type=int)

    claim = sub.add_parser("claim", help="Claim staking rewards")
    claim.add_argument("user")

    adjust = sub.add_parser("adjust", help="Run the price-driven stake rebalance")
    adjust.add_argument("user")

    sub.add_parser("price", help="Print the current KALE price")

    show = sub.add_parser("show", help="Print a stored record")
    show.add_argument("record", choices=["state", "yield", "stake", "loan"])
    show.add_argument("user", nargs="?", default=None)

    set_config = sub.add_parser("set-config", help="Update platform settings (admin)")
    set_config.add_argument("caller")
    set_config.add_argument("--staking-apy", type=int, default=None)
    set_config.add_argument("--borrowing-apy", type=int, default=None)
    set_config.add_argument("--fee", type=int, default=None)
    set_config.add_argument("--threshold", type=int, default=None)
    activity = set_config.add_mutually_exclusive_group()
    activity.add_argument("--active", dest="is_active", action="store_true", default=None)
    activity.add_argument("--inactive", dest="is_active", action="store_false")

    return parser


def _dump(record: Any) -> None:
    print(yaml.safe_dump(to_record(record), sort_keys=False).rstrip())


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    config = load_config(args.config)
    platform = LendingPlatform.from_config(config)

    if args.command == "init":
        cfg = config.platform
        await platform.initialize(
            cfg.admin,
            cfg.kale_token,
            cfg.xlm_token,
            cfg.oracle,
            cfg.staking_apy_bps,
            cfg.borrowing_apy_bps,
            cfg.platform_fee_bps,
            cfg.liquidation_threshold_bps,
        )
    elif args.command == "stake":
        await platform.stake(args.user, args.amount, args.auto_adjust, args.threshold)
    elif args.command == "borrow":
        await platform.borrow(args.user, args.collateral, args.amount)
    elif args.command == "repay":
        print(await platform.repay(args.user, args.amount))
    elif args.command == "claim":
        print(await platform.claim(args.user))
    elif args.command == "adjust":
        print("adjusted" if await platform.check_adjustment(args.user) else "unchanged")
    elif args.command == "price":
        print(await platform.get_current_price())
    elif args.command == "show":
        if args.record == "state":
            _dump(platform.get_platform_state())
        elif args.record == "yield":
            _dump(platform.get_yield_pool())
        elif args.user is None:
            raise SystemExit(f"show {args.record} requires a user")
        elif args.record == "stake":
            _dump(platform.get_staking_position(args.user))
        else:
            _dump(platform.get_borrowing_position(args.user))
    elif args.command == "set-config":
        await platform.update_config(
            args.caller,
            staking_apy=args.staking_apy,
            borrowing_apy=args.borrowing_apy,
            platform_fee_rate=args.fee,
            liquidation_threshold=args.threshold,
            is_active=args.is_active,
        )
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    configure_logging(args.log_level)
    try:
        asyncio.run(_run(args))
    except PlatformError as e:
        print(f"{e.kind}: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
