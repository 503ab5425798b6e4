#!/usr/bin/env python3
"""Create or update a tier transaction limit.

Usage:
    python scripts/set_tier_limit.py 1 24h withdrawal usdt 1000
    python scripts/set_tier_limit.py 1 24h withdrawal btc 0.5 --limit-currency btc
    python scripts/set_tier_limit.py 1 1mo withdrawal usdt -1 --limit-currency xrp

Amount -1 blocks the currency, 0 removes the cap.
"""

import argparse
import asyncio
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()

from kitwallet.db.database import close_db, get_db, init_db
from kitwallet.db.repository import KitRepository
from kitwallet.wallet.limits import DEFAULT_LIMIT_CURRENCY, LimitPeriod, TransactionType


async def set_limit(args: argparse.Namespace) -> None:
    await init_db()
    try:
        async with get_db() as session:
            repo = KitRepository(session)
            row = await repo.set_tier_limit(
                tier=args.tier,
                period=LimitPeriod(args.period),
                type=TransactionType(args.type),
                currency=args.currency.lower(),
                amount=Decimal(args.amount),
                limit_currency=args.limit_currency.lower(),
            )
            print(
                f"Tier {row.tier} {row.period} {row.type} limit for "
                f"{row.limit_currency}: {row.amount} {row.currency}"
            )
    finally:
        await close_db()


def main():
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("tier", type=int)
    parser.add_argument("period", choices=[p.value for p in LimitPeriod])
    parser.add_argument("type", choices=[t.value for t in TransactionType])
    parser.add_argument("currency", help="Currency the amount is expressed in")
    parser.add_argument("amount", help="Cap, -1 to block, 0 for unlimited")
    parser.add_argument(
        "--limit-currency",
        default=DEFAULT_LIMIT_CURRENCY,
        help="Currency with its own limit, or 'default' for the shared bucket",
    )
    asyncio.run(set_limit(parser.parse_args()))


if __name__ == "__main__":
    main()
