"""
Rebuild the student_fee_balances cache for one term from the fee structures and Verified payments.

Idempotent: running it twice produces the same rows.
Usage: python -m app.scripts.recompute_balances --term "First Term" --academic-year 2024/2025
"""

import argparse
import asyncio
import sys

from app.api.v1.balances.service import recompute_term_balances
from app.core.exceptions import ServiceError
from app.db.session import AsyncSessionLocal


async def recompute_balances(term: str, academic_year: str) -> int:
    async with AsyncSessionLocal() as session:
        return await recompute_term_balances(session, term, academic_year)


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.strip().splitlines()[0])
    parser.add_argument("--term", required=True, help='e.g. "First Term"')
    parser.add_argument("--academic-year", required=True, help="e.g. 2024/2025")
    args = parser.parse_args()
    try:
        count = asyncio.run(recompute_balances(args.term, args.academic_year))
    except ServiceError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        sys.exit(1)
    print(f"Done. Rebuilt {count} balance(s) for {args.term} {args.academic_year}.")


if __name__ == "__main__":
    main()
