"""CLI adapter listing active currencies without a rate into the base."""

import os

from src.adapters.cli_options import parse_date, read_user_id
from src.infrastructure.container import build_rate_engine
from src.infrastructure.logging.logger import get_app_logger, get_usage_logger


def main() -> None:
    """Print the missing (currency, base) pairs for LEDGER_USER_ID."""
    logger = get_app_logger()
    user_id = read_user_id(logger)
    if user_id is None:
        return
    as_of = parse_date(os.getenv("CLOSURE_DATE"), logger)

    get_usage_logger().info(f"find_gaps user={user_id} date={as_of}")
    engine = build_rate_engine()
    gaps = engine.find_gaps(user_id, as_of)

    if not gaps:
        print("All active currencies convert to the base currency.")
        return
    print(f"Missing rates ({len(gaps)}):")
    for gap in gaps:
        print(
            f"{gap.from_currency.code} -> {gap.to_currency.code} "
            f"({gap.from_currency.symbol} to {gap.to_currency.symbol})"
        )


if __name__ == "__main__":  # pragma: no cover
    main()
