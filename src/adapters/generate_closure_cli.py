"""CLI adapter to regenerate the derived rates of a user for one date."""

from datetime import date
import os

from src.adapters.cli_options import parse_date, read_user_id
from src.infrastructure.container import build_rate_engine
from src.infrastructure.logging.logger import get_app_logger, get_usage_logger


def main() -> None:
    """Run closure generation for LEDGER_USER_ID on CLOSURE_DATE."""
    logger = get_app_logger()
    user_id = read_user_id(logger)
    if user_id is None:
        return
    raw_date = os.getenv("CLOSURE_DATE")
    closure_date = parse_date(raw_date, logger)
    if raw_date and closure_date is None:
        return
    closure_date = closure_date or date.today()

    get_usage_logger().info(
        f"generate_closure user={user_id} date={closure_date}"
    )
    engine = build_rate_engine()
    result = engine.generate_closure(user_id, closure_date)

    print(
        f"Closure for {closure_date}: created={result.created_count}, "
        f"updated={result.updated_count}, deleted={result.deleted_count}, "
        f"derived={result.derived_count}"
    )
    for from_code, to_code in result.unresolved_pairs:
        print(f"Unresolved: {from_code}->{to_code}")


if __name__ == "__main__":  # pragma: no cover
    main()
