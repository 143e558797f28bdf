"""CLI adapter pulling rates from the external feed for one user."""

import os

from src.adapters.cli_options import parse_flag, read_user_id
from src.domain.errors import UpstreamFeedError
from src.infrastructure.container import build_rate_engine
from src.infrastructure.logging.logger import get_app_logger, get_usage_logger


def main() -> None:
    """Refresh fetched rates for LEDGER_USER_ID, honouring FORCE_REFRESH."""
    logger = get_app_logger()
    user_id = read_user_id(logger)
    if user_id is None:
        return
    force = parse_flag(os.getenv("FORCE_REFRESH"))

    get_usage_logger().info(f"refresh_rates user={user_id} force={force}")
    engine = build_rate_engine()
    try:
        result = engine.refresh_from_feed(user_id, force=force)
    except UpstreamFeedError as exc:
        logger.error(f"Rate refresh failed ({exc.code}): {exc}")
        print(f"Rate refresh failed: {exc.code}")
        return

    if result.skipped:
        print(f"Rate refresh skipped: {result.skip_reason}")
        return
    print(
        f"Updated {result.updated_count} rates for {result.base_currency} "
        f"on {result.effective_date}."
    )
    if result.skipped_currencies:
        print("Not quoted: " + ", ".join(result.skipped_currencies))
    if result.closure is not None:
        print(
            f"Closure: created={result.closure.created_count}, "
            f"updated={result.closure.updated_count}, "
            f"deleted={result.closure.deleted_count}"
        )


if __name__ == "__main__":  # pragma: no cover
    main()
