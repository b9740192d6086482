import os

import uvicorn

from congestiq.check_providers import check_providers
from utils.logging_utils import get_tagged_logger, setup_logging

logger = get_tagged_logger(__name__, tag="server")


def maybe_check_providers() -> None:
    """
    Optionally run the provider credential preflight. Controlled by:
    - CONGESTIQ_SKIP_PROVIDER_CHECK=true to skip entirely (useful in dev/tests)
    """
    if os.getenv("CONGESTIQ_SKIP_PROVIDER_CHECK", "false").lower() in ("1", "true", "yes"):
        logger.info("Skipping provider preflight (CONGESTIQ_SKIP_PROVIDER_CHECK=true)")
        return

    try:
        check_providers()
    except SystemExit:
        logger.error("Provider preflight failed; set CONGESTIQ_SKIP_PROVIDER_CHECK=true to bypass during dev/tests.")
        raise


if __name__ == "__main__":
    setup_logging(level=os.getenv("LOG_LEVEL", "INFO"), job_name="congestiq")
    maybe_check_providers()

    uvicorn.run(
        "congestiq.main:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", 8000)),
        reload=False,
    )
