"""
CLI entrypoint for clearing expired password-reset tokens. Run from cron, e.g.:

  python -m app.purge_resets

Or hourly: 0 * * * * cd /path/to/orientavision && .venv/bin/python -m app.purge_resets
"""

import logging
import sys

from app.core.database import SessionLocal
from app.services.retention import run_reset_purge

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def main() -> int:
    """Run the purge: clear reset tokens whose expiry has passed."""
    db = SessionLocal()
    try:
        cleared = run_reset_purge(db)
        logger.info("Reset purge completed: tokens_cleared=%s", cleared)
        return 0
    except Exception as e:
        logger.exception("Reset purge failed: %s", e)
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
