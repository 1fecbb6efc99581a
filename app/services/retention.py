"""Reset-token retention: clear password-reset pairs whose expiry has passed."""

import logging
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from app.services import credential_store

logger = logging.getLogger(__name__)


def run_reset_purge(session: Session, now: datetime | None = None) -> int:
    """
    Clear expired reset tokens (hash and expiry together). Returns the number of accounts touched.

    Expired tokens are already unusable; this only keeps stale digests out of the table.
    Idempotent: safe to run repeatedly.
    """
    cutoff = now or datetime.now(UTC)
    cleared = credential_store.purge_expired_reset_tokens(session, cutoff)
    session.commit()

    if cleared > 0:
        logger.info(
            "Reset purge run: cutoff=%s, tokens_cleared=%s",
            cutoff.isoformat(),
            cleared,
        )
    return cleared
