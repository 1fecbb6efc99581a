"""Unit and integration tests for reset-token retention: run_reset_purge."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.models import Base, User
from app.services.retention import run_reset_purge


class TestResetPurgeNothingExpired(unittest.TestCase):
    """When no reset token is past its expiry, run_reset_purge returns 0 and still commits."""

    def test_returns_zero(self) -> None:
        session = MagicMock()
        session.query.return_value.filter.return_value.update.return_value = 0
        self.assertEqual(run_reset_purge(session), 0)
        session.commit.assert_called_once()


class TestResetPurgeClearsExpired(unittest.TestCase):
    """When tokens are expired, run_reset_purge returns the number of accounts cleared."""

    def test_returns_count(self) -> None:
        session = MagicMock()
        session.query.return_value.filter.return_value.update.return_value = 3
        self.assertEqual(run_reset_purge(session), 3)
        session.add.assert_not_called()
        session.commit.assert_called_once()


class TestResetPurgeIntegration(unittest.TestCase):
    """Against in-memory SQLite: only expired pairs are cleared, live ones survive."""

    def setUp(self) -> None:
        self.engine = create_engine(
            "sqlite://",
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
        Base.metadata.create_all(self.engine)
        self.db = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)()

    def tearDown(self) -> None:
        self.db.close()
        self.engine.dispose()

    def test_purge_against_real_db(self) -> None:
        now = datetime.now(UTC)
        self.db.add_all(
            [
                User(
                    username="stale",
                    password_hash="x",
                    reset_token_hash="a" * 64,
                    reset_token_expires=now - timedelta(minutes=5),
                ),
                User(
                    username="live",
                    password_hash="x",
                    reset_token_hash="b" * 64,
                    reset_token_expires=now + timedelta(minutes=30),
                ),
                User(username="idle", password_hash="x"),
            ]
        )
        self.db.commit()

        self.assertEqual(run_reset_purge(self.db, now), 1)

        self.db.expire_all()
        stale = self.db.get(User, "stale")
        live = self.db.get(User, "live")
        self.assertIsNone(stale.reset_token_hash)
        self.assertIsNone(stale.reset_token_expires)
        self.assertEqual(live.reset_token_hash, "b" * 64)

        self.assertEqual(run_reset_purge(self.db, now), 0)


if __name__ == "__main__":
    unittest.main()
