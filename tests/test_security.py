"""Unit tests for app.core.security: password hashing, token digests, access/refresh JWTs."""

import unittest
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import jwt
from pydantic import SecretStr

from app.core.config import Settings
from app.core.security import (
    TokenExpired,
    TokenInvalid,
    digest_token,
    hash_password,
    issue_tokens,
    new_opaque_token,
    peek_refresh_subject,
    tokens_match,
    verify_access,
    verify_password,
    verify_refresh,
)


def _settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "JWT_SECRET": SecretStr("access-secret-for-tests-0123456789abcdef"),
        "JWT_REFRESH_SECRET": SecretStr("refresh-secret-for-tests-0123456789abcdef"),
    }
    values.update(overrides)
    return Settings(**values)


class TestPasswordHashing(unittest.TestCase):
    """bcrypt hashing never stores the plaintext and verifies only the right password."""

    def setUp(self) -> None:
        patcher = patch("app.core.security.BCRYPT_ROUNDS", 4)
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_hash_is_not_plaintext_and_verifies(self) -> None:
        hashed = hash_password("Secret123")
        self.assertNotIn("Secret123", hashed)
        self.assertTrue(verify_password("Secret123", hashed))
        self.assertFalse(verify_password("Secret124", hashed))

    def test_missing_hash_never_verifies(self) -> None:
        self.assertFalse(verify_password("Secret123", None))

    def test_garbage_hash_returns_false(self) -> None:
        self.assertFalse(verify_password("Secret123", "not-a-bcrypt-hash"))


class TestTokenDigests(unittest.TestCase):
    """Refresh/reset tokens are stored as SHA-256 digests and compared by re-hashing."""

    def test_digest_is_deterministic_and_hex(self) -> None:
        self.assertEqual(digest_token("abc"), digest_token("abc"))
        self.assertEqual(len(digest_token("abc")), 64)
        self.assertNotEqual(digest_token("abc"), digest_token("abd"))

    def test_tokens_match(self) -> None:
        stored = digest_token("token-value")
        self.assertTrue(tokens_match("token-value", stored))
        self.assertFalse(tokens_match("other", stored))
        self.assertFalse(tokens_match("token-value", None))
        self.assertFalse(tokens_match("token-value", ""))

    def test_opaque_tokens_are_unique(self) -> None:
        self.assertNotEqual(new_opaque_token(), new_opaque_token())


class TestIssueAndVerify(unittest.TestCase):
    """issue_tokens mints two independently signed tokens."""

    def setUp(self) -> None:
        self.settings = _settings()

    def test_access_claims(self) -> None:
        pair = issue_tokens("alice", "staff", self.settings)
        claims = verify_access(pair.access_token, self.settings)
        self.assertEqual(claims.username, "alice")
        self.assertEqual(claims.role, "staff")

    def test_refresh_claims_carry_no_role(self) -> None:
        pair = issue_tokens("alice", "staff", self.settings)
        claims = verify_refresh(pair.refresh_token, self.settings)
        self.assertEqual(claims.username, "alice")
        payload = jwt.decode(pair.refresh_token, options={"verify_signature": False})
        self.assertNotIn("role", payload)

    def test_lifetimes(self) -> None:
        pair = issue_tokens("alice", "joueur", self.settings)
        access = jwt.decode(pair.access_token, options={"verify_signature": False})
        refresh = jwt.decode(pair.refresh_token, options={"verify_signature": False})
        self.assertEqual(access["exp"] - access["iat"], 15 * 60)
        self.assertEqual(refresh["exp"] - refresh["iat"], 7 * 24 * 60 * 60)

    def test_pairs_minted_back_to_back_differ(self) -> None:
        first = issue_tokens("alice", "joueur", self.settings)
        second = issue_tokens("alice", "joueur", self.settings)
        self.assertNotEqual(first.refresh_token, second.refresh_token)
        self.assertNotEqual(first.access_token, second.access_token)

    def test_refresh_token_is_not_an_access_token(self) -> None:
        pair = issue_tokens("alice", "admin", self.settings)
        with self.assertRaises(TokenInvalid):
            verify_access(pair.refresh_token, self.settings)
        with self.assertRaises(TokenInvalid):
            verify_refresh(pair.access_token, self.settings)

    def test_refresh_token_signed_with_access_secret_is_rejected(self) -> None:
        now = datetime.now(UTC)
        forged = jwt.encode(
            {"sub": "alice", "type": "refresh", "iat": now, "exp": now + timedelta(days=1)},
            self.settings.JWT_SECRET.get_secret_value(),
            algorithm="HS256",
        )
        with self.assertRaises(TokenInvalid):
            verify_refresh(forged, self.settings)

    def test_expired_tokens(self) -> None:
        past = datetime.now(UTC) - timedelta(hours=1)
        expired_access = jwt.encode(
            {"sub": "alice", "role": "admin", "type": "access", "iat": past, "exp": past},
            self.settings.JWT_SECRET.get_secret_value(),
            algorithm="HS256",
        )
        expired_refresh = jwt.encode(
            {"sub": "alice", "type": "refresh", "iat": past, "exp": past},
            self.settings.JWT_REFRESH_SECRET.get_secret_value(),
            algorithm="HS256",
        )
        with self.assertRaises(TokenExpired):
            verify_access(expired_access, self.settings)
        with self.assertRaises(TokenExpired):
            verify_refresh(expired_refresh, self.settings)

    def test_garbage_is_invalid(self) -> None:
        with self.assertRaises(TokenInvalid):
            verify_access("not.a.jwt", self.settings)

    def test_other_secret_is_invalid(self) -> None:
        pair = issue_tokens("alice", "admin", self.settings)
        other = _settings(JWT_SECRET=SecretStr("a-completely-different-secret-0123456789"))
        with self.assertRaises(TokenInvalid):
            verify_access(pair.access_token, other)


class TestPeekRefreshSubject(unittest.TestCase):
    """peek_refresh_subject reads sub without verification, for logout only."""

    def test_reads_subject_of_unverifiable_token(self) -> None:
        token = jwt.encode({"sub": "bob"}, "some-unknown-secret-0123456789abcdef0123", algorithm="HS256")
        self.assertEqual(peek_refresh_subject(token), "bob")

    def test_garbage_returns_none(self) -> None:
        self.assertIsNone(peek_refresh_subject("garbage"))

    def test_missing_subject_returns_none(self) -> None:
        token = jwt.encode({"foo": "bar"}, "another-unknown-secret-0123456789abcdef", algorithm="HS256")
        self.assertIsNone(peek_refresh_subject(token))


if __name__ == "__main__":
    unittest.main()
