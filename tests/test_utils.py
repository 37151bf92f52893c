"""Utility and auth tests."""
from datetime import datetime, timezone

import pytest

from api.auth import TokenVerifier, authorize_admin
from shared.exceptions import ForbiddenError, UnauthorizedError
from shared.utils import (
    ensure_utc,
    estimate_tokens,
    mask_api_key,
    normalize_url,
    resolve_api_key,
    slugify,
    url_hash,
    validate_url
)
from tests.conftest import ADMIN_EMAIL, EDITOR_EMAIL, make_token


class TestUrlHelpers:
    """Tests for URL helpers."""

    def test_normalize_url(self):
        assert normalize_url("https://Example.com/News/") == "https://example.com/news"
        assert normalize_url("https://example.com/a?id=1") == "https://example.com/a?id=1"

    def test_url_hash_ignores_trailing_slash(self):
        assert url_hash("https://example.com/a/") == url_hash("https://EXAMPLE.com/a")

    def test_validate_url(self):
        assert validate_url("https://example.com/a") is True
        assert validate_url("ftp://example.com/a") is False
        assert validate_url("not-a-url") is False


class TestFormatting:
    """Tests for slug, key and token helpers."""

    def test_slugify(self):
        assert slugify("  Science   Tech ") == "science-tech"
        assert slugify("খেলাধুলা") == "খেলাধুলা"

    def test_ensure_utc(self):
        naive = datetime(2024, 1, 1, 12, 0)
        assert ensure_utc(naive).tzinfo == timezone.utc
        assert ensure_utc(None) is None

    def test_resolve_api_key(self, monkeypatch):
        monkeypatch.setenv("GROQ_API_KEY", "gsk-from-env")

        assert resolve_api_key("GROQ_API_KEY") == "gsk-from-env"
        assert resolve_api_key("MISSING_KEY_NAME") == ""
        assert resolve_api_key("sk-or-v1-abc") == "sk-or-v1-abc"
        assert resolve_api_key(None) == ""

    def test_mask_api_key(self):
        assert mask_api_key("sk-or-v1-abcdef") == "****cdef"
        assert mask_api_key("abc") == "****"
        assert mask_api_key("GROQ_API_KEY") == "GROQ_API_KEY"
        assert mask_api_key("") == ""

    def test_estimate_tokens(self):
        assert estimate_tokens("abcdefgh") == 2
        assert estimate_tokens("abcdefghi") == 3
        assert estimate_tokens("বাংলা") == 3


class TestTokenVerifier:
    """Tests for TokenVerifier and authorize_admin."""

    def test_verify_returns_email(self, verifier):
        assert verifier.verify(make_token(ADMIN_EMAIL)) == ADMIN_EMAIL

    def test_verify_rejects_bad_signature(self, verifier):
        with pytest.raises(UnauthorizedError):
            verifier.verify(make_token(ADMIN_EMAIL, secret="other"))

    def test_verify_rejects_garbage(self, verifier):
        with pytest.raises(UnauthorizedError):
            verifier.verify("not.a.token")

    def test_audience_checked_when_configured(self):
        verifier = TokenVerifier(secret="test-secret", algorithm="HS256", audience="newsbyte")

        with pytest.raises(UnauthorizedError):
            verifier.verify(make_token(ADMIN_EMAIL))

    @pytest.mark.asyncio
    async def test_authorize_admin(self, verifier, fake_db):
        principal = await authorize_admin(make_token(ADMIN_EMAIL), verifier, fake_db)

        assert principal.email == ADMIN_EMAIL

    @pytest.mark.asyncio
    async def test_authorize_non_admin(self, verifier, fake_db):
        with pytest.raises(ForbiddenError):
            await authorize_admin(make_token(EDITOR_EMAIL), verifier, fake_db)

    @pytest.mark.asyncio
    async def test_authorize_missing_token(self, verifier, fake_db):
        with pytest.raises(UnauthorizedError):
            await authorize_admin(None, verifier, fake_db)
