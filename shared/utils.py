"""Shared utility functions."""
import os
import re
import uuid
import hashlib
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import urlparse


ENV_REFERENCE_PATTERN = re.compile(r"^[A-Z0-9_]+$")


def generate_article_id() -> str:
    """Generate a unique article ID."""
    return f"news_{uuid.uuid4().hex[:12]}"


def generate_category_id() -> str:
    """Generate a unique category ID."""
    return f"cat_{uuid.uuid4().hex[:12]}"


def generate_provider_id() -> str:
    """Generate a unique provider ID."""
    return f"prov_{uuid.uuid4().hex[:12]}"


def get_utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (Mongo returns naive values)."""
    if dt is None or dt.tzinfo is not None:
        return dt
    return dt.replace(tzinfo=timezone.utc)


def normalize_url(url: str) -> str:
    """Normalize URL for consistent comparison."""
    parsed = urlparse(url)
    # Remove trailing slash and convert to lowercase
    normalized = f"{parsed.scheme}://{parsed.netloc}{parsed.path.rstrip('/')}"
    if parsed.query:
        normalized += f"?{parsed.query}"
    return normalized.lower()


def url_hash(url: str) -> str:
    """Generate a hash for a URL (for indexing purposes)."""
    normalized = normalize_url(url)
    return hashlib.sha256(normalized.encode()).hexdigest()[:16]


def validate_url(url: str) -> bool:
    """Validate that a URL is properly formatted."""
    try:
        result = urlparse(url)
        return all([result.scheme in ('http', 'https'), result.netloc])
    except ValueError:
        return False


def slugify(name: str) -> str:
    """Category slug: lowercase, trimmed, whitespace runs collapsed to '-'."""
    return re.sub(r"\s+", "-", name.strip().lower())


def format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Format datetime to ISO format string."""
    if dt is None:
        return None
    return dt.isoformat()


def resolve_api_key(ref_or_value: Optional[str]) -> str:
    """
    Resolve a stored API key.

    Values shaped like an environment variable name (OPENROUTER_API_KEY) are
    looked up in the environment; anything else is the key itself.
    """
    if not ref_or_value:
        return ""
    if ENV_REFERENCE_PATTERN.match(ref_or_value) and not ref_or_value.startswith("sk-"):
        return os.getenv(ref_or_value, "")
    return ref_or_value


def mask_api_key(value: Optional[str]) -> Optional[str]:
    """Redact an API key, keeping only the last four characters."""
    if not value:
        return value
    if ENV_REFERENCE_PATTERN.match(value):
        # Env var references are not secrets
        return value
    if len(value) <= 4:
        return "****"
    return f"****{value[-4:]}"


def estimate_tokens(text: str) -> int:
    """Rough token estimate; Bangla script packs fewer characters per token."""
    has_bangla = re.search(r"[ঀ-৿]", text) is not None
    divisor = 2 if has_bangla else 4
    return -(-len(text) // divisor)
