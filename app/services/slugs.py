"""Tenant slug policy: format rules, availability, and suggestions.

The format rules here are the single implementation used both by signup
validation and by subdomain resolution.
"""

from __future__ import annotations

import logging
import re
import unicodedata
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from app.core.errors import ErrorReason

if TYPE_CHECKING:
    from app.services.store import TenantStore

logger = logging.getLogger(__name__)

MIN_LENGTH = 3
MAX_LENGTH = 63

RESERVED_SLUGS: frozenset[str] = frozenset({
    "about", "admin", "api", "app", "assets", "blog", "cdn", "contact",
    "demo", "dev", "docs", "files", "ftp", "help", "images", "localhost",
    "mail", "media", "staging", "static", "status", "support", "test", "www",
})

SLUG_PATTERN = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$")
_CHARSET = re.compile(r"^[a-z0-9-]+$")

_SUGGESTION_SUFFIXES = ("hq", "portal", "app", "platform", "hub")


@dataclass(frozen=True)
class SlugFormatError:
    message: str
    reason: ErrorReason = ErrorReason.INVALID_SUBDOMAIN


class SlugValidation(BaseModel):
    slug: str
    available: bool
    error: ErrorReason | None = None
    message: str | None = None
    warnings: list[str] = Field(default_factory=list)


def check_slug_format(candidate: str) -> SlugFormatError | None:
    """Run the format checks in order; the first failure wins."""
    if not candidate:
        return SlugFormatError("Subdomain is required")
    if len(candidate) < MIN_LENGTH:
        return SlugFormatError(f"Subdomain must be at least {MIN_LENGTH} characters long")
    if len(candidate) > MAX_LENGTH:
        return SlugFormatError(f"Subdomain must be at most {MAX_LENGTH} characters long")
    if candidate != candidate.lower():
        return SlugFormatError("Subdomain must be all lowercase")
    if not _CHARSET.match(candidate):
        return SlugFormatError(
            "Subdomain can only contain lowercase letters, numbers, and hyphens"
        )
    if candidate.startswith("-") or candidate.endswith("-"):
        return SlugFormatError("Subdomain cannot start or end with a hyphen")
    if "--" in candidate:
        return SlugFormatError("Subdomain cannot contain consecutive hyphens")
    if candidate in RESERVED_SLUGS:
        return SlugFormatError(f'"{candidate}" is a reserved subdomain and cannot be used')
    return None


def is_valid_slug(candidate: str) -> bool:
    return check_slug_format(candidate) is None


def slug_warnings(slug: str) -> list[str]:
    """Non-blocking hints about a slug that passed the format checks."""
    warnings = []
    if len(slug) < 5:
        warnings.append("Shorter subdomains (under 5 characters) may be harder for users to remember")
    if slug.count("-") > 2:
        warnings.append("Subdomains with many hyphens may be difficult to type")
    return warnings


def slugify(text: str) -> str:
    """Fold to ASCII, lowercase, and join alphanumeric runs with single hyphens."""
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode()
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


def suggest_slugs(company_name: str, limit: int = 5) -> list[str]:
    """Build up to ``limit`` format-valid slug candidates from a company name.

    Candidates, in order: the slugified name, the acronym of its words, the
    first two words joined, then the name with a handful of common suffixes.
    Availability is not checked here.
    """
    base = slugify(company_name)
    words = [slugify(w) for w in company_name.split()]
    words = [w for w in words if w]

    candidates = [base]
    if len(words) >= 2:
        candidates.append("".join(w[0] for w in words))
        candidates.append("".join(words[:2]))
    if base:
        candidates.extend(f"{base}-{suffix}" for suffix in _SUGGESTION_SUFFIXES)

    suggestions: list[str] = []
    for candidate in candidates:
        if candidate not in suggestions and is_valid_slug(candidate):
            suggestions.append(candidate)
    return suggestions[:limit]


class SlugValidator:
    """Format checks plus an availability check against the store.

    Availability goes through ``TenantStore.check_slug_available``, which sees
    every tenant regardless of the caller. Results are never cached, and the
    check is advisory: the unique constraint on ``tenants.slug`` decides.
    """

    def __init__(self, store: TenantStore) -> None:
        self.store = store

    async def validate(self, candidate: str) -> SlugValidation:
        format_error = check_slug_format(candidate)
        if format_error is not None:
            return SlugValidation(
                slug=candidate,
                available=False,
                error=format_error.reason,
                message=format_error.message,
            )

        try:
            available = await self.store.check_slug_available(candidate)
        except Exception:
            logger.exception("Slug availability check failed for %s", candidate)
            return SlugValidation(
                slug=candidate,
                available=False,
                error=ErrorReason.STORE_UNAVAILABLE,
                message="Failed to check subdomain availability",
            )

        if not available:
            return SlugValidation(
                slug=candidate,
                available=False,
                error=ErrorReason.RESERVED_OR_TAKEN,
                message="This subdomain is not available",
            )

        return SlugValidation(slug=candidate, available=True, warnings=slug_warnings(candidate))
