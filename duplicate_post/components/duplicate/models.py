"""
Duplicate component input/output models.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from duplicate_post.domain.entities import ContentRecord, PostStatus, User

DuplicateErrorCode = Literal[
    "invalid_request",
    "forbidden",
    "not_found",
    "persistence_error",
]

CopyStep = Literal["taxonomies", "meta", "thumbnail"]


# --- Validation Error ---


@dataclass(frozen=True)
class DuplicateValidationError:
    """Duplicate request or duplication error."""

    code: DuplicateErrorCode
    message: str
    field: str | None = None


# --- Configuration ---


@dataclass(frozen=True)
class DuplicateConfig:
    """Duplication behaviour, normally built from rules.yaml."""

    capability: str = "edit_posts"
    title_suffix: str = " (Copy)"
    status: PostStatus = "draft"
    excluded_meta_keys: frozenset[str] = frozenset({"_wp_old_slug", "_edit_lock", "_edit_last"})
    action: str = "duplicate_post"

    def nonce_action(self, record_id: int) -> str:
        """Action name an anti-forgery token is bound to."""
        return f"{self.action}_{record_id}"


# --- Input Models ---


@dataclass(frozen=True)
class DuplicateInput:
    """Input for duplicating an already loaded record."""

    source: ContentRecord
    actor: User


@dataclass(frozen=True)
class DuplicateRequestInput:
    """
    Validated duplicate request, built from raw query params at the boundary.

    record_id is None when the param was absent or not a positive integer.
    """

    record_id: int | None
    nonce: str | None
    actor: User

    @classmethod
    def from_query(
        cls,
        post_id: str | None,
        nonce: str | None,
        actor: User,
    ) -> DuplicateRequestInput:
        return cls(record_id=parse_record_id(post_id), nonce=nonce or None, actor=actor)


def parse_record_id(raw: str | int | None) -> int | None:
    """Parse a record id param. Anything but a positive integer yields None."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return raw if raw > 0 else None
    value = raw.strip()
    if not (value.isascii() and value.isdigit()):
        return None
    record_id = int(value)
    return record_id if record_id > 0 else None


# --- Output Models ---


@dataclass(frozen=True)
class SkippedStep:
    """A best-effort copy step that failed and was skipped."""

    step: CopyStep
    message: str
    detail: str | None = None


@dataclass(frozen=True)
class DuplicateOutput:
    """Output of the duplicator."""

    new_record_id: int | None = None
    record: ContentRecord | None = None
    skipped: list[SkippedStep] = field(default_factory=list)
    errors: list[DuplicateValidationError] = field(default_factory=list)
    success: bool = True


@dataclass(frozen=True)
class DuplicateRequestOutput:
    """Output of the request handler."""

    new_record_id: int | None = None
    redirect_url: str | None = None
    errors: list[DuplicateValidationError] = field(default_factory=list)
    success: bool = True
