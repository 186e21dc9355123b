"""
Duplicate component port definitions.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol

from duplicate_post.domain.entities import ContentRecord, NewContentRecord, User


class ContentStorePort(Protocol):
    """Content store operations used for duplication.

    Implementations raise ContentStoreError when the store rejects an operation.
    """

    def get(self, record_id: int) -> ContentRecord | None:
        """Get record by ID."""
        ...

    def insert(self, record: NewContentRecord) -> int:
        """Insert a record and return its newly allocated ID."""
        ...

    def get_object_taxonomies(self, post_type: str) -> list[str]:
        """Taxonomies registered for a record type."""
        ...

    def get_object_terms(self, record_id: int, taxonomy: str) -> list[int]:
        """Term IDs assigned to a record in one taxonomy."""
        ...

    def set_object_terms(self, record_id: int, term_ids: Sequence[int], taxonomy: str) -> None:
        """Replace a record's terms in one taxonomy."""
        ...

    def get_meta(self, record_id: int) -> dict[str, list[Any]]:
        """All metadata, raw storage values grouped by key."""
        ...

    def add_meta(self, record_id: int, key: str, value: Any) -> int:
        """Append one metadata value."""
        ...

    def get_thumbnail_id(self, record_id: int) -> int | None:
        """Featured image reference, if any."""
        ...

    def set_thumbnail(self, record_id: int, thumbnail_id: int) -> None:
        """Attach a featured image reference."""
        ...


class PermissionPort(Protocol):
    """Capability checks for the acting user."""

    def user_can(self, user: User | None, capability: str) -> bool: ...


class NoncePort(Protocol):
    """Anti-forgery token minting and verification."""

    def create(self, action: str, user_id: int) -> str: ...

    def verify(self, token: str | None, action: str, user_id: int) -> bool: ...


class UrlBuilderPort(Protocol):
    """Admin URL construction."""

    def admin_url(self, path: str = "") -> str: ...

    def add_query_args(self, url: str, params: dict[str, Any]) -> str: ...

    def edit_url(self, record_id: int) -> str: ...
