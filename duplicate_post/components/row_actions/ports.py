"""
Row actions component port definitions.
"""

from __future__ import annotations

from typing import Any, Protocol

from duplicate_post.domain.entities import User


class PermissionPort(Protocol):
    def user_can(self, user: User | None, capability: str) -> bool: ...


class NonceMinterPort(Protocol):
    def create(self, action: str, user_id: int) -> str: ...


class UrlBuilderPort(Protocol):
    def admin_url(self, path: str = "") -> str: ...

    def add_query_args(self, url: str, params: dict[str, Any]) -> str: ...
