from __future__ import annotations

from typing import Any
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse


def add_query_args(url: str, params: dict[str, Any]) -> str:
    """
    Merge query params into a URL.

    Existing params are overridden; params with a None value are removed.
    """
    parsed = urlparse(url)
    query = dict(parse_qsl(parsed.query, keep_blank_values=True))

    for key, value in params.items():
        if value is None:
            query.pop(key, None)
        else:
            query[key] = str(value)

    return urlunparse(parsed._replace(query=urlencode(query)))


class AdminUrlBuilder:
    """Builds admin URLs rooted at a configured base."""

    def __init__(self, base_url: str = "/wp-admin/") -> None:
        self._base = base_url if base_url.endswith("/") else base_url + "/"

    def admin_url(self, path: str = "") -> str:
        return self._base + path.lstrip("/")

    def add_query_args(self, url: str, params: dict[str, Any]) -> str:
        return add_query_args(url, params)

    def edit_url(self, record_id: int) -> str:
        return add_query_args(self.admin_url("post.php"), {"post": record_id, "action": "edit"})
