from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Literal

NoticeLevel = Literal["success", "info", "warning", "error"]


@dataclass(frozen=True)
class Notice:
    """Dismissible admin notice with an optional link."""

    message: str
    level: NoticeLevel = "success"
    link_url: str | None = None
    link_label: str | None = None
    dismissible: bool = True

    def to_html(self) -> str:
        classes = f"notice notice-{self.level}"
        if self.dismissible:
            classes += " is-dismissible"
        body = html.escape(self.message)
        if self.link_url:
            label = html.escape(self.link_label or self.link_url)
            body += f' <a href="{html.escape(self.link_url, quote=True)}">{label} &rarr;</a>'
        return f'<div class="{classes}"><p>{body}</p></div>'


@dataclass(frozen=True)
class RenderNoticeInput:
    """Navigation state of the listing view."""

    duplicated: str | None = None
    new_post_id: str | None = None


@dataclass(frozen=True)
class RenderNoticeOutput:
    notice: Notice | None = None
