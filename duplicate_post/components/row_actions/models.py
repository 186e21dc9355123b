"""
Row actions component input/output models.
"""

from __future__ import annotations

import html
from dataclasses import dataclass, field

from duplicate_post.domain.entities import User


@dataclass(frozen=True)
class RowAction:
    """A link shown under a row of the content listing."""

    key: str
    label: str
    url: str

    def to_html(self) -> str:
        return f'<a href="{html.escape(self.url, quote=True)}">{html.escape(self.label)}</a>'


@dataclass(frozen=True)
class RowActionConfig:
    capability: str = "edit_posts"
    label: str = "Duplicate"
    action: str = "duplicate_post"
    nonce_param: str = "_nonce"
    key: str = "duplicate"


@dataclass(frozen=True)
class RowTarget:
    """The listing row the actions belong to."""

    record_id: int
    post_type: str = "post"


@dataclass(frozen=True)
class AddRowActionInput:
    actions: dict[str, RowAction]
    target: RowTarget
    actor: User | None


@dataclass(frozen=True)
class AddRowActionOutput:
    actions: dict[str, RowAction] = field(default_factory=dict)
    added: bool = False
