"""
Notices component - Confirmation shown on the listing after a duplication.

Purely derived from the `duplicated` and `new_post_id` query params.
"""

from __future__ import annotations

from typing import Protocol

from duplicate_post.components.duplicate.models import parse_record_id

from .models import Notice, RenderNoticeInput, RenderNoticeOutput

SUCCESS_MESSAGE = "Post duplicated."
EDIT_LINK_LABEL = "Edit the duplicate"


class EditUrlPort(Protocol):
    def edit_url(self, record_id: int) -> str: ...


def run_render_notice(inp: RenderNoticeInput, *, urls: EditUrlPort) -> RenderNoticeOutput:
    if inp.duplicated is None or inp.new_post_id is None:
        return RenderNoticeOutput(notice=None)

    new_id = parse_record_id(inp.new_post_id)
    if new_id is None:
        return RenderNoticeOutput(notice=None)

    return RenderNoticeOutput(
        notice=Notice(
            message=SUCCESS_MESSAGE,
            level="success",
            link_url=urls.edit_url(new_id),
            link_label=EDIT_LINK_LABEL,
        )
    )


class NoticeRenderer:
    def __init__(self, urls: EditUrlPort) -> None:
        self._urls = urls

    def __call__(self, inp: RenderNoticeInput) -> RenderNoticeOutput:
        return run_render_notice(inp, urls=self._urls)
