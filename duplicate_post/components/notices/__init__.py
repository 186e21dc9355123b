"""
Notices component - Listing view confirmations.
"""

from .component import EditUrlPort, NoticeRenderer, run_render_notice
from .models import Notice, NoticeLevel, RenderNoticeInput, RenderNoticeOutput

__all__ = [
    "run_render_notice",
    "NoticeRenderer",
    "EditUrlPort",
    "Notice",
    "NoticeLevel",
    "RenderNoticeInput",
    "RenderNoticeOutput",
]
