from datetime import datetime
from typing import Any

from pydantic import BaseModel


class RowActionModel(BaseModel):
    label: str
    url: str
    html: str


class NoticeModel(BaseModel):
    message: str
    level: str
    link_url: str | None = None
    html: str


class ListingRow(BaseModel):
    id: int
    post_type: str
    title: str
    status: str
    author_id: int
    actions: dict[str, RowActionModel] = {}


class ListingResponse(BaseModel):
    items: list[ListingRow]
    total: int
    page: int
    per_page: int
    notice: NoticeModel | None = None


class RecordDetailResponse(BaseModel):
    id: int
    post_type: str
    title: str
    content: str
    excerpt: str
    status: str
    author_id: int
    parent_id: int
    menu_order: int
    comment_status: str
    ping_status: str
    created_at: datetime
    updated_at: datetime
    terms: dict[str, list[int]] = {}
    meta: dict[str, list[Any]] = {}
    thumbnail_id: int | None = None
