from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

# --- Enums / Literals ---
RoleType = Literal["administrator", "editor", "author", "contributor", "subscriber"]
PostStatus = Literal["draft", "pending", "private", "publish", "future", "trash"]
DiscussionStatus = Literal["open", "closed"]
UserStatus = Literal["active", "disabled"]

# Meta key holding the featured image reference
THUMBNAIL_META_KEY = "_thumbnail_id"

# --- Users ---


class User(BaseModel):
    id: int
    login: str
    display_name: str = ""
    roles: list[RoleType] = Field(default_factory=list)
    status: UserStatus = "active"
    created_at: datetime = Field(default_factory=datetime.utcnow)


# --- Content ---


class NewContentRecord(BaseModel):
    """Insert payload for the content store. The store allocates the id."""

    post_type: str = "post"
    title: str = ""
    content: str = ""
    excerpt: str = ""
    status: PostStatus = "draft"
    author_id: int
    parent_id: int = 0
    menu_order: int = 0
    comment_status: DiscussionStatus = "open"
    ping_status: DiscussionStatus = "open"


class ContentRecord(NewContentRecord):
    id: int
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)
