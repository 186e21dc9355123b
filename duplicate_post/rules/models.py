from pydantic import BaseModel, Field

from duplicate_post.domain.entities import PostStatus


class ProjectRules(BaseModel):
    slug: str
    rules_version: str


class NonceRules(BaseModel):
    ttl_minutes: int = Field(gt=0)
    param_name: str = "_nonce"


class SecurityRules(BaseModel):
    nonce: NonceRules


class RbacRules(BaseModel):
    roles: dict[str, list[str]]
    public_permissions: list[str] = Field(default_factory=list)


class DuplicateRules(BaseModel):
    capability: str = "edit_posts"
    action_label: str = "Duplicate"
    title_suffix: str = " (Copy)"
    status: PostStatus = "draft"
    excluded_meta_keys: list[str] = Field(
        default_factory=lambda: ["_wp_old_slug", "_edit_lock", "_edit_last"]
    )


class OpsRules(BaseModel):
    required_env: list[str] = Field(default_factory=list)


class Rules(BaseModel):
    project: ProjectRules
    security: SecurityRules
    rbac: RbacRules
    duplicate: DuplicateRules
    taxonomies: dict[str, list[str]] = Field(default_factory=dict)
    ops: OpsRules = Field(default_factory=OpsRules)
