"""
Admin routes: content listing, the duplicate action endpoint, record edit view.

The duplicate endpoint is reached through the listing's row action link:
GET /admin.php?action=duplicate_post&post_id=<id>&_nonce=<token>
It always ends in a redirect to the listing or a terminal error.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import RedirectResponse

from duplicate_post.adapters.sqlite.repos import SQLiteContentStore
from duplicate_post.api.deps import (
    get_content_store,
    get_current_user,
    get_duplicate_service,
    get_notice_renderer,
    get_policy,
    get_row_action_injector,
    get_rules,
)
from duplicate_post.api.schemas import (
    ListingResponse,
    ListingRow,
    NoticeModel,
    RecordDetailResponse,
    RowActionModel,
)
from duplicate_post.components.duplicate import (
    DuplicateRequestInput,
    DuplicateService,
    DuplicateValidationError,
)
from duplicate_post.components.notices import NoticeRenderer, RenderNoticeInput
from duplicate_post.components.row_actions import (
    AddRowActionInput,
    RowActionInjector,
    RowTarget,
)
from duplicate_post.domain.entities import User
from duplicate_post.domain.meta import maybe_deserialize
from duplicate_post.domain.policy import PolicyEngine
from duplicate_post.rules.models import Rules

router = APIRouter()

ERROR_STATUS: dict[str, int] = {
    "invalid_request": 400,
    "forbidden": 403,
    "not_found": 404,
    "persistence_error": 500,
}


def _raise_for_errors(errors: list[DuplicateValidationError]) -> None:
    err = errors[0]
    raise HTTPException(status_code=ERROR_STATUS.get(err.code, 400), detail=err.message)


def _require_capability(policy: PolicyEngine, user: User, capability: str) -> None:
    if not policy.user_can(user, capability):
        raise HTTPException(status_code=403, detail="Sorry, you are not allowed to access this page.")


# --- Routes ---


@router.get("/admin.php", response_class=RedirectResponse, status_code=302)
def admin_action(
    request: Request,
    action: str | None = None,
    post_id: str | None = None,
    current_user: User = Depends(get_current_user),
    service: DuplicateService = Depends(get_duplicate_service),
    rules: Rules = Depends(get_rules),
) -> RedirectResponse:
    """Named admin action endpoint."""
    if action != service.config.action:
        raise HTTPException(status_code=400, detail="Invalid action.")

    nonce = request.query_params.get(rules.security.nonce.param_name)
    inp = DuplicateRequestInput.from_query(post_id=post_id, nonce=nonce, actor=current_user)

    result = service.handle(inp)
    if not result.success or result.redirect_url is None:
        _raise_for_errors(result.errors)

    assert result.redirect_url is not None
    return RedirectResponse(url=result.redirect_url, status_code=302)


@router.get("/edit.php", response_model=ListingResponse)
def list_records(
    post_type: str = "post",
    duplicated: str | None = None,
    new_post_id: str | None = None,
    paged: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    store: SQLiteContentStore = Depends(get_content_store),
    policy: PolicyEngine = Depends(get_policy),
    injector: RowActionInjector = Depends(get_row_action_injector),
    notices: NoticeRenderer = Depends(get_notice_renderer),
    rules: Rules = Depends(get_rules),
) -> ListingResponse:
    """Content listing with per-row actions and the duplication notice."""
    _require_capability(policy, current_user, rules.duplicate.capability)

    records, total = store.list(post_type=post_type, limit=per_page, offset=(paged - 1) * per_page)

    rows = []
    for record in records:
        out = injector(
            AddRowActionInput(
                actions={},
                target=RowTarget(record_id=record.id, post_type=record.post_type),
                actor=current_user,
            )
        )
        rows.append(
            ListingRow(
                id=record.id,
                post_type=record.post_type,
                title=record.title,
                status=record.status,
                author_id=record.author_id,
                actions={
                    key: RowActionModel(label=a.label, url=a.url, html=a.to_html())
                    for key, a in out.actions.items()
                },
            )
        )

    notice = notices(RenderNoticeInput(duplicated=duplicated, new_post_id=new_post_id)).notice

    return ListingResponse(
        items=rows,
        total=total,
        page=paged,
        per_page=per_page,
        notice=(
            NoticeModel(
                message=notice.message,
                level=notice.level,
                link_url=notice.link_url,
                html=notice.to_html(),
            )
            if notice
            else None
        ),
    )


@router.get("/post.php", response_model=RecordDetailResponse)
def edit_record(
    post: int,
    action: str = "edit",
    current_user: User = Depends(get_current_user),
    store: SQLiteContentStore = Depends(get_content_store),
    policy: PolicyEngine = Depends(get_policy),
    rules: Rules = Depends(get_rules),
) -> RecordDetailResponse:
    """Edit view of a record, the target of the notice link."""
    if action != "edit":
        raise HTTPException(status_code=400, detail="Invalid action.")
    _require_capability(policy, current_user, rules.duplicate.capability)

    record = store.get(post)
    if record is None:
        raise HTTPException(status_code=404, detail="Post not found.")

    terms = {
        taxonomy: store.get_object_terms(record.id, taxonomy)
        for taxonomy in store.get_object_taxonomies(record.post_type)
    }
    meta: dict[str, list[Any]] = {
        key: [maybe_deserialize(v) for v in values]
        for key, values in store.get_meta(record.id).items()
    }

    return RecordDetailResponse(
        **record.model_dump(),
        terms=terms,
        meta=meta,
        thumbnail_id=store.get_thumbnail_id(record.id),
    )
