"""
Duplicate component - Copy a content record into a new draft.

Request handling:
1. record id must be a positive integer            -> invalid_request
2. anti-forgery token must match record and user   -> forbidden
3. acting user must hold the edit capability       -> forbidden
4. source record must exist                        -> not_found

Duplication steps:
1. Create the new record (title suffixed, status draft, author = actor).
   A store rejection is fatal: persistence_error.
2. Copy taxonomy terms (replace per taxonomy).
3. Copy metadata except reserved keys, preserving repeated keys.
4. Copy the featured image reference.

Steps 2-4 are best-effort. A failure in one of them is logged and reported
in DuplicateOutput.skipped; the record created in step 1 is kept.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from duplicate_post.domain.entities import ContentRecord, NewContentRecord, User
from duplicate_post.domain.errors import ContentStoreError
from duplicate_post.domain.meta import maybe_deserialize
from duplicate_post.rules.models import Rules

from .models import (
    DuplicateConfig,
    DuplicateInput,
    DuplicateOutput,
    DuplicateRequestInput,
    DuplicateRequestOutput,
    DuplicateValidationError,
    SkippedStep,
)
from .ports import ContentStorePort, NoncePort, PermissionPort, UrlBuilderPort

logger = logging.getLogger(__name__)

LISTING_PAGE = "edit.php"
DEFAULT_POST_TYPE = "post"


def config_from_rules(rules: Rules) -> DuplicateConfig:
    """Build duplicate config from loaded rules."""
    dup = rules.duplicate
    return DuplicateConfig(
        capability=dup.capability,
        title_suffix=dup.title_suffix,
        status=dup.status,
        excluded_meta_keys=frozenset(dup.excluded_meta_keys),
    )


# --- Pure Functions (Functional Core) ---


def build_duplicate_record(
    source: ContentRecord,
    actor: User,
    config: DuplicateConfig,
) -> NewContentRecord:
    """Insert payload for the copy of source, authored by actor."""
    return NewContentRecord(
        post_type=source.post_type,
        title=source.title + config.title_suffix,
        content=source.content,
        excerpt=source.excerpt,
        status=config.status,
        author_id=actor.id,
        parent_id=source.parent_id,
        menu_order=source.menu_order,
        comment_status=source.comment_status,
        ping_status=source.ping_status,
    )


def iter_copyable_meta(
    meta: dict[str, list[Any]],
    excluded_keys: Iterable[str],
) -> Iterator[tuple[str, Any]]:
    """Yield (key, value) pairs to copy, values deserialized, reserved keys dropped."""
    excluded = set(excluded_keys)
    for key, values in meta.items():
        if key in excluded:
            continue
        for raw in values:
            yield key, maybe_deserialize(raw)


def build_listing_redirect(
    post_type: str,
    new_record_id: int,
    urls: UrlBuilderPort,
) -> str:
    """Listing URL scoped to post_type carrying the success flag."""
    return urls.add_query_args(
        urls.admin_url(LISTING_PAGE),
        {
            "post_type": None if post_type == DEFAULT_POST_TYPE else post_type,
            "duplicated": 1,
            "new_post_id": new_record_id,
        },
    )


# --- Best-effort copy steps ---


def _copy_taxonomies(
    store: ContentStorePort,
    source: ContentRecord,
    target_id: int,
) -> list[SkippedStep]:
    skipped: list[SkippedStep] = []
    try:
        taxonomies = store.get_object_taxonomies(source.post_type)
    except ContentStoreError as e:
        logger.warning("Could not list taxonomies for type %s: %s", source.post_type, e)
        return [SkippedStep(step="taxonomies", message=e.message)]

    for taxonomy in taxonomies:
        try:
            term_ids = store.get_object_terms(source.id, taxonomy)
            if not term_ids:
                continue
            store.set_object_terms(target_id, term_ids, taxonomy)
        except ContentStoreError as e:
            logger.warning(
                "Skipped copying %s terms from %s to %s: %s",
                taxonomy,
                source.id,
                target_id,
                e,
            )
            skipped.append(SkippedStep(step="taxonomies", message=e.message, detail=taxonomy))
    return skipped


def _copy_meta(
    store: ContentStorePort,
    source_id: int,
    target_id: int,
    config: DuplicateConfig,
) -> list[SkippedStep]:
    try:
        meta = store.get_meta(source_id)
    except ContentStoreError as e:
        logger.warning("Could not read meta of %s: %s", source_id, e)
        return [SkippedStep(step="meta", message=e.message)]

    if not meta:
        return []

    skipped: list[SkippedStep] = []
    for key, value in iter_copyable_meta(meta, config.excluded_meta_keys):
        try:
            store.add_meta(target_id, key, value)
        except ContentStoreError as e:
            logger.warning("Skipped meta %s on %s: %s", key, target_id, e)
            skipped.append(SkippedStep(step="meta", message=e.message, detail=key))
    return skipped


def _copy_thumbnail(
    store: ContentStorePort,
    source_id: int,
    target_id: int,
) -> list[SkippedStep]:
    try:
        thumbnail_id = store.get_thumbnail_id(source_id)
        # Already carried over by the meta copy unless _thumbnail_id is excluded
        if thumbnail_id and store.get_thumbnail_id(target_id) != thumbnail_id:
            store.set_thumbnail(target_id, thumbnail_id)
    except ContentStoreError as e:
        logger.warning("Skipped featured image for %s: %s", target_id, e)
        return [SkippedStep(step="thumbnail", message=e.message)]
    return []


# --- Component Entry Points ---


def run_duplicate(
    inp: DuplicateInput,
    *,
    store: ContentStorePort,
    config: DuplicateConfig | None = None,
) -> DuplicateOutput:
    """
    Duplicate a record with its terms, metadata and featured image.

    Args:
        inp: Source record and acting user.
        store: Content store port.
        config: Duplication settings. Defaults to DuplicateConfig().

    Returns:
        DuplicateOutput with the new record, or a persistence_error.
    """
    config = config or DuplicateConfig()
    source = inp.source

    try:
        new_id = store.insert(build_duplicate_record(source, inp.actor, config))
    except ContentStoreError as e:
        return DuplicateOutput(
            record=None,
            errors=[DuplicateValidationError(code="persistence_error", message=e.message)],
            success=False,
        )

    skipped = _copy_taxonomies(store, source, new_id)
    skipped += _copy_meta(store, source.id, new_id, config)
    skipped += _copy_thumbnail(store, source.id, new_id)

    logger.info(
        "Duplicated %s %s as %s for user %s",
        source.post_type,
        source.id,
        new_id,
        inp.actor.id,
    )

    try:
        record = store.get(new_id)
    except ContentStoreError as e:
        logger.warning("Duplicate %s created but could not be reloaded: %s", new_id, e)
        record = None

    return DuplicateOutput(
        new_record_id=new_id,
        record=record,
        skipped=skipped,
        errors=[],
        success=True,
    )


def _fail(code: str, message: str, field: str | None = None) -> DuplicateRequestOutput:
    return DuplicateRequestOutput(
        errors=[DuplicateValidationError(code=code, message=message, field=field)],  # type: ignore[arg-type]
        success=False,
    )


def run_handle_request(
    inp: DuplicateRequestInput,
    *,
    store: ContentStorePort,
    permissions: PermissionPort,
    nonces: NoncePort,
    urls: UrlBuilderPort,
    config: DuplicateConfig | None = None,
) -> DuplicateRequestOutput:
    """
    Validate a duplicate request and run the duplicator.

    Args:
        inp: Validated request struct.
        store: Content store port.
        permissions: Capability checker.
        nonces: Anti-forgery token service.
        urls: Admin URL builder.
        config: Duplication settings.

    Returns:
        DuplicateRequestOutput with the redirect target, or the first failure.
    """
    config = config or DuplicateConfig()

    if inp.record_id is None:
        return _fail("invalid_request", "No post ID provided.", field="post_id")

    if not nonces.verify(inp.nonce, config.nonce_action(inp.record_id), inp.actor.id):
        return _fail("forbidden", "The link you followed has expired.", field="nonce")

    if not permissions.user_can(inp.actor, config.capability):
        return _fail("forbidden", "You do not have permission to duplicate posts.")

    try:
        source = store.get(inp.record_id)
    except ContentStoreError as e:
        return _fail("persistence_error", e.message)

    if source is None:
        return _fail("not_found", "Post not found.", field="post_id")

    result = run_duplicate(DuplicateInput(source=source, actor=inp.actor), store=store, config=config)
    if not result.success or result.new_record_id is None:
        return DuplicateRequestOutput(errors=result.errors, success=False)

    new_id = result.new_record_id
    return DuplicateRequestOutput(
        new_record_id=new_id,
        redirect_url=build_listing_redirect(source.post_type, new_id, urls),
        errors=[],
        success=True,
    )


def run(
    inp: DuplicateInput | DuplicateRequestInput,
    *,
    store: ContentStorePort,
    permissions: PermissionPort | None = None,
    nonces: NoncePort | None = None,
    urls: UrlBuilderPort | None = None,
    config: DuplicateConfig | None = None,
) -> DuplicateOutput | DuplicateRequestOutput:
    """
    Main entry point for the duplicate component.

    Dispatches to appropriate handler based on input type.
    """
    if isinstance(inp, DuplicateInput):
        return run_duplicate(inp, store=store, config=config)
    elif isinstance(inp, DuplicateRequestInput):
        if permissions is None or nonces is None or urls is None:
            raise ValueError("Request handling requires permissions, nonces and urls ports")
        return run_handle_request(
            inp,
            store=store,
            permissions=permissions,
            nonces=nonces,
            urls=urls,
            config=config,
        )
    else:
        raise ValueError(f"Unknown input type: {type(inp)}")


class DuplicateService:
    """
    Request handler with its collaborators bound at construction.
    """

    def __init__(
        self,
        store: ContentStorePort,
        permissions: PermissionPort,
        nonces: NoncePort,
        urls: UrlBuilderPort,
        config: DuplicateConfig | None = None,
    ) -> None:
        self._store = store
        self._permissions = permissions
        self._nonces = nonces
        self._urls = urls
        self._config = config or DuplicateConfig()

    @property
    def config(self) -> DuplicateConfig:
        return self._config

    def handle(self, inp: DuplicateRequestInput) -> DuplicateRequestOutput:
        return run_handle_request(
            inp,
            store=self._store,
            permissions=self._permissions,
            nonces=self._nonces,
            urls=self._urls,
            config=self._config,
        )

    def duplicate(self, source: ContentRecord, actor: User) -> DuplicateOutput:
        return run_duplicate(
            DuplicateInput(source=source, actor=actor),
            store=self._store,
            config=self._config,
        )
