"""
Duplicate component - Copy content records into new drafts.
"""

from .component import (
    DuplicateService,
    build_duplicate_record,
    build_listing_redirect,
    config_from_rules,
    iter_copyable_meta,
    run,
    run_duplicate,
    run_handle_request,
)
from .models import (
    DuplicateConfig,
    DuplicateErrorCode,
    DuplicateInput,
    DuplicateOutput,
    DuplicateRequestInput,
    DuplicateRequestOutput,
    DuplicateValidationError,
    SkippedStep,
    parse_record_id,
)
from .ports import ContentStorePort, NoncePort, PermissionPort, UrlBuilderPort

__all__ = [
    # Entry points
    "run",
    "run_duplicate",
    "run_handle_request",
    "DuplicateService",
    # Functional core
    "build_duplicate_record",
    "build_listing_redirect",
    "config_from_rules",
    "iter_copyable_meta",
    "parse_record_id",
    # Models
    "DuplicateConfig",
    "DuplicateErrorCode",
    "DuplicateInput",
    "DuplicateOutput",
    "DuplicateRequestInput",
    "DuplicateRequestOutput",
    "DuplicateValidationError",
    "SkippedStep",
    # Ports
    "ContentStorePort",
    "NoncePort",
    "PermissionPort",
    "UrlBuilderPort",
]
