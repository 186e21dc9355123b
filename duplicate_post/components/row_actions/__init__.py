"""
Row actions component - Listing row "Duplicate" action.
"""

from .component import RowActionInjector, config_from_rules, run_add_row_action
from .models import (
    AddRowActionInput,
    AddRowActionOutput,
    RowAction,
    RowActionConfig,
    RowTarget,
)
from .ports import NonceMinterPort, PermissionPort, UrlBuilderPort

__all__ = [
    # Entry points
    "run_add_row_action",
    "RowActionInjector",
    "config_from_rules",
    # Models
    "AddRowActionInput",
    "AddRowActionOutput",
    "RowAction",
    "RowActionConfig",
    "RowTarget",
    # Ports
    "NonceMinterPort",
    "PermissionPort",
    "UrlBuilderPort",
]
