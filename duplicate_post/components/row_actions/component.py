"""
Row actions component - "Duplicate" link on content listing rows.

The link is only added when the acting user holds the edit capability. Its
target carries an anti-forgery token bound to the row's record and the user.
"""

from __future__ import annotations

from duplicate_post.rules.models import Rules

from .models import AddRowActionInput, AddRowActionOutput, RowAction, RowActionConfig
from .ports import NonceMinterPort, PermissionPort, UrlBuilderPort

ADMIN_ACTION_PAGE = "admin.php"


def config_from_rules(rules: Rules) -> RowActionConfig:
    return RowActionConfig(
        capability=rules.duplicate.capability,
        label=rules.duplicate.action_label,
        nonce_param=rules.security.nonce.param_name,
    )


def run_add_row_action(
    inp: AddRowActionInput,
    *,
    permissions: PermissionPort,
    nonces: NonceMinterPort,
    urls: UrlBuilderPort,
    config: RowActionConfig | None = None,
) -> AddRowActionOutput:
    """
    Append the duplicate action to a row's actions.

    Returns the actions unchanged when the user lacks the capability.
    """
    config = config or RowActionConfig()
    actions = dict(inp.actions)

    if inp.actor is None or not permissions.user_can(inp.actor, config.capability):
        return AddRowActionOutput(actions=actions, added=False)

    record_id = inp.target.record_id
    token = nonces.create(f"{config.action}_{record_id}", inp.actor.id)
    url = urls.add_query_args(
        urls.admin_url(ADMIN_ACTION_PAGE),
        {
            "action": config.action,
            "post_id": record_id,
            config.nonce_param: token,
        },
    )

    actions[config.key] = RowAction(key=config.key, label=config.label, url=url)
    return AddRowActionOutput(actions=actions, added=True)


class RowActionInjector:
    """Listing-row extension point with its collaborators bound at construction."""

    def __init__(
        self,
        permissions: PermissionPort,
        nonces: NonceMinterPort,
        urls: UrlBuilderPort,
        config: RowActionConfig | None = None,
    ) -> None:
        self._permissions = permissions
        self._nonces = nonces
        self._urls = urls
        self._config = config or RowActionConfig()

    def __call__(self, inp: AddRowActionInput) -> AddRowActionOutput:
        return run_add_row_action(
            inp,
            permissions=self._permissions,
            nonces=self._nonces,
            urls=self._urls,
            config=self._config,
        )
