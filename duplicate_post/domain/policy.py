from collections.abc import Sequence

from duplicate_post.domain.entities import User
from duplicate_post.rules.models import Rules


class PolicyEngine:
    def __init__(self, rules: Rules):
        self.rules = rules

    def check_permission(
        self,
        user: User | None,
        user_roles: Sequence[str],
        capability: str,
    ) -> bool:
        """
        Check if the user holds the capability.

        Order of precedence:
        1. Public Permissions (Global)
        2. Role-Based Access Control (RBAC)
        """
        # 1. Public Permissions
        if capability in self.rules.rbac.public_permissions:
            return True

        # If not public, we need an active user
        if not user or user.status != "active":
            return False

        # 2. RBAC
        for role in user_roles:
            allowed = self.rules.rbac.roles.get(role, [])
            if "*" in allowed:
                return True
            if capability in allowed:
                return True

            # Scoped wildcards ("posts:*" matches "posts:edit")
            if ":" in capability:
                scope = capability.split(":")[0]
                if f"{scope}:*" in allowed:
                    return True

        return False

    def user_can(self, user: User | None, capability: str) -> bool:
        if user is None:
            return self.check_permission(None, [], capability)
        return self.check_permission(user, user.roles, capability)
