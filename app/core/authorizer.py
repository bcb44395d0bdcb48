"""
Authorization decisions for the static policy and the dynamic access rules

Static policy (PolicyTable): fine-grained permission tokens, drives response
masking, fixed in code. Used by leads and contacts.

Dynamic policy (AccessRuleStore): coarse Read/Write/Delete per feature,
editable by administrators at runtime, no masking. Used by invoices.
"""

from dataclasses import dataclass
from typing import Optional, Union

from fastapi import status
import structlog

from app.core.errors import ErrorCode
from app.core.permissions import Permission, PolicyTable, Role, token_value
from app.models.access_rule import AccessAction
from app.services.access_rules import AccessRuleStore

logger = structlog.get_logger(__name__)

# JWT role name -> AccessRule column
ROLE_RULE_FIELDS = {
    Role.ADMIN.value: "admin",
    Role.LEAD_PLANNER.value: "lead_planner",
    Role.ASSISTANT.value: "assistant",
}


@dataclass(frozen=True)
class Decision:
    allowed: bool
    status_code: int = status.HTTP_200_OK
    code: Optional[str] = None
    reason: str = ""

    @classmethod
    def allow(cls, reason: str = "") -> "Decision":
        return cls(True, reason=reason)

    @classmethod
    def deny(cls, status_code: int, code: str, reason: str) -> "Decision":
        return cls(False, status_code=status_code, code=code, reason=reason)


_UNAUTHENTICATED = Decision.deny(status.HTTP_401_UNAUTHORIZED, ErrorCode.AUTH_REQUIRED, "Unauthenticated")


class Authorizer:
    """Single entry point for both authorization strategies"""

    def __init__(
        self,
        policy: PolicyTable,
        store: Optional[AccessRuleStore] = None,
        super_role: Optional[str] = Role.ADMIN.value,
        fail_open: bool = False,
    ):
        self.policy = policy
        self.store = store
        self.super_role = super_role
        self.fail_open = fail_open

    def can_static(self, role: Optional[str], permission: Union[Permission, str]) -> Decision:
        if not role:
            return _UNAUTHENTICATED

        # The bypass lives here so the table itself stays the auditable source
        if self.super_role and role == self.super_role:
            return Decision.allow("super-role")

        if self.policy.entry_for(role) is None:
            return Decision.deny(
                status.HTTP_403_FORBIDDEN,
                ErrorCode.ROLE_INVALID,
                "Access Denied: Invalid Role",
            )

        if not self.policy.has_permission(role, permission):
            return Decision.deny(
                status.HTTP_403_FORBIDDEN,
                ErrorCode.PERM_DENIED,
                "Access Denied: Insufficient Privileges",
            )

        return Decision.allow()

    def can_dynamic(
        self,
        role: Optional[str],
        feature: str,
        action: Union[AccessAction, str],
    ) -> Decision:
        if not role:
            return _UNAUTHENTICATED
        if self.store is None:
            raise RuntimeError("Dynamic authorization needs an AccessRuleStore")

        action_name = token_value(action)
        rule = self.store.find_by_feature(feature)

        if rule is None:
            if self.fail_open:
                logger.warning(f"No access rule for feature '{feature}', allowing (fail-open)")
                return Decision.allow("no-rule-fail-open")
            return Decision.deny(
                status.HTTP_403_FORBIDDEN,
                ErrorCode.RULE_MISSING,
                f"Access Denied: No access rule configured for '{feature}'.",
            )

        role_field = ROLE_RULE_FIELDS.get(role)
        if role_field is None:
            return Decision.deny(
                status.HTTP_403_FORBIDDEN,
                ErrorCode.ROLE_UNMAPPED,
                f"Access Denied: Role '{role}' has no access rule mapping.",
            )

        if action_name not in rule.actions_for(role_field):
            return Decision.deny(
                status.HTTP_403_FORBIDDEN,
                ErrorCode.FEATURE_DENIED,
                f"Security Protocol Breach: Role '{role}' lacks '{action_name}' authorization for '{feature}'.",
            )

        return Decision.allow()
