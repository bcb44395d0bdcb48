"""
RBAC dependencies enforcing permissions on protected endpoints

require_access: static policy check plus response masking for a resource.
require_feature: dynamic access-rule check, no masking.

Both convert every failure into AccessDenied at this boundary; unexpected
errors become a generic 500 without internal details.
"""

from functools import partial
from typing import Optional, Union

from fastapi import Depends, Request
import structlog

from app.core.authorizer import Authorizer
from app.core.config import get_settings
from app.core.dependencies import get_access_rule_store, get_current_principal
from app.core.errors import AccessDenied, ErrorCode
from app.core.masking import mask_data
from app.core.permissions import Permission, PolicyTable, get_policy_table, token_value
from app.core.response_pipeline import add_response_transform
from app.models.access_rule import AccessAction
from app.schemas.token import Principal
from app.services.access_rules import AccessRuleStore

logger = structlog.get_logger(__name__)


def _deny(decision) -> AccessDenied:
    return AccessDenied(decision.status_code, decision.reason, decision.code)


def require_access(permission: Union[Permission, str], resource: str):
    """Dependency factory: static permission check, then masking for `resource`"""

    async def check_access(
        request: Request,
        principal: Principal = Depends(get_current_principal),
        policy: PolicyTable = Depends(get_policy_table),
    ) -> Principal:
        settings = get_settings()
        try:
            decision = Authorizer(policy, super_role=settings.SUPER_ROLE).can_static(principal.role, permission)

            if not decision.allowed:
                if decision.code == ErrorCode.PERM_DENIED:
                    logger.warning(
                        "permission_denied",
                        principal_id=principal.id,
                        email=principal.email,
                        role=principal.role,
                        permission=token_value(permission),
                    )
                raise _deny(decision)

            fields_to_mask = policy.mask_fields_for(principal.role, resource)
            if fields_to_mask:
                add_response_transform(
                    request,
                    partial(
                        mask_data,
                        fields_to_mask=fields_to_mask,
                        principal_id=principal.id,
                        owner_field=policy.owner_field_for(resource),
                    ),
                )
            return principal

        except AccessDenied:
            raise
        except Exception:
            logger.exception(f"RBAC check failed for {token_value(permission)} on {resource}")
            raise AccessDenied.internal()

    return check_access


def require_feature(
    feature: str,
    action: Union[AccessAction, str],
    fail_open: Optional[bool] = None,
):
    """
    Dependency factory: dynamic access-rule check for `feature`/`action`.

    A feature without an access rule is denied unless fail-open is enabled,
    either here or through the ACCESS_RULES_FAIL_OPEN setting.
    """

    def check_feature(
        principal: Principal = Depends(get_current_principal),
        store: AccessRuleStore = Depends(get_access_rule_store),
    ) -> Principal:
        settings = get_settings()
        allow_missing = settings.ACCESS_RULES_FAIL_OPEN if fail_open is None else fail_open
        try:
            decision = Authorizer(
                get_policy_table(),
                store=store,
                super_role=settings.SUPER_ROLE,
                fail_open=allow_missing,
            ).can_dynamic(principal.role, feature, action)

            if not decision.allowed:
                logger.warning(
                    "feature_denied",
                    principal_id=principal.id,
                    role=principal.role,
                    feature=feature,
                    action=token_value(action),
                    code=decision.code,
                )
                raise _deny(decision)
            return principal

        except AccessDenied:
            raise
        except Exception:
            logger.exception(f"Access rule check failed for {feature}/{token_value(action)}")
            raise AccessDenied.internal()

    return check_feature
