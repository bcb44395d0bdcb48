"""
RBAC (Role-Based Access Control) policy table

Static, deployment-owned mapping from role to granted permission tokens and
to the fields redacted per resource. Built once at import and never mutated.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, Mapping, Optional, Tuple, Union

DEFAULT_OWNER_FIELD = "assigned_to"


class Role(str, Enum):
    """Roles known to the static policy"""
    ADMIN = "Admin"
    LEAD_PLANNER = "Lead Planner"
    PLANNER = "Planner"
    ASSISTANT = "Assistant"


class Permission(str, Enum):
    """Permission definitions"""
    # Lead permissions
    LEADS_VIEW = "leads:view"
    LEADS_MANAGE = "leads:manage"
    LEADS_FULFILL = "leads:fulfill"
    LEADS_ROOT = "leads:root"

    # Contact permissions
    CONTACTS_VIEW = "contacts:view"
    CONTACTS_MANAGE = "contacts:manage"
    CONTACTS_ROOT = "contacts:root"

    # Task permissions
    TASKS_VIEW = "tasks:view"
    TASKS_MANAGE = "tasks:manage"
    TASKS_ROOT = "tasks:root"

    # Product permissions
    PRODUCTS_VIEW = "products:view"
    PRODUCTS_MANAGE = "products:manage"
    PRODUCTS_ROOT = "products:root"


def token_value(permission: Union[Permission, str]) -> str:
    """Plain string form of a token (Enum members hash by name, not value)"""
    return permission.value if isinstance(permission, Enum) else permission


@dataclass(frozen=True)
class PolicyEntry:
    """Granted tokens and per-resource mask fields for one role"""
    granted: FrozenSet[str]
    masking: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: MappingProxyType({}))


def policy_entry(
    granted: Iterable[Union[Permission, str]],
    masking: Optional[Dict[str, Iterable[str]]] = None,
) -> PolicyEntry:
    """Build a read-only PolicyEntry"""
    frozen_masking = {resource: tuple(fields) for resource, fields in (masking or {}).items()}
    return PolicyEntry(
        granted=frozenset(token_value(p) for p in granted),
        masking=MappingProxyType(frozen_masking),
    )


class PolicyTable:
    """Read-only role → PolicyEntry lookup, safe for concurrent reads"""

    def __init__(
        self,
        entries: Mapping[str, PolicyEntry],
        owner_fields: Optional[Mapping[str, str]] = None,
    ):
        self._entries = MappingProxyType(dict(entries))
        self._owner_fields = MappingProxyType(dict(owner_fields or {}))

    def entry_for(self, role: Optional[str]) -> Optional[PolicyEntry]:
        if not role:
            return None
        return self._entries.get(role.value if isinstance(role, Enum) else role)

    def has_permission(self, role: Optional[str], permission: Union[Permission, str]) -> bool:
        """Exact membership check; unknown roles hold no permissions"""
        entry = self.entry_for(role)
        if entry is None:
            return False
        return token_value(permission) in entry.granted

    def mask_fields_for(self, role: Optional[str], resource: str) -> Tuple[str, ...]:
        entry = self.entry_for(role)
        if entry is None:
            return ()
        return entry.masking.get(resource, ())

    def owner_field_for(self, resource: str) -> str:
        """Record field that names the owning principal for a resource"""
        return self._owner_fields.get(resource, DEFAULT_OWNER_FIELD)


_PLANNER_GRANTS = (
    Permission.LEADS_VIEW,
    Permission.LEADS_MANAGE,
    Permission.LEADS_FULFILL,
    Permission.CONTACTS_VIEW,
    Permission.CONTACTS_MANAGE,
    Permission.TASKS_VIEW,
    Permission.TASKS_MANAGE,
    Permission.PRODUCTS_VIEW,
    Permission.PRODUCTS_MANAGE,
)

POLICY = PolicyTable(
    {
        # Admins hold every token
        Role.ADMIN.value: policy_entry(Permission),
        Role.LEAD_PLANNER.value: policy_entry(_PLANNER_GRANTS),
        Role.PLANNER.value: policy_entry(_PLANNER_GRANTS),
        Role.ASSISTANT.value: policy_entry(
            (
                Permission.LEADS_VIEW,
                Permission.LEADS_FULFILL,
                Permission.CONTACTS_VIEW,
                Permission.TASKS_VIEW,
                Permission.TASKS_MANAGE,
                Permission.PRODUCTS_VIEW,
            ),
            masking={
                "leads": ["value"],
                "contacts": ["email", "phone_number"],
            },
        ),
    },
    owner_fields={
        "leads": "assigned_to",
        "contacts": "assigned_to",
    },
)


def get_policy_table() -> PolicyTable:
    """Dependency returning the process-wide policy table"""
    return POLICY
