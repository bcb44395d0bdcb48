"""
Persistence operations for feature access rules

Also owns the factory default rule set and the startup seeding routine.
Seeding is find-or-create so several processes can run it at once.
"""

from typing import Any, Dict, List, Optional
import uuid

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select
import structlog

from app.core.clock import utc_now
from app.models.access_rule import AccessAction, AccessRule

logger = structlog.get_logger(__name__)

R, W, D = AccessAction.READ.value, AccessAction.WRITE.value, AccessAction.DELETE.value
RWD = [R, W, D]


def _rule(feature: str, module: str, admin, lead_planner, assistant, available) -> Dict[str, Any]:
    return {
        "feature_name": feature,
        "module": module,
        "admin": list(admin),
        "lead_planner": list(lead_planner),
        "assistant": list(assistant),
        "available_permissions": list(available),
    }


DEFAULT_ACCESS_RULES: List[Dict[str, Any]] = [
    # Sales
    _rule("Leads", "Sales", RWD, [R, W], [R], RWD),
    _rule("Contacts", "Sales", RWD, [R, W], [R], RWD),
    _rule("Documents", "Sales", RWD, [R, W], [R], RWD),
    _rule("Campaigns", "Sales", RWD, [R, W], [R], RWD),
    _rule("Pipeline", "Sales", RWD, [R, W], [R], RWD),
    # Activities
    _rule("Tasks", "Activities", RWD, [R, W], [R, W], RWD),
    _rule("Meetings", "Activities", RWD, [R, W], [R, W], RWD),
    _rule("Email", "Activities", RWD, [R, W], [R], RWD),
    # Inventory
    _rule("Products", "Inventory", RWD, [R, W], [R], RWD),
    _rule("Logistics Hub", "Inventory", RWD, [R, W], [R], RWD),
    _rule("Orders", "Inventory", RWD, [R, W], [R], RWD),
    _rule("Invoices", "Inventory", RWD, [R, W], [], RWD),
    _rule("Vendors", "Inventory", RWD, [R, W], [R], RWD),
    # Management
    _rule("Account Settings", "Management", [R, W], [], [], [R, W]),
    _rule("Security Matrix", "Management", [R, W], [], [], [R, W]),
    _rule("Team", "Management", RWD, [R], [], RWD),
    _rule("Audit Logs", "Management", [R], [], [], [R]),
    _rule("Settings", "Management", [R, W], [], [], [R, W]),
    # General
    _rule("Dashboard", "General", [R], [R], [R], [R]),
    _rule("Home", "General", [R], [R], [R], [R]),
    _rule("Reports", "General", RWD, [R], [], RWD),
    _rule("Analytics", "General", [R], [R], [R], [R]),
    _rule("My Requests", "General", [R, W], [R, W], [R, W], [R, W]),
]

# Always backfilled when missing; other defaults may be deleted for good
CRITICAL_FEATURES = frozenset({
    "Dashboard",
    "Home",
    "Account Settings",
    "Reports",
    "Analytics",
    "My Requests",
    "Vendors",
})


class DuplicateFeatureError(Exception):
    """Raised when an access rule already exists for a feature name"""

    def __init__(self, feature_name: str):
        super().__init__(f"Access rule for feature '{feature_name}' already exists")
        self.feature_name = feature_name


def _enum_values(values) -> List[str]:
    return [v.value if isinstance(v, AccessAction) else str(v) for v in values]


def _new_rule(data: Dict[str, Any]) -> AccessRule:
    return AccessRule(**{k: list(v) if isinstance(v, list) else v for k, v in data.items()})


class AccessRuleStore:
    """Access rule queries and mutations over one database session"""

    LIST_FIELDS = ("admin", "lead_planner", "assistant", "available_permissions")

    def __init__(self, session: Session):
        self.session = session

    def find_by_feature(self, feature_name: str) -> Optional[AccessRule]:
        return self.session.exec(
            select(AccessRule).where(AccessRule.feature_name == feature_name)
        ).first()

    def get(self, rule_id: uuid.UUID) -> Optional[AccessRule]:
        return self.session.get(AccessRule, rule_id)

    def list_all(self) -> List[AccessRule]:
        return list(self.session.exec(
            select(AccessRule).order_by(AccessRule.module, AccessRule.feature_name)
        ).all())

    def _normalize(self, data: Dict[str, Any]) -> Dict[str, Any]:
        normalized = dict(data)
        for key in self.LIST_FIELDS:
            if normalized.get(key) is not None:
                normalized[key] = _enum_values(normalized[key])
        return normalized

    def create(self, data: Dict[str, Any], updated_by: Optional[str] = None) -> AccessRule:
        data = self._normalize(data)
        if self.find_by_feature(data["feature_name"]) is not None:
            raise DuplicateFeatureError(data["feature_name"])

        rule = AccessRule(**data, updated_by=updated_by)
        self.session.add(rule)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise DuplicateFeatureError(data["feature_name"])
        self.session.refresh(rule)

        logger.info(f"Created access rule {rule.id} for feature '{rule.feature_name}'")
        return rule

    def update(
        self,
        rule_id: uuid.UUID,
        changes: Dict[str, Any],
        updated_by: Optional[str] = None,
    ) -> Optional[AccessRule]:
        rule = self.get(rule_id)
        if rule is None:
            return None

        changes = self._normalize(changes)
        new_name = changes.get("feature_name")
        if new_name and new_name != rule.feature_name and self.find_by_feature(new_name) is not None:
            raise DuplicateFeatureError(new_name)

        for key, value in changes.items():
            setattr(rule, key, value)
        rule.updated_by = updated_by
        rule.updated_at = utc_now()

        self.session.add(rule)
        self.session.commit()
        self.session.refresh(rule)

        logger.info(f"Updated access rule {rule.id} ('{rule.feature_name}') by {updated_by}")
        return rule

    def delete(self, rule_id: uuid.UUID) -> bool:
        rule = self.get(rule_id)
        if rule is None:
            return False
        feature_name = rule.feature_name
        self.session.delete(rule)
        self.session.commit()
        logger.info(f"Deleted access rule {rule_id} ('{feature_name}')")
        return True

    def reset_defaults(self) -> List[AccessRule]:
        """Wipe every rule and restore the factory defaults"""
        for rule in self.session.exec(select(AccessRule)).all():
            self.session.delete(rule)
        self.session.flush()

        for data in DEFAULT_ACCESS_RULES:
            self.session.add(_new_rule(data))
        self.session.commit()

        logger.warning(f"Access rules reset to {len(DEFAULT_ACCESS_RULES)} factory defaults")
        return self.list_all()

    def seed_defaults(self) -> int:
        """
        Insert missing default rules and return how many were created.

        An empty store receives the whole default set; otherwise only the
        critical features are backfilled, so optional rules an administrator
        deleted stay deleted.
        """
        is_empty = self.session.exec(select(AccessRule.id)).first() is None
        candidates = [
            data for data in DEFAULT_ACCESS_RULES
            if is_empty or data["feature_name"] in CRITICAL_FEATURES
        ]

        created = 0
        for data in candidates:
            if self.find_by_feature(data["feature_name"]) is not None:
                continue
            self.session.add(_new_rule(data))
            try:
                self.session.commit()
                created += 1
            except IntegrityError:
                # Another instance seeded the same feature first
                self.session.rollback()
                logger.debug(f"Access rule '{data['feature_name']}' already seeded")

        if created:
            logger.info(f"Seeded {created} access rules")
        return created
