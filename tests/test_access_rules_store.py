"""
Tests for access rule persistence and default seeding
"""

import pytest
import uuid

from app.core.clock import as_utc
from app.models.access_rule import AccessAction, AccessRule
from app.services.access_rules import (
    CRITICAL_FEATURES,
    DEFAULT_ACCESS_RULES,
    AccessRuleStore,
    DuplicateFeatureError,
)


@pytest.fixture
def store(db) -> AccessRuleStore:
    return AccessRuleStore(db)


def _feature_names(store):
    return {rule.feature_name for rule in store.list_all()}


def test_default_rules_are_well_formed():
    names = [data["feature_name"] for data in DEFAULT_ACCESS_RULES]
    assert len(names) == len(set(names))
    assert CRITICAL_FEATURES <= set(names)

    for data in DEFAULT_ACCESS_RULES:
        for column in ("admin", "lead_planner", "assistant"):
            assert set(data[column]) <= set(data["available_permissions"])


def test_seed_on_empty_store_inserts_all_defaults(store):
    created = store.seed_defaults()

    assert created == len(DEFAULT_ACCESS_RULES)
    assert _feature_names(store) == {data["feature_name"] for data in DEFAULT_ACCESS_RULES}


def test_seed_is_idempotent(store):
    store.seed_defaults()
    assert store.seed_defaults() == 0
    assert len(store.list_all()) == len(DEFAULT_ACCESS_RULES)


def test_seed_backfills_only_critical_features(store):
    store.seed_defaults()
    store.delete(store.find_by_feature("Dashboard").id)
    store.delete(store.find_by_feature("Campaigns").id)

    assert store.seed_defaults() == 1

    names = _feature_names(store)
    assert "Dashboard" in names
    assert "Campaigns" not in names


def test_seed_on_partially_populated_store(store):
    store.create({"feature_name": "Invoices", "module": "Inventory", "lead_planner": [AccessAction.READ]})

    created = store.seed_defaults()

    assert created == len(CRITICAL_FEATURES)
    assert _feature_names(store) == CRITICAL_FEATURES | {"Invoices"}


def test_create_normalizes_actions(store):
    rule = store.create(
        {
            "feature_name": "Invoices",
            "module": "Inventory",
            "admin": [AccessAction.READ, AccessAction.WRITE],
            "lead_planner": ["Read"],
        },
        updated_by="Admin User",
    )

    assert rule.admin == ["Read", "Write"]
    assert rule.lead_planner == ["Read"]
    assert rule.assistant == []
    assert rule.updated_by == "Admin User"
    assert store.find_by_feature("Invoices").id == rule.id


def test_create_duplicate_feature_raises(store):
    store.create({"feature_name": "Invoices", "module": "Inventory"})

    with pytest.raises(DuplicateFeatureError):
        store.create({"feature_name": "Invoices", "module": "Sales"})


def test_find_by_feature_is_exact(store):
    store.create({"feature_name": "Invoices", "module": "Inventory"})
    assert store.find_by_feature("invoices") is None
    assert store.find_by_feature("Invoice") is None


def test_list_all_orders_by_module_then_feature(store):
    store.create({"feature_name": "Zeta", "module": "Alpha"})
    store.create({"feature_name": "Beta", "module": "Omega"})
    store.create({"feature_name": "Alpha", "module": "Alpha"})

    assert [rule.feature_name for rule in store.list_all()] == ["Alpha", "Zeta", "Beta"]


def test_update_changes_lists_and_stamps_audit(store):
    rule = store.create({"feature_name": "Invoices", "module": "Inventory"})
    before = rule.updated_at

    updated = store.update(rule.id, {"assistant": [AccessAction.READ]}, updated_by="Ops")

    assert updated.assistant == ["Read"]
    assert updated.module == "Inventory"
    assert updated.updated_by == "Ops"
    assert as_utc(updated.updated_at) >= as_utc(before)


def test_update_rename_to_existing_feature_raises(store):
    store.create({"feature_name": "Invoices", "module": "Inventory"})
    other = store.create({"feature_name": "Orders", "module": "Inventory"})

    with pytest.raises(DuplicateFeatureError):
        store.update(other.id, {"feature_name": "Invoices"})


def test_update_missing_rule_returns_none(store):
    assert store.update(uuid.uuid4(), {"module": "Sales"}) is None


def test_delete(store):
    rule = store.create({"feature_name": "Invoices", "module": "Inventory"})

    assert store.delete(rule.id) is True
    assert store.find_by_feature("Invoices") is None
    assert store.delete(rule.id) is False


def test_reset_restores_factory_defaults(store, db):
    store.seed_defaults()
    store.create({"feature_name": "Custom", "module": "Sales"})
    store.update(store.find_by_feature("Leads").id, {"assistant": []})

    rules = store.reset_defaults()

    assert len(rules) == len(DEFAULT_ACCESS_RULES)
    assert store.find_by_feature("Custom") is None
    assert store.find_by_feature("Leads").assistant == ["Read"]
    assert db.get(AccessRule, rules[0].id) is not None


def test_actions_for_unknown_column_is_empty():
    rule = AccessRule(feature_name="Invoices", admin=["Read"])
    assert rule.actions_for("admin") == ["Read"]
    assert rule.actions_for("intern") == []


def test_rule_timestamps_are_timezone_aware(store):
    assert AccessRule(feature_name="Invoices").updated_at.tzinfo is not None

    rule = store.create({"feature_name": "Invoices", "module": "Inventory"})
    created_at = as_utc(rule.updated_at)
    updated = store.update(rule.id, {"module": "Sales"})

    assert as_utc(updated.updated_at) >= created_at
