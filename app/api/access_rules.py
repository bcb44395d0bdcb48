"""
Access rules management API endpoints (super-role only)
"""

from fastapi import APIRouter, Depends, HTTPException, status
from typing import List
import structlog
import uuid

from app.core.config import get_settings
from app.core.dependencies import get_access_rule_store, require_roles
from app.schemas.access_rule import (
    AccessRuleCreate,
    AccessRuleResponse,
    AccessRuleUpdate,
    MessageResponse,
)
from app.schemas.token import Principal
from app.services.access_rules import AccessRuleStore, DuplicateFeatureError

logger = structlog.get_logger(__name__)
settings = get_settings()
router = APIRouter()

require_super_role = require_roles(settings.SUPER_ROLE)


def _actor(principal: Principal) -> str:
    return principal.name or principal.email or settings.SUPER_ROLE


@router.get("/", response_model=List[AccessRuleResponse])
async def list_access_rules(
    principal: Principal = Depends(require_super_role),
    store: AccessRuleStore = Depends(get_access_rule_store),
):
    """List all access rules, backfilling critical defaults first"""
    try:
        store.seed_defaults()
        return store.list_all()
    except Exception as e:
        logger.error(f"Error listing access rules: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list access rules"
        )


@router.post("/", response_model=AccessRuleResponse, status_code=status.HTTP_201_CREATED)
async def create_access_rule(
    rule_data: AccessRuleCreate,
    principal: Principal = Depends(require_super_role),
    store: AccessRuleStore = Depends(get_access_rule_store),
):
    """Create a new access rule"""
    try:
        return store.create(rule_data.model_dump(), updated_by=_actor(principal))
    except DuplicateFeatureError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except Exception as e:
        store.session.rollback()
        logger.error(f"Error creating access rule: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create access rule"
        )


@router.post("/reset", response_model=MessageResponse)
async def reset_access_rules(
    principal: Principal = Depends(require_super_role),
    store: AccessRuleStore = Depends(get_access_rule_store),
):
    """Restore the factory default access rules"""
    try:
        store.reset_defaults()
        logger.warning(f"Access rules reset by {principal.id}")
        return MessageResponse(message="Security templates restored to factory defaults.")
    except Exception as e:
        store.session.rollback()
        logger.error(f"Error resetting access rules: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to reset access rules"
        )


@router.put("/{rule_id}", response_model=AccessRuleResponse)
async def update_access_rule(
    rule_id: uuid.UUID,
    rule_data: AccessRuleUpdate,
    principal: Principal = Depends(require_super_role),
    store: AccessRuleStore = Depends(get_access_rule_store),
):
    """Update an access rule"""
    try:
        rule = store.update(
            rule_id,
            rule_data.model_dump(exclude_unset=True, exclude_none=True),
            updated_by=_actor(principal),
        )
        if rule is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Access rule not found"
            )
        return rule

    except HTTPException:
        raise
    except DuplicateFeatureError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except Exception as e:
        store.session.rollback()
        logger.error(f"Error updating access rule: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update access rule"
        )


@router.delete("/{rule_id}", response_model=MessageResponse)
async def delete_access_rule(
    rule_id: uuid.UUID,
    principal: Principal = Depends(require_super_role),
    store: AccessRuleStore = Depends(get_access_rule_store),
):
    """Delete an access rule"""
    try:
        if not store.delete(rule_id):
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Access rule not found"
            )
        return MessageResponse(message="Access protocol decommissioned.")

    except HTTPException:
        raise
    except Exception as e:
        store.session.rollback()
        logger.error(f"Error deleting access rule: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete access rule"
        )
