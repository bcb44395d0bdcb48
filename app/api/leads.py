"""
Leads API endpoints (static policy, masked per role)
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select, SQLModel
from typing import List, Optional
from datetime import datetime
import structlog
import uuid

from app.core.clock import utc_now
from app.core.database import get_session
from app.core.permissions import Permission
from app.core.rbac_middleware import require_access
from app.core.response_pipeline import PipelineRoute
from app.models.lead import Lead, LeadStatus
from app.schemas.access_rule import MessageResponse
from app.schemas.token import Principal

logger = structlog.get_logger(__name__)
router = APIRouter(route_class=PipelineRoute)

RESOURCE = "leads"


class LeadCreate(SQLModel):
    """Schema for creating or replacing a lead"""
    name: str
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    source: Optional[str] = None
    value: float = 0
    status: LeadStatus = LeadStatus.NEW
    assigned_to: Optional[uuid.UUID] = None


class LeadStatusUpdate(SQLModel):
    status: LeadStatus


class LeadResponse(SQLModel):
    """Schema for lead response"""
    id: uuid.UUID
    name: str
    company: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    source: Optional[str] = None
    value: float
    status: LeadStatus
    assigned_to: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


def _get_lead_or_404(session: Session, lead_id: uuid.UUID) -> Lead:
    lead = session.get(Lead, lead_id)
    if not lead:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Lead not found"
        )
    return lead


@router.get("/", response_model=List[LeadResponse])
async def list_leads(
    status_filter: Optional[LeadStatus] = None,
    principal: Principal = Depends(require_access(Permission.LEADS_VIEW, RESOURCE)),
    session: Session = Depends(get_session)
):
    """List leads, newest first"""
    try:
        query = select(Lead)
        if status_filter:
            query = query.where(Lead.status == status_filter)
        query = query.order_by(Lead.created_at.desc())
        return session.exec(query).all()

    except Exception as e:
        logger.error(f"Error listing leads: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to list leads"
        )


@router.get("/{lead_id}", response_model=LeadResponse)
async def get_lead(
    lead_id: uuid.UUID,
    principal: Principal = Depends(require_access(Permission.LEADS_VIEW, RESOURCE)),
    session: Session = Depends(get_session)
):
    """Get a specific lead"""
    return _get_lead_or_404(session, lead_id)


@router.post("/", response_model=LeadResponse, status_code=status.HTTP_201_CREATED)
async def create_lead(
    lead_data: LeadCreate,
    principal: Principal = Depends(require_access(Permission.LEADS_MANAGE, RESOURCE)),
    session: Session = Depends(get_session)
):
    """Create a new lead"""
    try:
        lead = Lead(**lead_data.model_dump())
        session.add(lead)
        session.commit()
        session.refresh(lead)

        logger.info(f"Created lead {lead.id} by {principal.id}")
        return lead

    except Exception as e:
        session.rollback()
        logger.error(f"Error creating lead: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create lead"
        )


@router.put("/{lead_id}", response_model=LeadResponse)
async def update_lead(
    lead_id: uuid.UUID,
    lead_data: LeadCreate,
    principal: Principal = Depends(require_access(Permission.LEADS_MANAGE, RESOURCE)),
    session: Session = Depends(get_session)
):
    """Update a lead"""
    lead = _get_lead_or_404(session, lead_id)
    try:
        for key, value in lead_data.model_dump().items():
            setattr(lead, key, value)
        lead.updated_at = utc_now()

        session.add(lead)
        session.commit()
        session.refresh(lead)

        logger.info(f"Updated lead {lead_id}")
        return lead

    except Exception as e:
        session.rollback()
        logger.error(f"Error updating lead: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update lead"
        )


@router.patch("/{lead_id}/status", response_model=LeadResponse)
async def update_lead_status(
    lead_id: uuid.UUID,
    status_data: LeadStatusUpdate,
    principal: Principal = Depends(require_access(Permission.LEADS_FULFILL, RESOURCE)),
    session: Session = Depends(get_session)
):
    """Move a lead through the pipeline"""
    lead = _get_lead_or_404(session, lead_id)
    lead.status = status_data.status
    lead.updated_at = utc_now()
    session.add(lead)
    session.commit()
    session.refresh(lead)

    logger.info(f"Lead {lead_id} moved to {lead.status.value}")
    return lead


@router.delete("/{lead_id}", response_model=MessageResponse)
async def delete_lead(
    lead_id: uuid.UUID,
    principal: Principal = Depends(require_access(Permission.LEADS_ROOT, RESOURCE)),
    session: Session = Depends(get_session)
):
    """Delete a lead"""
    lead = _get_lead_or_404(session, lead_id)
    session.delete(lead)
    session.commit()

    logger.info(f"Deleted lead {lead_id} by {principal.id}")
    return MessageResponse(message="Lead deleted")
