"""
Contacts API endpoints (static policy, masked per role)
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
from app.models.contact import Contact
from app.schemas.access_rule import MessageResponse
from app.schemas.token import Principal

logger = structlog.get_logger(__name__)
router = APIRouter(route_class=PipelineRoute)

RESOURCE = "contacts"


class ContactCreate(SQLModel):
    """Schema for creating or replacing a contact"""
    name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    company: Optional[str] = None
    notes: Optional[str] = None
    assigned_to: Optional[uuid.UUID] = None


class ContactResponse(SQLModel):
    """Schema for contact response"""
    id: uuid.UUID
    name: str
    email: Optional[str] = None
    phone_number: Optional[str] = None
    company: Optional[str] = None
    notes: Optional[str] = None
    assigned_to: Optional[uuid.UUID] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


@router.get("/", response_model=List[ContactResponse])
async def list_contacts(
    principal: Principal = Depends(require_access(Permission.CONTACTS_VIEW, RESOURCE)),
    session: Session = Depends(get_session)
):
    """List contacts by name"""
    return session.exec(select(Contact).order_by(Contact.name.asc())).all()


@router.get("/{contact_id}", response_model=ContactResponse)
async def get_contact(
    contact_id: uuid.UUID,
    principal: Principal = Depends(require_access(Permission.CONTACTS_VIEW, RESOURCE)),
    session: Session = Depends(get_session)
):
    contact = session.get(Contact, contact_id)
    if not contact:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")
    return contact


@router.post("/", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
async def create_contact(
    contact_data: ContactCreate,
    principal: Principal = Depends(require_access(Permission.CONTACTS_MANAGE, RESOURCE)),
    session: Session = Depends(get_session)
):
    """Create a new contact"""
    try:
        contact = Contact(**contact_data.model_dump())
        session.add(contact)
        session.commit()
        session.refresh(contact)

        logger.info(f"Created contact {contact.id}")
        return contact

    except Exception as e:
        session.rollback()
        logger.error(f"Error creating contact: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create contact"
        )


@router.put("/{contact_id}", response_model=ContactResponse)
async def update_contact(
    contact_id: uuid.UUID,
    contact_data: ContactCreate,
    principal: Principal = Depends(require_access(Permission.CONTACTS_MANAGE, RESOURCE)),
    session: Session = Depends(get_session)
):
    """Update a contact"""
    contact = session.get(Contact, contact_id)
    if not contact:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")

    for key, value in contact_data.model_dump().items():
        setattr(contact, key, value)
    contact.updated_at = utc_now()

    session.add(contact)
    session.commit()
    session.refresh(contact)
    return contact


@router.delete("/{contact_id}", response_model=MessageResponse)
async def delete_contact(
    contact_id: uuid.UUID,
    principal: Principal = Depends(require_access(Permission.CONTACTS_ROOT, RESOURCE)),
    session: Session = Depends(get_session)
):
    contact = session.get(Contact, contact_id)
    if not contact:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Contact not found")

    session.delete(contact)
    session.commit()

    logger.info(f"Deleted contact {contact_id} by {principal.id}")
    return MessageResponse(message="Contact deleted")
