"""
Invoices API endpoints (dynamic access rules, feature 'Invoices')
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select, SQLModel
from typing import List, Optional
from datetime import date, datetime
import structlog
import uuid

from app.core.clock import utc_now
from app.core.database import get_session
from app.core.rbac_middleware import require_feature
from app.models.access_rule import AccessAction
from app.models.invoice import Invoice, InvoiceStatus
from app.schemas.access_rule import MessageResponse
from app.schemas.token import Principal

logger = structlog.get_logger(__name__)
router = APIRouter()

FEATURE = "Invoices"


class InvoiceCreate(SQLModel):
    """Schema for creating or replacing an invoice"""
    invoice_number: str
    client_name: str
    amount: float = 0
    status: InvoiceStatus = InvoiceStatus.DRAFT
    due_date: Optional[date] = None


class InvoiceResponse(SQLModel):
    """Schema for invoice response"""
    id: uuid.UUID
    invoice_number: str
    client_name: str
    amount: float
    status: InvoiceStatus
    due_date: Optional[date] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


def _get_invoice_or_404(session: Session, invoice_id: uuid.UUID) -> Invoice:
    invoice = session.get(Invoice, invoice_id)
    if not invoice:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Invoice not found"
        )
    return invoice


@router.get("/", response_model=List[InvoiceResponse])
async def list_invoices(
    principal: Principal = Depends(require_feature(FEATURE, AccessAction.READ)),
    session: Session = Depends(get_session)
):
    """List invoices, newest first"""
    return session.exec(select(Invoice).order_by(Invoice.created_at.desc())).all()


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(
    invoice_id: uuid.UUID,
    principal: Principal = Depends(require_feature(FEATURE, AccessAction.READ)),
    session: Session = Depends(get_session)
):
    return _get_invoice_or_404(session, invoice_id)


@router.post("/", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    invoice_data: InvoiceCreate,
    principal: Principal = Depends(require_feature(FEATURE, AccessAction.WRITE)),
    session: Session = Depends(get_session)
):
    """Create a new invoice"""
    try:
        invoice = Invoice(**invoice_data.model_dump())
        session.add(invoice)
        session.commit()
        session.refresh(invoice)

        logger.info(f"Created invoice {invoice.invoice_number}")
        return invoice

    except IntegrityError:
        session.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Invoice {invoice_data.invoice_number} already exists"
        )
    except Exception as e:
        session.rollback()
        logger.error(f"Error creating invoice: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create invoice"
        )


@router.put("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: uuid.UUID,
    invoice_data: InvoiceCreate,
    principal: Principal = Depends(require_feature(FEATURE, AccessAction.WRITE)),
    session: Session = Depends(get_session)
):
    """Update an invoice"""
    invoice = _get_invoice_or_404(session, invoice_id)
    for key, value in invoice_data.model_dump().items():
        setattr(invoice, key, value)
    invoice.updated_at = utc_now()

    session.add(invoice)
    session.commit()
    session.refresh(invoice)
    return invoice


@router.delete("/{invoice_id}", response_model=MessageResponse)
async def delete_invoice(
    invoice_id: uuid.UUID,
    principal: Principal = Depends(require_feature(FEATURE, AccessAction.DELETE)),
    session: Session = Depends(get_session)
):
    invoice = _get_invoice_or_404(session, invoice_id)
    invoice_number = invoice.invoice_number
    session.delete(invoice)
    session.commit()

    logger.info(f"Deleted invoice {invoice_number} by {principal.id}")
    return MessageResponse(message="Invoice deleted")
