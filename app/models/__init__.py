from app.models.access_rule import AccessRule, AccessAction
from app.models.user import User
from app.models.lead import Lead, LeadStatus
from app.models.contact import Contact
from app.models.invoice import Invoice, InvoiceStatus
