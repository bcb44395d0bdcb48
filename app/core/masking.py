"""
Field-masking engine for outbound payloads

Redacts configured fields on records (or lists of records) before they leave
the API. The stored data is never touched: records are shallow-copied, and a
record owned by the caller is returned in full.
"""

from enum import Enum
from functools import lru_cache
from typing import Any, Iterable, Optional

from app.core.permissions import DEFAULT_OWNER_FIELD

MASKED_EMAIL = "*****@****.com"
MASKED_PHONE = "***-***-****"
MASKED_VALUE = "****"
REDACTED = "[REDACTED]"


class FieldCategory(str, Enum):
    """Kind of sensitive field, decides the redaction marker"""
    EMAIL = "email"
    PHONE = "phone"
    VALUE = "value"
    GENERIC = "generic"


REDACTION_MARKERS = {
    FieldCategory.EMAIL: MASKED_EMAIL,
    FieldCategory.PHONE: MASKED_PHONE,
    FieldCategory.VALUE: MASKED_VALUE,
    FieldCategory.GENERIC: REDACTED,
}

# Checked in order; first hint found in the field name wins
_CATEGORY_HINTS = (
    ("email", FieldCategory.EMAIL),
    ("phone", FieldCategory.PHONE),
    ("value", FieldCategory.VALUE),
)


@lru_cache(maxsize=512)
def categorize_field(field_name: str) -> FieldCategory:
    lowered = field_name.lower()
    for hint, category in _CATEGORY_HINTS:
        if hint in lowered:
            return category
    return FieldCategory.GENERIC


def redaction_for(field_name: str) -> str:
    return REDACTION_MARKERS[categorize_field(field_name)]


def _owner_id(owner: Any) -> Optional[str]:
    if isinstance(owner, dict):
        owner = owner.get("id", owner.get("_id"))
    if owner is None:
        return None
    return str(owner)


def is_owned_by(record: dict, principal_id: Any, owner_field: str = DEFAULT_OWNER_FIELD) -> bool:
    """True when the record's owner field (direct id or nested {"id"}) is the principal"""
    if principal_id is None:
        return False
    owner = _owner_id(record.get(owner_field))
    return owner is not None and owner == str(principal_id)


def mask_record(
    record: dict,
    fields_to_mask: Iterable[str],
    principal_id: Any = None,
    owner_field: str = DEFAULT_OWNER_FIELD,
) -> dict:
    if is_owned_by(record, principal_id, owner_field):
        return record

    masked = dict(record)
    for field_name in fields_to_mask:
        # Absent or empty values stay as they are
        if masked.get(field_name):
            masked[field_name] = redaction_for(field_name)
    return masked


def mask_data(
    data: Any,
    fields_to_mask: Iterable[str],
    principal_id: Any = None,
    owner_field: str = DEFAULT_OWNER_FIELD,
) -> Any:
    """
    Mask sensitive fields in a record or a list of records.

    Lists are masked element by element; nested objects inside a record are
    left alone. Primitives and None come back unchanged.
    """
    fields = tuple(fields_to_mask or ())
    if not fields:
        return data

    if isinstance(data, list):
        return [mask_data(item, fields, principal_id, owner_field) for item in data]

    if isinstance(data, dict):
        return mask_record(data, fields, principal_id, owner_field)

    return data
