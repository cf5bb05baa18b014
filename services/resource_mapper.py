"""Field-name mapping between the application and the storage schema.

The application speaks camelCase (``clientId``, ``paidAmount``), the storage
tables snake_case (``client_id``, ``paid_amount``). Every resource declares
its fields once in ``FIELD_MAP``; a single generic mapper works in both
directions from that table.
"""
from typing import Any, Dict, List, Optional, Tuple, Union

Record = Dict[str, Any]


def _fields(*names: Union[str, Tuple[str, str]]) -> Dict[str, str]:
    """Build an application -> storage name table.

    Single-word names are the same on both sides; multi-word names are given
    as (application, storage) pairs.
    """
    table = {}
    for name in names:
        if isinstance(name, tuple):
            table[name[0]] = name[1]
        else:
            table[name] = name
    return table


FIELD_MAP: Dict[str, Dict[str, str]] = {
    'clients': _fields(
        'id', 'name', 'email', 'phone', 'taxcode', 'notes',
        ('createdAt', 'created_at'), 'priority',
    ),
    'practices': _fields(
        'id', ('clientId', 'client_id'), ('lawyerId', 'lawyer_id'), 'title', 'type',
        'status', 'value', ('openedAt', 'opened_at'), 'notes', 'priority', 'fee',
        ('paidAmount', 'paid_amount'),
    ),
    'lawyers': _fields(
        'id', ('firstName', 'first_name'), ('lastName', 'last_name'), 'email', 'phone',
        'specialization', ('photoUrl', 'photo_url'), ('billingType', 'billing_type'),
        ('billingRate', 'billing_rate'),
    ),
    'documents': _fields(
        'id', ('clientId', 'client_id'), ('practiceId', 'practice_id'), 'name', 'type',
        ('dataUrl', 'data_url'), ('createdAt', 'created_at'),
    ),
    'reminders': _fields(
        'id', ('practiceId', 'practice_id'), 'title', ('dueDate', 'due_date'), 'priority',
    ),
    'letters': _fields(
        'id', ('clientId', 'client_id'), 'subject', 'body', ('createdAt', 'created_at'),
    ),
    'quotes': _fields(
        'id', ('clientId', 'client_id'), ('practiceTitle', 'practice_title'),
        ('practiceType', 'practice_type'), ('practiceNotes', 'practice_notes'),
        'fee', 'cpa', 'vat', 'total', ('createdAt', 'created_at'),
    ),
    'time-entries': _fields(
        'id', ('practiceId', 'practice_id'), 'date', 'hours', 'description',
    ),
    'firm-profile': _fields(
        'id', 'name', 'address', ('vatNumber', 'vat_number'), 'email', 'phone',
        ('logoUrl', 'logo_url'),
    ),
    'profiles': _fields(
        'id', 'username', 'name', 'role', ('createdAt', 'created_at'),
    ),
}

# storage -> application, derived so the two directions cannot diverge
_INBOUND: Dict[str, Dict[str, str]] = {
    resource: {storage: app for app, storage in table.items()}
    for resource, table in FIELD_MAP.items()
}


def storage_name(resource: str, field: str) -> str:
    """Storage column for an application field (the field itself if unmapped)."""
    return FIELD_MAP.get(resource, {}).get(field, field)


def _inbound_one(resource: str, record: Optional[Record]) -> Optional[Record]:
    if record is None:
        return None
    renames = _INBOUND.get(resource)
    if not renames:
        return dict(record)
    return {renames.get(key, key): value for key, value in record.items()}


def to_application(resource: str, data: Union[Record, List[Record], None]):
    """Map a storage record, or a list of them, to application field names.

    Unknown fields pass through unchanged; ``None`` maps to ``None``.
    """
    if data is None:
        return None
    if isinstance(data, list):
        return [_inbound_one(resource, item) for item in data]
    return _inbound_one(resource, data)


def to_storage(resource: str, partial: Optional[Record]) -> Record:
    """Map a partial application object to a storage row.

    Only keys present in ``partial`` and declared for the resource are kept,
    so a partial update never carries fields the caller did not send. Keys
    already in storage form are accepted unchanged.
    """
    if not partial:
        return {}
    table = FIELD_MAP.get(resource)
    if table is None:
        return dict(partial)
    storage_names = _INBOUND[resource]
    row = {}
    for key, value in partial.items():
        if key in table:
            row[table[key]] = value
        elif key in storage_names:
            row[key] = value
    return row
