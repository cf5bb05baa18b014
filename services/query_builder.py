"""Parse logical cache keys and turn them into SQLAlchemy selects.

A key looks like ``/api/<resource>[/<id>][?<param>=<value>&...]``. The
``/api/`` prefix is optional, so ``practices/12`` and ``/api/practices/12``
address the same row.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional
from urllib.parse import parse_qsl

from sqlalchemy import select

from models import (
    Client, Document, FirmProfile, Lawyer, Letter, Practice, Quote, Reminder,
    TimeEntry, User, FIRM_PROFILE_ID,
)
from services.exceptions import MalformedKeyError, NotFoundError
from utils import parse_int

API_PREFIX = '/api/'

RESOURCE_MODELS = {
    'clients': Client,
    'practices': Practice,
    'lawyers': Lawyer,
    'documents': Document,
    'reminders': Reminder,
    'letters': Letter,
    'quotes': Quote,
    'time-entries': TimeEntry,
    'firm-profile': FirmProfile,
    'profiles': User,
}

# Views computed from other resources rather than read from one table
DERIVED_RESOURCES = ('dashboard',)

# Singletons resolve to a fixed row whether or not the key carries an id
SINGLETONS = {'firm-profile': FIRM_PROFILE_ID}

DEFAULT_ORDERING = {
    'reminders': lambda: (Reminder.due_date.asc(), Reminder.id.asc()),
    # append-mostly logs, newest first
    'letters': lambda: (Letter.created_at.desc(), Letter.id.desc()),
    'quotes': lambda: (Quote.created_at.desc(), Quote.id.desc()),
    'profiles': lambda: (User.name.asc(), User.id.asc()),
}

# Filter groups per resource. Within a group only the first parameter present
# applies; separate groups combine with AND. Parameters not listed are ignored.
FILTER_GROUPS = {
    'documents': (('practiceId', 'clientId'),),
    'time-entries': (('practiceId', 'clientId'),),
    'practices': (('clientId',), ('lawyerId',), ('status',)),
    'reminders': (('practiceId',),),
    'letters': (('clientId',),),
    'quotes': (('clientId',),),
}

# Filter parameters whose values must be integer identifiers
ID_PARAMS = ('clientId', 'practiceId', 'lawyerId')


@dataclass(frozen=True)
class ResourceKey:
    """A parsed logical key."""
    raw: str
    resource: str
    item_id: Optional[int] = None
    params: Dict[str, str] = field(default_factory=dict)

    @property
    def is_item(self) -> bool:
        return self.item_id is not None

    @property
    def is_derived(self) -> bool:
        return self.resource in DERIVED_RESOURCES


def known_resources():
    return tuple(RESOURCE_MODELS) + DERIVED_RESOURCES


def parse_key(key: str) -> ResourceKey:
    """Split a logical key into resource, optional id and query parameters."""
    if not isinstance(key, str) or not key.strip():
        raise MalformedKeyError(f"Malformed API key: {key!r}")
    raw = key.strip()
    path, _, query = raw.partition('?')
    if path.startswith(API_PREFIX):
        path = path[len(API_PREFIX):]
    elif path.startswith('/'):
        raise MalformedKeyError(f"Malformed API key: {raw}")

    parts = [p for p in path.split('/') if p]
    if not parts or len(parts) > 2:
        raise MalformedKeyError(f"Malformed API key: {raw}")

    resource = parts[0]
    if resource not in RESOURCE_MODELS and resource not in DERIVED_RESOURCES:
        raise NotFoundError(f"Unknown API endpoint: {raw}")

    item_id = None
    if len(parts) == 2:
        item_id = parse_int(parts[1])
        if item_id is None:
            raise MalformedKeyError(f"Malformed identifier in API key: {raw}")
    elif resource in SINGLETONS:
        item_id = SINGLETONS[resource]

    params = dict(parse_qsl(query, keep_blank_values=False))
    for name in ID_PARAMS:
        if name in params and parse_int(params[name]) is None:
            raise MalformedKeyError(f"Malformed {name} in API key: {raw}")

    return ResourceKey(raw=raw, resource=resource, item_id=item_id, params=params)


def _filter_clause(resource: str, param: str, value: str):
    """Equality clause for one filter parameter, plus the join it needs."""
    model = RESOURCE_MODELS[resource]
    if resource == 'time-entries' and param == 'clientId':
        # time entries only know their practice; the client comes through it
        return Practice.client_id == parse_int(value), (Practice, TimeEntry.practice_id == Practice.id)
    column_name = {
        'clientId': 'client_id',
        'practiceId': 'practice_id',
        'lawyerId': 'lawyer_id',
    }.get(param, param)
    column = getattr(model, column_name)
    typed = parse_int(value) if param in ID_PARAMS else value
    return column == typed, None


def build_select(resource_key: ResourceKey):
    """Build the retrieval statement for a parsed key.

    Single-item keys become an identifier equality lookup. Collection keys
    start from every row, take the resource's default ordering and then its
    parameter filters.
    """
    resource = resource_key.resource
    model = RESOURCE_MODELS[resource]
    stmt = select(model)

    if resource_key.is_item:
        return stmt.where(model.id == resource_key.item_id)

    ordering = DEFAULT_ORDERING.get(resource)
    stmt = stmt.order_by(*(ordering() if ordering else (model.id.asc(),)))

    for group in FILTER_GROUPS.get(resource, ()):
        param = next((name for name in group if resource_key.params.get(name)), None)
        if param is None:
            continue
        clause, join = _filter_clause(resource, param, resource_key.params[param])
        if join is not None:
            stmt = stmt.join(*join)
        stmt = stmt.where(clause)
    return stmt
