"""Which cached keys a write makes stale.

``INVALIDATION_RULES`` is the one place that records, per resource, the
filter parameters its keys can carry and which keys of other resources are
derived from it. Callers invoke ``invalidate_after`` once per successful
mutation instead of listing keys by hand.

After a write to resource T with record r, a cached key is stale when it is:

* the unfiltered collection key of T;
* the single-item key of r (every item key of T when r has no id);
* a filtered collection key of T, unless r (before and after the write)
  provably does not belong to it;
* a dependent key listed for T.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

from services.exceptions import NotFoundError
from services.query_builder import FILTER_GROUPS, parse_key
from services.resource_mapper import to_application, to_storage
from utils import parse_int

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class InvalidationRule:
    # query parameters that mirror a field of the record
    filter_params: Tuple[str, ...] = ()
    # (resource, parameter): keys of that resource carrying the parameter,
    # or every key of it when parameter is None
    dependents: Tuple[Tuple[str, Optional[str]], ...] = ()


INVALIDATION_RULES: Dict[str, InvalidationRule] = {
    'clients': InvalidationRule(dependents=(('dashboard', None),)),
    'practices': InvalidationRule(
        filter_params=('clientId', 'lawyerId', 'status'),
        dependents=(('dashboard', None), ('time-entries', 'clientId')),
    ),
    'lawyers': InvalidationRule(),
    'documents': InvalidationRule(filter_params=('clientId', 'practiceId')),
    'reminders': InvalidationRule(filter_params=('practiceId',)),
    'letters': InvalidationRule(filter_params=('clientId',)),
    'quotes': InvalidationRule(filter_params=('clientId',)),
    # clientId is not a time-entry field, so those keys are always dropped
    'time-entries': InvalidationRule(filter_params=('practiceId', 'clientId')),
    'firm-profile': InvalidationRule(),
    'profiles': InvalidationRule(),
}

_UNKNOWN = object()


def _norm(value) -> str:
    number = parse_int(value)
    return str(number) if number is not None else str(value)


def _as_written(resource: str, record: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """The record in application names, whichever naming the caller used."""
    if record is None:
        return None
    return to_application(resource, to_storage(resource, record))


def _known_values(field: str, record: Dict[str, Any], previous: Optional[Dict[str, Any]], partial: bool):
    """Values the field had before or after the write, or _UNKNOWN."""
    values = []
    if previous is not None:
        if field not in previous:
            return _UNKNOWN
        values.append(previous[field])
    if field in record:
        if partial and previous is None:
            return _UNKNOWN
        values.append(record[field])
    elif previous is None:
        return _UNKNOWN
    return {_norm(v) for v in values if v is not None}


def _effective_params(resource: str, params: Dict[str, str]) -> Dict[str, str]:
    """Parameters that actually filter: the first present one of each group."""
    effective = {}
    for group in FILTER_GROUPS.get(resource, ()):
        param = next((name for name in group if params.get(name)), None)
        if param is not None:
            effective[param] = params[param]
    return effective


def _excluded(resource: str, params: Dict[str, str], rule: InvalidationRule, record, previous, partial) -> bool:
    for param, wanted in _effective_params(resource, params).items():
        if param not in rule.filter_params:
            continue
        known = _known_values(param, record, previous, partial)
        if known is not _UNKNOWN and _norm(wanted) not in known:
            return True
    return False


def is_affected(key: str, resource: str, record: Optional[Dict[str, Any]] = None,
                previous: Optional[Dict[str, Any]] = None, partial: bool = False) -> bool:
    """True when a write to ``resource`` makes the cached ``key`` stale."""
    rule = INVALIDATION_RULES.get(resource, InvalidationRule())
    record = _as_written(resource, record) or {}
    previous = _as_written(resource, previous)
    try:
        rk = parse_key(key)
    except NotFoundError:
        return False

    if rk.resource == resource:
        if rk.is_item:
            record_id = record.get('id', previous.get('id') if previous else None)
            return record_id is None or str(rk.item_id) == _norm(record_id)
        return not _excluded(resource, rk.params, rule, record, previous, partial)

    for dependent, param in rule.dependents:
        if rk.resource == dependent and (param is None or param in rk.params):
            return True
    return False


def affected_keys(keys: Iterable[str], resource: str, record=None, previous=None, partial=False) -> List[str]:
    return [key for key in keys if is_affected(key, resource, record, previous, partial)]


def invalidate_after(cache, resource: str, record: Optional[Dict[str, Any]] = None,
                     previous: Optional[Dict[str, Any]] = None, partial: bool = False) -> List[str]:
    """Drop every cached key a write to ``resource`` may have made stale.

    ``record`` is the object as written, in application or storage field
    names (for a delete, the deleted record or just ``{'id': n}``); ``previous`` is the stored version
    before an update or delete, when the caller has it. Pass ``partial=True``
    for an update whose previous version is unknown.
    """
    dropped = cache.invalidate_where(
        lambda key: is_affected(key, resource, record, previous, partial)
    )
    logger.info(f"Write to {resource} invalidated {len(dropped)} key(s)")
    return dropped
