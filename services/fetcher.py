"""Resolve a logical key into application-shaped data.

This is the single read entry point: parse the key, build the statement,
run it, and hand the rows through the inbound field mapping. Errors are never
caught here beyond translating storage exceptions into the layer's own
taxonomy; there is no retry.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError

from models import db
from services.billing import dashboard_summary
from services.exceptions import NotFoundError, StorageError
from services.query_builder import build_select, parse_key
from services.resource_mapper import to_application

logger = logging.getLogger(__name__)


def _rows(stmt):
    try:
        return [row.to_dict() for row in db.session.execute(stmt).scalars().all()]
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(str(e), original_error=e)


def _collection(resource):
    return to_application(resource, _rows(build_select(parse_key(resource))))


def _derived(resource_key):
    if resource_key.resource == 'dashboard':
        return dashboard_summary(_collection('clients'), _collection('practices'))
    raise NotFoundError(f"Unknown API endpoint: {resource_key.raw}")


def fetch(key):
    """Fetch the data addressed by ``key``.

    Returns a dict for single-item keys and a list for collection keys.
    Raises NotFoundError when the item does not exist or the resource is
    unknown, MalformedKeyError for keys that do not parse, and StorageError
    when the store itself fails.
    """
    resource_key = parse_key(key)
    logger.debug(
        "Fetcher called with key: %s (resource=%s, id=%s, params=%s)",
        key, resource_key.resource, resource_key.item_id, resource_key.params,
    )

    if resource_key.is_derived:
        return _derived(resource_key)

    rows = _rows(build_select(resource_key))
    if resource_key.is_item:
        if not rows:
            raise NotFoundError(f"Not found: {resource_key.raw}")
        return to_application(resource_key.resource, rows[0])
    return to_application(resource_key.resource, rows)
