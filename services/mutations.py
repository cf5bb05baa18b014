"""Create/update/delete functions, one per entity and operation.

Every function maps its application-shaped input through the outbound field
mapping and writes the result. None of them validates input beyond what the
store enforces, and none touches the cache: callers invalidate the affected
keys themselves (see services.invalidation).
"""
import logging
from typing import Any, Dict, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import DataError, IntegrityError, SQLAlchemyError

from models import db, FIRM_PROFILE_ID, Practice
from services.exceptions import ConstraintViolationError, NotFoundError, StorageError
from services.query_builder import RESOURCE_MODELS
from services.resource_mapper import to_storage

logger = logging.getLogger(__name__)


def _row_for(resource: str, data: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    model = RESOURCE_MODELS[resource]
    row = to_storage(resource, data or {})
    row.pop('id', None)
    try:
        return model.coerce(row)
    except (ValueError, OverflowError) as e:
        raise ConstraintViolationError(str(e), original_error=e)


def _commit():
    try:
        db.session.commit()
    except (IntegrityError, DataError) as e:
        db.session.rollback()
        raise ConstraintViolationError(str(e.orig), original_error=e)
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(str(e), original_error=e)


def _insert(resource: str, data: Dict[str, Any]) -> int:
    model = RESOURCE_MODELS[resource]
    obj = model(**_row_for(resource, data))
    db.session.add(obj)
    _commit()
    logger.info(f"Created {resource}/{obj.id}")
    return obj.id


def _update(resource: str, data: Dict[str, Any]) -> None:
    if not data or data.get('id') is None:
        raise ValueError(f"update of {resource} requires an id")
    model = RESOURCE_MODELS[resource]
    item_id = data['id']
    try:
        obj = db.session.get(model, item_id)
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(str(e), original_error=e)
    if obj is None:
        raise NotFoundError(f"Not found: {resource}/{item_id}")
    # only the supplied fields are written
    for column, value in _row_for(resource, data).items():
        setattr(obj, column, value)
    _commit()
    logger.info(f"Updated {resource}/{item_id}")


def _delete(resource: str, item_id: int) -> None:
    model = RESOURCE_MODELS[resource]
    try:
        obj = db.session.get(model, item_id)
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(str(e), original_error=e)
    if obj is None:
        return
    db.session.delete(obj)
    _commit()
    logger.info(f"Deleted {resource}/{item_id}")


# ---------------- Clients ---------------- #

def create_client(client):
    return _insert('clients', client)


def update_client(client):
    _update('clients', client)


def delete_client(client_id):
    """Remove a client. Its practices and documents are left in place."""
    _delete('clients', client_id)


# ---------------- Practices ---------------- #

def create_practice(practice):
    return _insert('practices', practice)


def update_practice(practice):
    _update('practices', practice)


def delete_practice(practice_id):
    _delete('practices', practice_id)


# ---------------- Lawyers ---------------- #

def create_lawyer(lawyer):
    return _insert('lawyers', lawyer)


def update_lawyer(lawyer):
    _update('lawyers', lawyer)


def delete_lawyer(lawyer_id):
    """Remove a lawyer row. Callers run ensure_lawyer_unassigned() first."""
    _delete('lawyers', lawyer_id)


def count_assigned_practices(lawyer_id) -> int:
    stmt = select(func.count()).select_from(Practice).where(Practice.lawyer_id == lawyer_id)
    try:
        return db.session.execute(stmt).scalar_one()
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(str(e), original_error=e)


def ensure_lawyer_unassigned(lawyer_id):
    """Refuse to go on while any practice still references the lawyer."""
    assigned = count_assigned_practices(lawyer_id)
    if assigned:
        raise ConstraintViolationError(
            f"Impossibile eliminare l'avvocato. È assegnato a {assigned} pratica/he."
        )


# ---------------- Documents ---------------- #

def add_document(document):
    return _insert('documents', document)


def delete_document(document_id):
    _delete('documents', document_id)


# ---------------- Reminders ---------------- #

def create_reminder(reminder):
    return _insert('reminders', reminder)


def delete_reminder(reminder_id):
    _delete('reminders', reminder_id)


# ---------------- Letters ---------------- #

def create_letter(letter):
    return _insert('letters', letter)


def delete_letter(letter_id):
    _delete('letters', letter_id)


# ---------------- Quotes ---------------- #

def create_quote(quote):
    return _insert('quotes', quote)


def delete_quote(quote_id):
    _delete('quotes', quote_id)


# ---------------- Time entries ---------------- #

def create_time_entry(entry):
    return _insert('time-entries', entry)


def delete_time_entry(entry_id):
    _delete('time-entries', entry_id)


# ---------------- Firm profile ---------------- #

def update_firm_profile(profile):
    """Insert or overwrite the firm profile singleton."""
    model = RESOURCE_MODELS['firm-profile']
    row = _row_for('firm-profile', profile)
    try:
        obj = db.session.get(model, FIRM_PROFILE_ID)
    except SQLAlchemyError as e:
        db.session.rollback()
        raise StorageError(str(e), original_error=e)
    if obj is None:
        obj = model(id=FIRM_PROFILE_ID)
        db.session.add(obj)
    for column, value in row.items():
        setattr(obj, column, value)
    _commit()
    logger.info("Saved firm-profile")


# ---------------- Profiles ---------------- #

def delete_profile(profile_id):
    _delete('profiles', profile_id)
