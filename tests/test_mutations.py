import pytest

from services import mutations
from services.exceptions import ConstraintViolationError, NotFoundError
from services.fetcher import fetch


def _practice(**fields):
    client_id = mutations.create_client({'name': 'Mario Rossi'})
    return mutations.create_practice({
        'clientId': client_id, 'title': 'Case A', 'type': 'Civile', 'status': 'Aperta',
        'priority': 'Media', 'fee': 1000, 'paidAmount': 0, 'value': 0, 'openedAt': '2024-01-01',
        **fields,
    })


def test_create_returns_storage_id(ctx):
    first = mutations.create_client({'name': 'A'})
    second = mutations.create_client({'name': 'B'})
    assert isinstance(first, int)
    assert second == first + 1


def test_partial_update_keeps_other_fields(ctx):
    practice_id = _practice()
    before = fetch(f'/api/practices/{practice_id}')

    mutations.update_practice({'id': practice_id, 'paidAmount': 500})

    after = fetch(f'/api/practices/{practice_id}')
    assert after['paidAmount'] == 500
    for field in ('title', 'fee', 'status', 'type', 'priority', 'openedAt', 'clientId'):
        assert after[field] == before[field]


def test_update_requires_id(ctx):
    with pytest.raises(ValueError):
        mutations.update_client({'name': 'nobody'})


def test_update_missing_row(ctx):
    with pytest.raises(NotFoundError):
        mutations.update_lawyer({'id': 404, 'firstName': 'Ghost'})


def test_delete_missing_row_is_a_no_op(ctx):
    mutations.delete_reminder(404)


def test_not_null_violation(ctx):
    client_id = mutations.create_client({'name': 'A'})
    with pytest.raises(ConstraintViolationError):
        mutations.create_practice({'clientId': client_id})


def test_bad_date_is_a_constraint_violation(ctx):
    with pytest.raises(ConstraintViolationError):
        mutations.create_reminder({'title': 'X', 'dueDate': 'not-a-date'})
    with pytest.raises(ConstraintViolationError):
        mutations.create_reminder({'title': 'X', 'dueDate': 20240601})
    with pytest.raises(ConstraintViolationError):
        _practice(openedAt=20240101)


def test_deleting_client_leaves_practices(ctx):
    practice_id = _practice()
    client_id = fetch(f'/api/practices/{practice_id}')['clientId']
    mutations.delete_client(client_id)
    assert fetch(f'/api/practices/{practice_id}')['clientId'] == client_id


def test_lawyer_assignment_check(ctx):
    lawyer_id = mutations.create_lawyer({'firstName': 'Laura', 'lastName': 'Ricci', 'billingType': 'Oraria'})
    _practice(lawyerId=lawyer_id)
    _practice(lawyerId=lawyer_id)

    assert mutations.count_assigned_practices(lawyer_id) == 2
    with pytest.raises(ConstraintViolationError) as excinfo:
        mutations.ensure_lawyer_unassigned(lawyer_id)
    assert '2 pratica/he' in str(excinfo.value)


def test_unassigned_lawyer_can_be_deleted(ctx):
    lawyer_id = mutations.create_lawyer({'firstName': 'Roberto', 'lastName': 'Galli'})
    mutations.ensure_lawyer_unassigned(lawyer_id)
    mutations.delete_lawyer(lawyer_id)
    with pytest.raises(NotFoundError):
        fetch(f'/api/lawyers/{lawyer_id}')


def test_firm_profile_upsert(ctx):
    mutations.update_firm_profile({'name': 'Studio Bianchi', 'vatNumber': 'IT000'})
    profile = fetch('/api/firm-profile')
    assert profile['name'] == 'Studio Bianchi'
    assert profile['vatNumber'] == 'IT000'
    # untouched fields survive
    assert profile['phone'] == '06 1234567'


def test_firm_profile_created_when_missing(ctx):
    from models import db, FirmProfile
    db.session.delete(db.session.get(FirmProfile, 1))
    db.session.commit()

    mutations.update_firm_profile({'name': 'Nuovo Studio'})
    assert fetch('/api/firm-profile')['name'] == 'Nuovo Studio'


def test_time_entries_are_append_only(ctx):
    practice_id = _practice()
    entry_id = mutations.create_time_entry({'practiceId': practice_id, 'date': '2024-03-01', 'hours': 1.5})
    assert fetch(f'/api/time-entries/{entry_id}')['hours'] == 1.5
    assert not hasattr(mutations, 'update_time_entry')
