import pytest

from services import mutations
from services.exceptions import MalformedKeyError, NotFoundError
from services.fetcher import fetch


def _client(name='Mario Rossi'):
    return mutations.create_client({'name': name, 'priority': 'Media'})


def _practice(client_id, **fields):
    return mutations.create_practice({'clientId': client_id, 'title': 'Case', **fields})


def test_missing_item_raises_not_found(ctx):
    with pytest.raises(NotFoundError) as excinfo:
        fetch('/api/practices/999')
    assert 'practices/999' in str(excinfo.value)


def test_malformed_key_propagates(ctx):
    with pytest.raises(MalformedKeyError):
        fetch('/api/practices/abc')


def test_item_is_mapped_to_application_fields(ctx):
    client_id = _client()
    practice_id = _practice(client_id, fee=1000, paidAmount=250, openedAt='2024-01-01')
    practice = fetch(f'/api/practices/{practice_id}')
    assert practice['clientId'] == client_id
    assert practice['paidAmount'] == 250
    assert practice['openedAt'] == '2024-01-01'
    assert 'paid_amount' not in practice


def test_documents_filtered_by_practice_ignore_client(ctx):
    first, second = _client('A'), _client('B')
    practice_id = _practice(first)
    mutations.add_document({'clientId': first, 'practiceId': practice_id, 'name': 'in.pdf'})
    mutations.add_document({'clientId': second, 'name': 'other.pdf'})
    mutations.add_document({'clientId': first, 'name': 'loose.pdf'})

    docs = fetch(f'/api/documents?practiceId={practice_id}&clientId={second}')
    assert [d['name'] for d in docs] == ['in.pdf']


def test_documents_filtered_by_client(ctx):
    first, second = _client('A'), _client('B')
    mutations.add_document({'clientId': first, 'name': 'a.pdf'})
    mutations.add_document({'clientId': second, 'name': 'b.pdf'})
    assert [d['name'] for d in fetch(f'/api/documents?clientId={first}')] == ['a.pdf']


def test_time_entries_by_client_go_through_practices(ctx):
    first, second = _client('A'), _client('B')
    mine, theirs = _practice(first), _practice(second)
    mutations.create_time_entry({'practiceId': mine, 'date': '2024-02-01', 'hours': 2})
    mutations.create_time_entry({'practiceId': theirs, 'date': '2024-02-01', 'hours': 5})

    entries = fetch(f'/api/time-entries?clientId={first}')
    assert [e['hours'] for e in entries] == [2]


def test_practice_filters_combine(ctx):
    client_id = _client()
    _practice(client_id, status='Aperta')
    closed = _practice(client_id, status='Chiusa')
    _practice(_client('Other'), status='Chiusa')

    found = fetch(f'/api/practices?clientId={client_id}&status=Chiusa')
    assert [p['id'] for p in found] == [closed]


def test_reminders_sorted_by_due_date(ctx):
    mutations.create_reminder({'title': 'late', 'dueDate': '2024-09-01', 'priority': 'Bassa'})
    mutations.create_reminder({'title': 'early', 'dueDate': '2024-03-01', 'priority': 'Alta'})
    mutations.create_reminder({'title': 'middle', 'dueDate': '2024-06-01', 'priority': 'Media'})
    assert [r['title'] for r in fetch('/api/reminders')] == ['early', 'middle', 'late']


def test_letters_newest_first(ctx):
    client_id = _client()
    mutations.create_letter({'clientId': client_id, 'subject': 'old', 'createdAt': '2024-01-01T10:00:00'})
    mutations.create_letter({'clientId': client_id, 'subject': 'new', 'createdAt': '2024-05-01T10:00:00'})
    assert [l['subject'] for l in fetch(f'/api/letters?clientId={client_id}')] == ['new', 'old']


def test_datetimes_keep_their_utc_suffix(ctx):
    client_id = _client()
    letter_id = mutations.create_letter({'clientId': client_id, 'subject': 'x', 'createdAt': '2024-01-01T10:00:00.000Z'})
    assert fetch(f'/api/letters/{letter_id}')['createdAt'] == '2024-01-01T10:00:00.000Z'
    # offsets are normalised to UTC
    mutations.update_client({'id': client_id, 'createdAt': '2024-01-01T12:00:00+02:00'})
    assert fetch(f'/api/clients/{client_id}')['createdAt'] == '2024-01-01T10:00:00.000Z'


def test_firm_profile_singleton(ctx):
    profile = fetch('/api/firm-profile')
    assert profile['id'] == 1
    assert profile['vatNumber'] == 'IT12345678901'


def test_profiles_hide_password_hash(ctx):
    profiles = fetch('/api/profiles')
    assert [p['username'] for p in profiles] == ['admin']
    assert 'passwordHash' not in profiles[0]
    assert 'password_hash' not in profiles[0]


def test_dashboard_summary(ctx):
    client_id = _client()
    _practice(client_id, fee=1000, paidAmount=400, status='Aperta', openedAt='2024-01-10')
    _practice(client_id, fee=500, paidAmount=500, status='Chiusa', openedAt='2024-02-10')

    summary = fetch('/api/dashboard')
    assert summary['clientCount'] == 1
    assert summary['practiceCount'] == 2
    assert summary['totalFees'] == 1500
    assert summary['totalDue'] == 600
    assert summary['statusCounts'] == {'Aperta': 1, 'Chiusa': 1}
    assert summary['monthlyRevenue'] == [
        {'month': '2024-01', 'amount': 400},
        {'month': '2024-02', 'amount': 500},
    ]
    assert summary['topClients'][0]['name'] == 'Mario Rossi'
