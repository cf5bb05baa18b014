from services.resource_mapper import FIELD_MAP, storage_name, to_application, to_storage


def test_inbound_renames_storage_columns():
    row = {'id': 12, 'client_id': 1, 'lawyer_id': None, 'title': 'Case A', 'paid_amount': 500, 'opened_at': '2024-01-01'}
    assert to_application('practices', row) == {
        'id': 12, 'clientId': 1, 'lawyerId': None, 'title': 'Case A', 'paidAmount': 500, 'openedAt': '2024-01-01',
    }


def test_inbound_keeps_unknown_fields_and_none():
    assert to_application('clients', {'name': 'Mario', 'legacy_flag': True}) == {'name': 'Mario', 'legacy_flag': True}
    assert to_application('clients', None) is None


def test_inbound_maps_lists_element_wise():
    rows = [{'id': 1, 'due_date': '2024-06-01'}, {'id': 2, 'due_date': '2024-06-02'}]
    assert to_application('reminders', rows) == [
        {'id': 1, 'dueDate': '2024-06-01'},
        {'id': 2, 'dueDate': '2024-06-02'},
    ]


def test_outbound_only_carries_supplied_fields():
    for resource, table in FIELD_MAP.items():
        for field in table:
            row = to_storage(resource, {field: 'value'})
            assert row == {storage_name(resource, field): 'value'}


def test_outbound_partial_practice_update():
    assert to_storage('practices', {'id': 12, 'paidAmount': 500}) == {'id': 12, 'paid_amount': 500}


def test_outbound_drops_undeclared_fields():
    assert to_storage('clients', {'name': 'Mario', 'hacker': 'x'}) == {'name': 'Mario'}


def test_outbound_accepts_storage_names():
    assert to_storage('lawyers', {'billing_rate': 250}) == {'billing_rate': 250}


def test_outbound_unmapped_resource_passes_through():
    assert to_storage('widgets', {'someField': 1}) == {'someField': 1}
    assert to_storage('clients', None) == {}


def test_round_trip_restores_every_declared_field():
    for resource, table in FIELD_MAP.items():
        original = {field: f"{resource}:{field}" for field in table}
        assert to_application(resource, to_storage(resource, original)) == original
