from filters import format_currency, format_date
from services.billing import (
    billable_amount, dashboard_summary, practice_balance, practice_billing, quote_breakdown,
    quote_record, quote_text,
)

HOURLY_LAWYER = {'id': 1, 'billingType': 'Oraria', 'billingRate': 250}
FIXED_LAWYER = {'id': 2, 'billingType': 'Fissa', 'billingRate': 2500}
ENTRIES = [{'hours': 2.5}, {'hours': 1.5}]


def test_quote_breakdown():
    assert quote_breakdown(1000) == {'fee': 1000.0, 'cpa': 40.0, 'vat': 228.8, 'total': 1268.8}
    assert quote_breakdown(None)['total'] == 0


def test_hourly_lawyer_bills_hours():
    practice = {'id': 101, 'fee': 3500}
    assert billable_amount(practice, HOURLY_LAWYER, ENTRIES) == 1000


def test_fixed_or_unassigned_bills_fee():
    practice = {'id': 102, 'fee': 2500}
    assert billable_amount(practice, FIXED_LAWYER, ENTRIES) == 2500
    assert billable_amount(practice, None, ENTRIES) == 2500


def test_overpayment_shows_as_credit():
    assert practice_balance({'fee': 1000, 'paidAmount': 1200}) == -200


def test_practice_billing_summary():
    summary = practice_billing({'id': 101, 'fee': 3500, 'paidAmount': 1000}, HOURLY_LAWYER, ENTRIES)
    assert summary == {
        'practiceId': 101,
        'totalHours': 4.0,
        'billableAmount': 1000.0,
        'fee': 3500.0,
        'paidAmount': 1000.0,
        'balance': 2500.0,
    }


def test_top_clients_fall_back_to_unknown_name():
    summary = dashboard_summary([], [{'clientId': 9, 'fee': 100, 'status': 'Aperta'}])
    assert summary['topClients'] == [{'clientId': 9, 'name': 'Sconosciuto', 'fee': 100}]
    assert summary['monthlyRevenue'] == []


def test_quote_text_and_record():
    firm = {'name': 'Studio', 'address': 'Via Roma 1', 'vatNumber': 'IT1'}
    client = {'name': 'Mario Rossi', 'taxcode': 'RSS'}
    practice = {'title': 'Case A', 'type': 'Civile', 'fee': 1000}

    text = quote_text(firm, client, practice)
    assert 'Spett.le Mario Rossi' in text
    assert '- TOTALE: 1.268,80 €' in text

    record = quote_record(1, practice)
    assert record['clientId'] == 1
    assert record['practiceTitle'] == 'Case A'
    assert record['total'] == 1268.8


def test_italian_formatting():
    assert format_currency(1234.5) == '1.234,50 €'
    assert format_date('2024-03-05') == '05/03/2024'
    assert format_date('2024-03-05', long=True) == '5 marzo 2024'
    assert format_date(None) == ''
