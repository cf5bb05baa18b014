"""Fee arithmetic for quotes, practice billing and the dashboard.

All functions take and return application-shaped dicts (camelCase).
"""
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Optional

from filters import format_currency

CPA_RATE = 0.04  # Cassa Previdenza Avvocati
VAT_RATE = 0.22
HOURLY = 'Oraria'
TOP_CLIENTS = 5
UNKNOWN_CLIENT = 'Sconosciuto'


def quote_breakdown(fee) -> Dict[str, float]:
    """Split an agreed fee into fee, CPA 4%, VAT 22% on fee+CPA, and total."""
    fee = float(fee or 0)
    cpa = round(fee * CPA_RATE, 2)
    vat = round((fee + cpa) * VAT_RATE, 2)
    return {'fee': fee, 'cpa': cpa, 'vat': vat, 'total': round(fee + cpa + vat, 2)}


def total_hours(time_entries: Iterable[Dict[str, Any]]) -> float:
    return round(sum(float(e.get('hours') or 0) for e in time_entries or ()), 2)


def billable_amount(practice: Dict[str, Any], lawyer: Optional[Dict[str, Any]],
                    time_entries: Iterable[Dict[str, Any]]) -> float:
    """Hourly lawyers bill logged hours at their rate; otherwise the agreed fee."""
    if lawyer and lawyer.get('billingType') == HOURLY:
        return round(total_hours(time_entries) * float(lawyer.get('billingRate') or 0), 2)
    return float(practice.get('fee') or 0)


def practice_balance(practice: Dict[str, Any]) -> float:
    """Fee still due. Negative means the client has paid more than the fee."""
    return round(float(practice.get('fee') or 0) - float(practice.get('paidAmount') or 0), 2)


def practice_billing(practice, lawyer, time_entries) -> Dict[str, Any]:
    entries = list(time_entries or ())
    return {
        'practiceId': practice.get('id'),
        'totalHours': total_hours(entries),
        'billableAmount': billable_amount(practice, lawyer, entries),
        'fee': float(practice.get('fee') or 0),
        'paidAmount': float(practice.get('paidAmount') or 0),
        'balance': practice_balance(practice),
    }


def dashboard_summary(clients: List[Dict[str, Any]], practices: List[Dict[str, Any]]) -> Dict[str, Any]:
    total_fees = sum(float(p.get('fee') or 0) for p in practices)
    total_paid = sum(float(p.get('paidAmount') or 0) for p in practices)

    status_counts = defaultdict(int)
    monthly = defaultdict(float)
    fees_by_client = defaultdict(float)
    for p in practices:
        status_counts[p.get('status')] += 1
        opened = p.get('openedAt')
        if opened:
            monthly[str(opened)[:7]] += float(p.get('paidAmount') or 0)
        fees_by_client[p.get('clientId')] += float(p.get('fee') or 0)

    names = {c.get('id'): c.get('name') for c in clients}
    top = sorted(fees_by_client.items(), key=lambda item: item[1], reverse=True)[:TOP_CLIENTS]

    return {
        'clientCount': len(clients),
        'practiceCount': len(practices),
        'totalFees': round(total_fees, 2),
        'totalPaid': round(total_paid, 2),
        'totalDue': round(total_fees - total_paid, 2),
        'statusCounts': dict(status_counts),
        'monthlyRevenue': [
            {'month': month, 'amount': round(amount, 2)} for month, amount in sorted(monthly.items())
        ],
        'topClients': [
            {'clientId': client_id, 'name': names.get(client_id) or UNKNOWN_CLIENT, 'fee': round(fee, 2)}
            for client_id, fee in top
        ],
    }


def quote_text(firm: Dict[str, Any], client: Dict[str, Any], practice: Dict[str, Any],
               fees: Optional[Dict[str, float]] = None) -> str:
    """Plain-text quote, as submitted to the compliance check."""
    fees = fees or quote_breakdown(practice.get('fee'))
    lines = [
        "PREVENTIVO PER PRESTAZIONI PROFESSIONALI",
        f"DA: {firm.get('name', '')}, {firm.get('address', '')}, P.IVA: {firm.get('vatNumber', '')}",
        f"A: Spett.le {client.get('name', '')}, Cod. Fisc.: {client.get('taxcode', '')}",
        f"Oggetto: Preventivo per la pratica \"{practice.get('title', '')}\"",
        f"DESCRIZIONE ATTIVITÀ: {practice.get('notes') or 'Studio e analisi, consulenza, rappresentanza.'}",
        "COMPENSI:",
        f"- Onorario: {format_currency(fees['fee'])}",
        f"- CPA 4%: {format_currency(fees['cpa'])}",
        f"- IVA 22%: {format_currency(fees['vat'])}",
        f"- TOTALE: {format_currency(fees['total'])}",
        "Escluse spese vive.",
    ]
    return "\n".join(lines)


def quote_record(client_id: int, practice: Dict[str, Any]) -> Dict[str, Any]:
    """Application-shaped Quote ready for create_quote()."""
    fees = quote_breakdown(practice.get('fee'))
    return {
        'clientId': client_id,
        'practiceTitle': practice.get('title', ''),
        'practiceType': practice.get('type', ''),
        'practiceNotes': practice.get('notes') or '',
        **fees,
    }
