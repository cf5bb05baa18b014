from utils import parse_date

MONTHS_IT = [
    'gennaio', 'febbraio', 'marzo', 'aprile', 'maggio', 'giugno',
    'luglio', 'agosto', 'settembre', 'ottobre', 'novembre', 'dicembre',
]


def format_date(value, long=False):
    """Format a date the Italian way: 05/03/2024, or 5 marzo 2024 when long."""
    d = parse_date(value)
    if d is None:
        return ""
    if long:
        return f"{d.day} {MONTHS_IT[d.month - 1]} {d.year}"
    return d.strftime('%d/%m/%Y')


def format_currency(amount):
    """Format a number as Euro with Italian separators: 1.234,56 €"""
    if amount is None:
        return ""
    text = f"{float(amount):,.2f}"
    # swap separators: 1,234.56 -> 1.234,56
    text = text.replace(',', '_').replace('.', ',').replace('_', '.')
    return f"{text} €"


def init_app(app):
    """Register the filters for Jinja rendering."""
    app.jinja_env.filters['format_date'] = format_date
    app.jinja_env.filters['format_currency'] = format_currency
