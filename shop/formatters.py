from decimal import Decimal

from django.conf import settings

CURRENCY_SYMBOLS = {
    'usd': '$',
    'eur': '€',
    'gbp': '£',
    'inr': '₹',
}


def format_currency(amount_in_cents, currency=None):
    """Render an integer minor-unit amount, e.g. 1999 -> '$19.99'."""
    currency = (currency or settings.CURRENCY).lower()
    amount = Decimal(amount_in_cents) / 100
    symbol = CURRENCY_SYMBOLS.get(currency)
    if symbol:
        return f"{symbol}{amount:,.2f}"
    return f"{amount:,.2f} {currency.upper()}"
