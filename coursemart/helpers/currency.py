from decimal import Decimal, ROUND_HALF_UP

from flask import current_app

# Stripe currencies charged in whole units
ZERO_DECIMAL_CURRENCIES = {
    "bif", "clp", "djf", "gnf", "jpy", "kmf", "krw", "mga",
    "pyg", "rwf", "ugx", "vnd", "vuv", "xaf", "xof", "xpf",
}


def get_currency():
    return current_app.config.get("STRIPE_CURRENCY", "usd").lower()


def to_minor_units(amount, currency=None):
    """Convert a price in major units to the integer amount Stripe expects."""
    currency = (currency or get_currency()).lower()
    value = Decimal(str(amount))
    if currency not in ZERO_DECIMAL_CURRENCIES:
        value = value * 100
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_minor_units(amount, currency=None):
    currency = (currency or get_currency()).lower()
    if currency in ZERO_DECIMAL_CURRENCIES:
        return float(amount)
    return round(amount / 100, 2)
