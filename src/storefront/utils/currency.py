"""Money display helpers. Amounts are stored as integer cents."""


def format_price(cents: int, currency: str = "CAD") -> str:
    return f"${cents / 100:,.2f} {currency}"
