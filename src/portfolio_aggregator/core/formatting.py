"""Number, unit, and address formatting helpers."""

from decimal import Decimal


def format_units(raw: int, decimals: int = 18) -> str:
    """
    Convert an integer on-chain amount to a decimal string.

    Parameters
    ----------
    raw : int
        Amount in the token's smallest unit
    decimals : int
        Token decimals

    Returns
    -------
    str
        Decimal string without exponent, always with at least one fractional digit

    Examples
    --------
    >>> format_units(1500000000000000000)
    '1.5'
    >>> format_units(0)
    '0.0'

    """
    amount = Decimal(int(raw)) / Decimal(10**decimals)
    text = format(amount.normalize(), "f") if amount else "0"
    if "." not in text:
        text += ".0"
    return text


def format_address(address: str) -> str:
    """Shorten an address to ``0x1234...abcd``."""
    return f"{address[:6]}...{address[-4:]}"


def format_number(value: Decimal, decimals: int = 2) -> str:
    """Format a number with thousands separators and at most ``decimals`` places."""
    quantized = round(Decimal(value), decimals).normalize()
    text = f"{quantized:,f}"
    return text


def format_currency(value: Decimal) -> str:
    """Format a USD amount with two decimals."""
    return f"${Decimal(value):,.2f}"
