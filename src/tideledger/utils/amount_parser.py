"""Amount parsing utilities."""

from decimal import Decimal, InvalidOperation
import re

_CURRENCY_SYMBOLS = re.compile(r"[$€£¥]")
_CURRENCY_CODE = re.compile(r"^[A-Z]{3}\s*|\s*[A-Z]{3}$")
_GROUPING_SPACES = re.compile(r"[\s']")
_COMMA_GROUPS = re.compile(r"^\d{1,3}(,\d{3})+$")
_DOT_GROUPS = re.compile(r"^\d{1,3}(\.\d{3}){2,}$")
_PLAIN_NUMBER = re.compile(r"^(\d+(\.\d*)?|\.\d+)$")


def parse_amount(amount_str: str) -> Decimal:
    """Parse an amount string into an exact Decimal.

    Handles both German and international notation:
    - "123.45", "-123.45", "+123.45"
    - "1,234.56" and "1.234,56"
    - "1.234.567" (German grouping without decimals)
    - "12,5" (German decimal comma)
    - "€ 123,45", "123.45 EUR", "$1,234.56"
    - "(123.45)" (negative in parentheses)
    - "1'234.56" and "1 234,56" (space or apostrophe grouping)

    When both separators occur, the one appearing last is the decimal
    separator. A lone comma followed by exactly three digit groups is read as
    grouping ("1,234" is 1234); otherwise a lone comma is a decimal comma.

    Args:
        amount_str: Amount string

    Returns:
        Decimal amount

    Raises:
        ValueError: If amount string cannot be parsed
    """
    if not amount_str or not amount_str.strip():
        raise ValueError("Empty amount string")

    text = amount_str.strip()

    # Parentheses notation (negative)
    is_negative = False
    if text.startswith("(") and text.endswith(")"):
        is_negative = True
        text = text[1:-1].strip()

    text = _CURRENCY_SYMBOLS.sub("", text)
    text = _CURRENCY_CODE.sub("", text.strip())
    text = _GROUPING_SPACES.sub("", text)

    if text.startswith(("-", "+")):
        if text[0] == "-":
            is_negative = not is_negative
        text = text[1:]

    has_comma = "," in text
    has_dot = "." in text
    if has_comma and has_dot:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif has_comma:
        if _COMMA_GROUPS.match(text):
            text = text.replace(",", "")
        else:
            text = text.replace(",", ".")
    elif has_dot and _DOT_GROUPS.match(text):
        text = text.replace(".", "")

    if not _PLAIN_NUMBER.match(text):
        raise ValueError(f"Could not parse amount '{amount_str}'")

    try:
        amount = Decimal(text)
    except InvalidOperation as e:
        raise ValueError(f"Could not parse amount '{amount_str}': {e}")

    return -amount if is_negative else amount
