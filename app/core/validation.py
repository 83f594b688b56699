from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Tuple, List, Union
import re

CENTS = Decimal("0.01")

# Largest value a BIGINT money column can hold.
MAX_CENTS = 2**63 - 1

Amount = Union[int, float, Decimal, str]


_CURRENCY_NOISE = re.compile(r"[R$€£¥\s]")
_NON_NUMERIC = re.compile(r"[^0-9.]")


def _normalize_separators(text: str) -> str:
    """Reduce thousands/decimal separators to a plain ``1234.56`` form.

    With both separators present, whichever comes last is the decimal one;
    a single comma on its own is taken as decimal (pt-BR style).
    """
    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            return text.replace(".", "").replace(",", ".")
        return text.replace(",", "")
    if text.count(",") == 1:
        return text.replace(",", ".")
    return text.replace(",", "")


def parse_money(value: Optional[str]) -> Tuple[Decimal, List[str]]:
    """Parse user-typed money such as ``"R$ 1.234,56"`` or ``"(1,234.56)"``.

    Parentheses or a leading minus make the result negative. Returns
    ``(amount, warnings)``; raises ValueError when nothing numeric is left.
    """
    warnings: List[str] = []
    text = _CURRENCY_NOISE.sub("", "" if value is None else str(value))
    if not text:
        raise ValueError("Amount is required")

    negative = False
    if text.startswith("(") and text.endswith(")"):
        negative, text = True, text[1:-1]
    if text.startswith("-"):
        negative, text = True, text[1:]

    digits = _NON_NUMERIC.sub("", _normalize_separators(text))
    if not digits:
        raise ValueError("Invalid amount")
    try:
        amount = Decimal(digits)
    except InvalidOperation:
        raise ValueError(f"Could not parse amount '{value}'") from None

    return (-amount if negative else amount), warnings


def to_cents(value: Amount) -> int:
    """Convert a major-unit amount (10.50) into integer minor units (1050).

    Floats go through ``str`` first so 0.1 + 0.2 style noise does not leak into
    the rounding; strings accept the formats understood by ``parse_money``.
    Raises ValueError for non-numeric, NaN or infinite input.
    """
    if isinstance(value, bool) or value is None:
        raise ValueError("Amount must be a number")

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, str):
        amount, _warnings = parse_money(value)
    else:
        try:
            amount = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Could not parse amount '{value}'") from None

    if not amount.is_finite():
        raise ValueError("Amount must be a finite number")

    try:
        return int(amount.quantize(CENTS, rounding=ROUND_HALF_UP) * 100)
    except InvalidOperation:
        raise ValueError(f"Amount '{value}' is out of range") from None


def from_cents(cents: int) -> Decimal:
    """Convert integer minor units back into a major-unit Decimal."""
    return (Decimal(int(cents or 0)) / 100).quantize(CENTS)


def format_money(cents: int) -> str:
    """Render minor units for user-facing messages, e.g. 123450 -> '1234.50'."""
    return f"{from_cents(cents):.2f}"
