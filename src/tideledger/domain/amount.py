"""Exact monetary amounts.

Amounts are stored as an integer number of minor currency units (cents for
EUR). Arithmetic that needs scaling (multiplication, division, allocation) is
carried out on exact fractions and rounded half-to-even back to whole minor
units, so no binary floating point value ever enters a calculation.
"""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from functools import total_ordering
import re
from typing import Iterable, Optional, Sequence, Union

from tideledger.config import DEFAULT_CONFIG
from tideledger.domain.errors import (
    CurrencyMismatch,
    DivisionByZero,
    InvalidFormat,
    InvalidPartCount,
    UnsupportedCurrency,
)
from tideledger.utils.amount_parser import parse_amount

Scalar = Union[int, Decimal, Fraction, str]

DEFAULT_CURRENCY = DEFAULT_CONFIG.default_currency

_DECIMAL_LITERAL = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)$")


@dataclass(frozen=True)
class Currency:
    """Currency code with its minor unit exponent and display symbol."""

    code: str
    exponent: int
    symbol: str

    @property
    def scale(self) -> int:
        return 10**self.exponent


CURRENCIES = {
    "EUR": Currency("EUR", 2, "€"),
    "USD": Currency("USD", 2, "$"),
    "GBP": Currency("GBP", 2, "£"),
    "CHF": Currency("CHF", 2, "CHF"),
    "JPY": Currency("JPY", 0, "¥"),
}


def get_currency(code: str) -> Currency:
    """Look up a supported currency.

    Raises:
        UnsupportedCurrency: If the code is not configured
    """
    try:
        return CURRENCIES[code]
    except KeyError:
        raise UnsupportedCurrency(code)


@dataclass(frozen=True)
class NumberStyle:
    """Grouping and symbol placement used by Amount.format()."""

    decimal_separator: str
    group_separator: str
    symbol_first: bool
    symbol_spacing: str


GERMAN = NumberStyle(decimal_separator=",", group_separator=".", symbol_first=False, symbol_spacing=" ")
INTERNATIONAL = NumberStyle(decimal_separator=".", group_separator=",", symbol_first=True, symbol_spacing="")


class SignStyle(Enum):
    """How negative amounts are marked when formatted."""

    MINUS = "minus"
    PARENTHESES = "parentheses"


def _to_fraction(value: Scalar) -> Fraction:
    """Convert a scalar to an exact fraction, refusing floats."""
    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidFormat(value, "floating point values are not accepted")
    if isinstance(value, (int, Fraction)):
        return Fraction(value)
    if isinstance(value, Decimal):
        if not value.is_finite():
            raise InvalidFormat(value, "not a finite number")
        return Fraction(value)
    if isinstance(value, str):
        text = value.strip()
        if not _DECIMAL_LITERAL.match(text):
            raise InvalidFormat(value)
        return Fraction(Decimal(text))
    raise InvalidFormat(value, f"unsupported type {type(value).__name__}")


def _units_from_decimal(value: Union[Decimal, str], currency: Currency) -> int:
    units = _to_fraction(value) * currency.scale
    if units.denominator != 1:
        raise InvalidFormat(value, f"more than {currency.exponent} decimal places for {currency.code}")
    return units.numerator


@total_ordering
@dataclass(frozen=True)
class Amount:
    """Immutable monetary value in integer minor units."""

    minor_units: int
    currency: str = DEFAULT_CURRENCY

    def __post_init__(self):
        if isinstance(self.minor_units, bool) or not isinstance(self.minor_units, int):
            raise InvalidFormat(self.minor_units, "minor units must be an integer")
        get_currency(self.currency)

    # Creation

    @classmethod
    def new(cls, value: Union[str, int, Decimal], currency: str = DEFAULT_CURRENCY) -> "Amount":
        """Create an amount from a decimal literal or from integer minor units.

        Strings and Decimals are read as major units ("123.45" is 123.45 EUR)
        and must be exactly representable with the currency's exponent.
        Integers are taken as minor units (12345 is 123.45 EUR).

        Raises:
            InvalidFormat: If the value cannot be parsed, is a float, or has
                more decimal places than the currency allows
            UnsupportedCurrency: If the currency is unknown
        """
        info = get_currency(currency)
        if isinstance(value, bool):
            raise InvalidFormat(value)
        if isinstance(value, int):
            return cls(value, currency)
        if isinstance(value, (str, Decimal)):
            return cls(_units_from_decimal(value, info), currency)
        raise InvalidFormat(value, f"unsupported type {type(value).__name__}")

    @classmethod
    def from_minor_units(cls, minor_units: int, currency: str = DEFAULT_CURRENCY) -> "Amount":
        return cls(minor_units, currency)

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> "Amount":
        return cls(0, currency)

    @classmethod
    def parse(cls, text: str, currency: str = DEFAULT_CURRENCY) -> "Amount":
        """Parse user input such as "1.234,56", "€ 12,50" or "(99.95)".

        Raises:
            InvalidFormat: If the text is not a recognizable amount
        """
        try:
            value = parse_amount(text)
        except ValueError as e:
            raise InvalidFormat(text, str(e))
        return cls(_units_from_decimal(value, get_currency(currency)), currency)

    @classmethod
    def sum(cls, amounts: Iterable["Amount"], currency: Optional[str] = None) -> "Amount":
        """Sum amounts of a single currency.

        Args:
            amounts: Amounts to add up
            currency: Currency of the zero returned for an empty input
                (defaults to the configured default currency)

        Raises:
            CurrencyMismatch: If the amounts use different currencies
        """
        total: Optional[Amount] = None
        for amount in amounts:
            total = amount if total is None else total.add(amount)
        if total is None:
            return cls.zero(currency or DEFAULT_CURRENCY)
        return total

    # Arithmetic

    @property
    def currency_info(self) -> Currency:
        return get_currency(self.currency)

    def _check_currency(self, other: "Amount") -> None:
        if self.currency != other.currency:
            raise CurrencyMismatch(self.currency, other.currency)

    def add(self, other: "Amount") -> "Amount":
        self._check_currency(other)
        return Amount(self.minor_units + other.minor_units, self.currency)

    def subtract(self, other: "Amount") -> "Amount":
        self._check_currency(other)
        return Amount(self.minor_units - other.minor_units, self.currency)

    def negate(self) -> "Amount":
        return Amount(-self.minor_units, self.currency)

    def abs(self) -> "Amount":
        return Amount(abs(self.minor_units), self.currency)

    def multiply(self, factor: Scalar) -> "Amount":
        """Multiply by a scalar, rounding half to even to whole minor units."""
        return Amount(round(self.minor_units * _to_fraction(factor)), self.currency)

    def divide(self, divisor: Scalar) -> "Amount":
        """Divide by a scalar, rounding half to even to whole minor units.

        Use distribute() when the parts must add back up to this amount.

        Raises:
            DivisionByZero: If the divisor is zero
        """
        value = _to_fraction(divisor)
        if value == 0:
            raise DivisionByZero()
        return Amount(round(self.minor_units / value), self.currency)

    def __add__(self, other):
        if not isinstance(other, Amount):
            return NotImplemented
        return self.add(other)

    def __sub__(self, other):
        if not isinstance(other, Amount):
            return NotImplemented
        return self.subtract(other)

    def __neg__(self):
        return self.negate()

    def __abs__(self):
        return self.abs()

    def __mul__(self, factor):
        if isinstance(factor, Amount):
            return NotImplemented
        return self.multiply(factor)

    __rmul__ = __mul__

    # Distribution

    def distribute(self, parts: int) -> list["Amount"]:
        """Split into ``parts`` amounts that add up exactly to this amount.

        Each part gets the truncated quotient; the remainder is handed out one
        minor unit at a time (with this amount's sign) starting from the
        first part, so parts differ by at most one minor unit.

        Raises:
            InvalidPartCount: If parts is less than 1
        """
        if isinstance(parts, bool) or not isinstance(parts, int) or parts < 1:
            raise InvalidPartCount(parts)

        sign = -1 if self.minor_units < 0 else 1
        base = sign * (abs(self.minor_units) // parts)
        remainder = abs(self.minor_units - base * parts)
        return [
            Amount(base + (sign if index < remainder else 0), self.currency)
            for index in range(parts)
        ]

    def allocate(self, weights: Sequence[Scalar]) -> list["Amount"]:
        """Scale this amount by each weight with no rounding leakage.

        Every share is ``amount * weight`` rounded half to even; the shares
        are then corrected one minor unit at a time, largest rounding loss
        first, until they add up to ``amount * sum(weights)`` rounded. Signed
        weights that sum to zero therefore always produce shares that sum to
        exactly zero.
        """
        factors = [_to_fraction(weight) for weight in weights]
        exact = [self.minor_units * factor for factor in factors]
        shares = [round(value) for value in exact]
        residual = round(sum(exact, Fraction(0))) - sum(shares)

        if residual:
            step = 1 if residual > 0 else -1
            order = sorted(
                range(len(shares)),
                key=lambda i: (exact[i] - shares[i]) * step,
                reverse=True,
            )
            for index in order[: abs(residual)]:
                shares[index] += step

        return [Amount(units, self.currency) for units in shares]

    def distribute_by_ratio(self, ratios: Sequence[Scalar]) -> list["Amount"]:
        """Split by positive ratios; the parts add up exactly to this amount.

        Raises:
            DivisionByZero: If the ratios sum to zero
        """
        factors = [_to_fraction(ratio) for ratio in ratios]
        total = sum(factors, Fraction(0))
        if total == 0:
            raise DivisionByZero()
        return self.allocate([factor / total for factor in factors])

    # Comparison

    def compare(self, other: "Amount") -> int:
        """Return -1, 0 or 1 comparing this amount with another."""
        self._check_currency(other)
        return (self.minor_units > other.minor_units) - (self.minor_units < other.minor_units)

    def equals(self, other: "Amount") -> bool:
        return self.compare(other) == 0

    def __lt__(self, other):
        if not isinstance(other, Amount):
            return NotImplemented
        return self.compare(other) < 0

    def is_zero(self) -> bool:
        return self.minor_units == 0

    def is_positive(self) -> bool:
        return self.minor_units > 0

    def is_negative(self) -> bool:
        return self.minor_units < 0

    # Conversion and display

    def to_canonical(self) -> str:
        """Machine readable decimal string, e.g. "-1234.50"."""
        exponent = self.currency_info.exponent
        whole, fraction = divmod(abs(self.minor_units), self.currency_info.scale)
        sign = "-" if self.minor_units < 0 else ""
        if exponent == 0:
            return f"{sign}{whole}"
        return f"{sign}{whole}.{fraction:0{exponent}d}"

    def to_decimal(self) -> Decimal:
        return Decimal(self.to_canonical())

    def format(
        self,
        style: NumberStyle = GERMAN,
        sign: SignStyle = SignStyle.MINUS,
        symbol: bool = True,
    ) -> str:
        """Format for display, e.g. "1.234,56 €" or "(€1,234.56)"."""
        whole, _, fraction = self.abs().to_canonical().partition(".")
        groups = []
        while len(whole) > 3:
            groups.insert(0, whole[-3:])
            whole = whole[:-3]
        groups.insert(0, whole)
        number = style.group_separator.join(groups)
        if fraction:
            number = f"{number}{style.decimal_separator}{fraction}"

        if symbol:
            currency_symbol = self.currency_info.symbol
            if style.symbol_first:
                number = f"{currency_symbol}{style.symbol_spacing}{number}"
            else:
                number = f"{number}{style.symbol_spacing}{currency_symbol}"

        if not self.is_negative():
            return number
        if sign is SignStyle.PARENTHESES:
            return f"({number})"
        return f"-{number}"

    def __str__(self) -> str:
        return self.to_canonical()
