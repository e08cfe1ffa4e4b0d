"""Exact-string and float projections of on-chain integer amounts."""

from decimal import Decimal, InvalidOperation

from chainindexer.converters.fields import MAX_DCDT_VALUE_LENGTH

NUM_DECIMALS_IN_FLOAT_BALANCE = 10

# Smallest value with more than MAX_DCDT_VALUE_LENGTH digits.
_MAX_DCDT_VALUE = 10**MAX_DCDT_VALUE_LENGTH


class BalanceConversionError(ValueError):
    pass


class BalanceConverter:
    def __init__(self, denomination: int) -> None:
        if denomination < 0:
            raise ValueError("denomination must not be negative")
        self._divider = Decimal(10) ** denomination

    def compute_balance_as_float(self, balance: int) -> float:
        if balance < 0:
            raise BalanceConversionError(f"negative balance {balance}")
        value = Decimal(balance) / self._divider
        return round(float(value), NUM_DECIMALS_IN_FLOAT_BALANCE)

    def convert_big_value_to_float(self, value: int) -> float:
        """Like compute_balance_as_float, but rejects values too long to be meaningful."""
        if is_value_too_big(value):
            raise BalanceConversionError("value is too big")
        return self.compute_balance_as_float(value)

    def compute_slice_of_strings_as_float(self, values: list[str]) -> list[float]:
        result: list[float] = []
        for raw in values:
            try:
                decimal_value = Decimal(raw)
            except (InvalidOperation, ValueError) as exc:
                raise BalanceConversionError(f"cannot parse {raw[:MAX_DCDT_VALUE_LENGTH]!r}") from exc
            if not decimal_value.is_finite() or decimal_value.adjusted() >= MAX_DCDT_VALUE_LENGTH:
                raise BalanceConversionError("value is too big")
            value = int(decimal_value)
            result.append(self.convert_big_value_to_float(value))
        return result


def is_value_too_big(value: int) -> bool:
    return abs(value) >= _MAX_DCDT_VALUE


def parse_big_int(raw: str) -> int | None:
    """Parse a base-10 integer string, ``None`` when it is not one or has too many digits."""
    digits = raw[1:] if raw.startswith("-") else raw
    if not digits.isdigit() or len(digits) > MAX_DCDT_VALUE_LENGTH:
        return None
    return int(raw)
