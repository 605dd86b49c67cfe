# app/commission.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Protocol

from app.errors import ValidationError
from settings import settings

CENT = Decimal("0.01")


class CommissionRateProvider(Protocol):
    def rate(self, tenant: Optional[str] = None) -> Decimal: ...


@dataclass(frozen=True)
class TransactionAmounts:
    total: Decimal
    commission: Decimal
    seller_amount: Decimal


class SettingsCommissionRates:
    """
    Resolves the platform cut from settings.
    tenant: None/"default", "vendor" or "institution".
    """

    def rate(self, tenant: Optional[str] = None) -> Decimal:
        key = (tenant or "default").strip().lower()
        if key == "vendor":
            return Decimal(settings.VENDOR_COMMISSION_RATE)
        if key == "institution":
            return Decimal(settings.INSTITUTION_COMMISSION_RATE)
        return Decimal(settings.COMMISSION_RATE)


class FixedCommissionRate:
    def __init__(self, value: Decimal | str | float):
        self._value = to_decimal(value)

    def rate(self, tenant: Optional[str] = None) -> Decimal:
        return self._value


def to_decimal(value) -> Decimal:
    try:
        # str() first so floats like 12.3 stay 12.3
        d = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError) as e:
        raise ValidationError(f"Invalid amount: {value!r}") from e
    if not d.is_finite():
        raise ValidationError(f"Invalid amount: {value!r}")
    return d


def quantize_money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def compute_amounts(unit_price, quantity: int, rate) -> TransactionAmounts:
    """
    total = quantity * unit_price
    commission = total * rate, rounded half-up to cents
    seller_amount = total - commission

    total == commission + seller_amount holds exactly at the stored precision.
    """
    price = to_decimal(unit_price)
    r = to_decimal(rate)
    if r < 0 or r >= 1:
        raise ValidationError(f"Commission rate out of range: {r}")

    total = quantize_money(price * int(quantity))
    commission = quantize_money(total * r)
    return TransactionAmounts(
        total=total,
        commission=commission,
        seller_amount=total - commission,
    )


def to_minor_units(amount) -> int:
    """Decimal currency amount -> provider minor units (pesewas/kobo/cents)."""
    return int((to_decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
