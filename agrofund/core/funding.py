"""
Funding arithmetic shared by campaign payloads and reports.

Kept free of ORM and FastAPI imports so the rules can be unit-tested with
plain numbers.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, Optional, Union

from dateutil.relativedelta import relativedelta

Number = Union[Decimal, int, float, str, None]

_CENT = Decimal("0.01")
_ZERO = Decimal("0")


def to_decimal(value: Number) -> Decimal:
    """Coerce DB aggregates (``None``, float from SQLite, Decimal) to Decimal."""
    if value is None:
        return _ZERO
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def funding_progress(total: Number, target: Number) -> float:
    """
    Percentage of ``target`` raised so far, rounded half-up to 2 decimals.

    Returns ``0`` for a zero (or negative) target.  Values above 100 are
    legitimate: campaigns are not capped at their target.
    """
    total_d, target_d = to_decimal(total), to_decimal(target)
    if target_d <= 0:
        return 0.0
    return float((total_d / target_d * 100).quantize(_CENT, rounding=ROUND_HALF_UP))


def remaining_amount(total: Number, target: Number) -> Decimal:
    """Amount still missing to reach ``target``; never negative."""
    return max(_ZERO, to_decimal(target) - to_decimal(total))


@dataclass(frozen=True)
class FundingSummary:
    total_funds: Decimal
    investment_count: int
    investor_count: int
    funding_progress: float
    remaining_amount: Decimal


def summarize(target: Number, amounts: Iterable[Number], investor_ids: Iterable = ()) -> FundingSummary:
    """Build the ``funding_details`` block for one campaign."""
    amounts = [to_decimal(a) for a in amounts]
    total = sum(amounts, _ZERO)
    return FundingSummary(
        total_funds=total,
        investment_count=len(amounts),
        investor_count=len(set(investor_ids)),
        funding_progress=funding_progress(total, target),
        remaining_amount=remaining_amount(total, target),
    )


# ── Time helpers ──


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; every stored timestamp is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def add_months(start: datetime, months: int) -> datetime:
    """Calendar-month addition; Jan 31 + 1 month lands on the last day of Feb."""
    return start + relativedelta(months=months)


def is_window_open(end_date: datetime, now: Optional[datetime] = None) -> bool:
    """True until ``now`` is strictly after ``end_date``."""
    now = as_utc(now) if now is not None else utcnow()
    return not now > as_utc(end_date)
