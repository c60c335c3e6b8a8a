"""Booking fee calculation.

CRITICAL BUSINESS LOGIC:
- Service fee and payment-processing fee are percentages of the subtotal
- Each fee is rounded to cents on its own BEFORE the total is summed
- The total is rounded again after summing (round-then-sum-then-round)
- Rounding is half-up, matching the amounts customers were quoted historically
- On a recognized public holiday the chef's rate is multiplied by their
  holiday multiplier
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from app.config import Settings, settings

CENTS = Decimal("0.01")


def round_money(amount: Decimal) -> Decimal:
    """Round to 2 decimal places, half-up."""
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def _to_decimal(value: Decimal | int | float | str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() keeps 0.1 as Decimal("0.1")
    return Decimal(str(value))


@dataclass(frozen=True)
class FeeConfig:
    """Fee percentages and the holiday calendar, injected at construction."""

    service_fee_percent: Decimal = Decimal("5")
    processing_fee_percent: Decimal = Decimal("3")
    public_holidays: frozenset[date] = field(default_factory=frozenset)

    @classmethod
    def from_settings(cls, config: Settings) -> "FeeConfig":
        return cls(
            service_fee_percent=_to_decimal(config.service_fee_percent),
            processing_fee_percent=_to_decimal(config.processing_fee_percent),
            public_holidays=frozenset(config.public_holidays),
        )

    @property
    def service_fee_rate(self) -> Decimal:
        return self.service_fee_percent / Decimal("100")

    @property
    def processing_fee_rate(self) -> Decimal:
        return self.processing_fee_percent / Decimal("100")


@dataclass(frozen=True)
class FeeBreakdown:
    subtotal: Decimal
    service_fee: Decimal
    processing_fee: Decimal
    total: Decimal

    def as_dict(self) -> dict[str, Decimal]:
        return {
            "subtotal": self.subtotal,
            "service_fee": self.service_fee,
            "processing_fee": self.processing_fee,
            "total": self.total,
        }


class FeeCalculator:
    """Pure fee arithmetic. Callers guarantee subtotal >= 0."""

    def __init__(self, config: FeeConfig | None = None) -> None:
        self.config = config or FeeConfig()

    def service_fee(self, subtotal: Decimal | int | float) -> Decimal:
        return round_money(_to_decimal(subtotal) * self.config.service_fee_rate)

    def processing_fee(self, subtotal: Decimal | int | float) -> Decimal:
        return round_money(_to_decimal(subtotal) * self.config.processing_fee_rate)

    def total(self, subtotal: Decimal | int | float) -> Decimal:
        amount = _to_decimal(subtotal)
        return round_money(amount + self.service_fee(amount) + self.processing_fee(amount))

    def breakdown(self, subtotal: Decimal | int | float) -> FeeBreakdown:
        """Compute every amount the customer is charged.

        Args:
            subtotal: Rate x party size, before fees

        Returns:
            FeeBreakdown: subtotal, both fees and the total
        """
        amount = _to_decimal(subtotal)
        return FeeBreakdown(
            subtotal=round_money(amount),
            service_fee=self.service_fee(amount),
            processing_fee=self.processing_fee(amount),
            total=self.total(amount),
        )

    def is_holiday(self, event_date: date) -> bool:
        return event_date in self.config.public_holidays

    def holiday_adjusted_rate(
        self,
        base_rate: Decimal | int | float,
        event_date: date,
        holiday_multiplier: Decimal | int | float,
    ) -> Decimal:
        """Return base_rate x multiplier on a public holiday, else base_rate."""
        rate = _to_decimal(base_rate)
        if self.is_holiday(event_date):
            return rate * _to_decimal(holiday_multiplier)
        return rate


fee_calculator = FeeCalculator(FeeConfig.from_settings(settings))
