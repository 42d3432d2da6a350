"""
Promotion calculators and the adjustment-creating promotion action.

Calculators turn an adjustable (order, line item or shipment) into a discount
amount. CreateAdjustment is the promotion action that owns a calculator and
serves as the live source of the adjustments it creates, so the adjustment
amount follows the adjustable whenever the order is updated.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional, Protocol, Union

from order_engine.core.logging import get_logger
from order_engine.database.base import ZERO
from order_engine.database.models.adjustment import Adjustment
from order_engine.services.orders.enums import AdjustmentKind

logger = get_logger(__name__)

CENT = Decimal("0.01")


class CalculatorError(Exception):
    """Base exception for calculator configuration errors."""

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.context = context


class Calculator(Protocol):
    def compute(self, adjustable: Any) -> Decimal:
        ...


def _to_decimal(value: Union[Decimal, str, int], field_name: str) -> Decimal:
    try:
        amount = Decimal(str(value))
    except ArithmeticError as e:
        raise CalculatorError(
            f"{field_name} must be a number", field=field_name, value=str(value)
        ) from e
    if amount < 0:
        raise CalculatorError(
            f"{field_name} cannot be negative", field=field_name, value=str(amount)
        )
    return amount


class FlatPercentItemTotal:
    """
    Percentage of the adjustable's item total, rounded to cents.

    Args:
        preferred_flat_percent: Percentage between 0 and 100
    """

    MAX_PERCENT = Decimal("100")

    def __init__(self, preferred_flat_percent: Union[Decimal, str, int] = 0):
        percent = _to_decimal(preferred_flat_percent, "preferred_flat_percent")
        if percent > self.MAX_PERCENT:
            raise CalculatorError(
                "preferred_flat_percent exceeds maximum",
                value=str(percent),
                max_value=str(self.MAX_PERCENT),
            )
        self.preferred_flat_percent = percent

    def compute(self, adjustable: Any) -> Decimal:
        item_total = adjustable.item_total
        return (item_total * self.preferred_flat_percent / Decimal("100")).quantize(
            CENT, rounding=ROUND_HALF_UP
        )


class FlatRate:
    """Fixed amount regardless of the adjustable."""

    def __init__(self, preferred_amount: Union[Decimal, str, int] = 0):
        self.preferred_amount = _to_decimal(preferred_amount, "preferred_amount").quantize(
            CENT, rounding=ROUND_HALF_UP
        )

    def compute(self, adjustable: Any) -> Decimal:
        return self.preferred_amount


class CreateAdjustment:
    """
    Promotion action creating discount adjustments.

    The discount never exceeds the adjustable's item total, so a promotion
    cannot make an order negative on its own.
    """

    def __init__(self, promotion_name: str, calculator: Calculator):
        self.promotion_name = promotion_name
        self.calculator = calculator

    def compute_amount(self, adjustable: Any) -> Decimal:
        """
        Discount amount for the adjustable, as a non-positive value.

        Args:
            adjustable: Order, line item or shipment

        Returns:
            Negative discount amount, or zero
        """
        item_total = adjustable.item_total
        discount = min(item_total, self.calculator.compute(adjustable))
        if discount <= ZERO:
            return ZERO
        return -discount

    def create_adjustment(
        self, adjustable: Any, label: Optional[str] = None
    ) -> Adjustment:
        """
        Attach a promotion adjustment to the adjustable.

        Args:
            adjustable: Order, line item or shipment to discount
            label: Adjustment label, defaults to the promotion name

        Returns:
            The new adjustment, already appended to the adjustable
        """
        adjustment = Adjustment(
            source=self,
            kind=AdjustmentKind.PROMOTION,
            label=label or f"Promotion ({self.promotion_name})",
            amount=self.compute_amount(adjustable),
        )
        adjustable.adjustments.append(adjustment)

        logger.info(
            "Promotion adjustment created",
            promotion=self.promotion_name,
            adjustable=type(adjustable).__name__,
            amount=str(adjustment.amount),
        )
        return adjustment
