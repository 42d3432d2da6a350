"""
Shipping rate estimation interface.

Rate estimation belongs to the host application's shipping integration. The
order engine only needs a collaborator that quotes named rates for a
shipment; FlatRateEstimator covers fixed price lists.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, Iterable, Mapping, NamedTuple, Protocol, Union

from order_engine.core.logging import get_logger

if TYPE_CHECKING:
    from order_engine.database.models.shipment import Shipment

logger = get_logger(__name__)


class RateQuote(NamedTuple):
    """A price quoted by one shipping method."""

    name: str
    cost: Decimal


class ShippingRateEstimator(Protocol):
    """Quotes shipping rates for a shipment."""

    def shipping_rates(self, shipment: "Shipment") -> Iterable[RateQuote]:
        ...


class ShippingRateError(Exception):
    """Raised when a rate table is misconfigured."""

    def __init__(self, message: str, **context):
        super().__init__(message)
        self.context = context


class FlatRateEstimator:
    """
    Quotes the same fixed rates for every shipment.

    Example:
        >>> estimator = FlatRateEstimator({"Ground": "5.00", "Express": "15.00"})
        >>> [quote.name for quote in estimator.shipping_rates(shipment)]
        ['Ground', 'Express']
    """

    def __init__(self, rates: Mapping[str, Union[Decimal, str, int]]):
        quotes = []
        for name, cost in rates.items():
            cost = Decimal(str(cost)).quantize(Decimal("0.01"))
            if cost < 0:
                raise ShippingRateError(
                    "Shipping rate cannot be negative",
                    method=name,
                    cost=str(cost),
                )
            quotes.append(RateQuote(name=name, cost=cost))
        self._quotes = tuple(quotes)

    def shipping_rates(self, shipment: "Shipment") -> list[RateQuote]:
        logger.debug(
            "Quoting flat shipping rates",
            shipment_id=str(shipment.id),
            methods=[quote.name for quote in self._quotes],
        )
        return list(self._quotes)
