from .exceptions import GatewayError
from .gateways import (
    CASH,
    MOLLIE,
    PAYPAL,
    CashGateway,
    MollieGateway,
    PaymentGateway,
    PaymentIntent,
    PaymentState,
    PayPalGateway,
    ProviderStatus,
    RefundResult,
    build_gateways,
)

__all__ = [
    "CASH",
    "MOLLIE",
    "PAYPAL",
    "CashGateway",
    "GatewayError",
    "MollieGateway",
    "PaymentGateway",
    "PaymentIntent",
    "PaymentState",
    "PayPalGateway",
    "ProviderStatus",
    "RefundResult",
    "build_gateways",
]
