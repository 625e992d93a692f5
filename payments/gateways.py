"""
Payment gateway adapters.

Every provider is exposed through the same small capability set so the
booking engine never branches on provider SDK shapes:

    create_intent(amount, booking)        -> PaymentIntent
    query_status(provider_payment_id)     -> PaymentState
    capture_or_query(provider_payment_id) -> PaymentState
    refund(reference, amount, reason)     -> RefundResult

PayPal confirms a payment synchronously when the approved order is captured.
Mollie pushes status changes to a webhook; capturing there is just a status
query. Both end up as the same normalized ``ProviderStatus``.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Optional

import httpx
from rest_framework import status

from .exceptions import GatewayError

logger = logging.getLogger(__name__)

PAYPAL = "PayPal"
MOLLIE = "Mollie"
CASH = "Cash"


class ProviderStatus(str, Enum):
    PAID = "paid"
    PENDING = "pending"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass(frozen=True)
class PaymentIntent:
    provider_payment_id: Optional[str]
    redirect_url: Optional[str] = None


@dataclass(frozen=True)
class PaymentState:
    status: ProviderStatus
    provider_payment_id: Optional[str] = None
    transaction_id: Optional[str] = None
    amount: Optional[Decimal] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RefundResult:
    refund_id: str
    status: str
    amount: Decimal
    raw: Dict[str, Any] = field(default_factory=dict)


def format_amount(amount) -> str:
    return str(Decimal(amount).quantize(Decimal("0.01")))


def describe_booking(booking) -> str:
    return (
        f"Service: {booking.select_service}, "
        f"Date: {booking.selected_date}, "
        f"Time: {booking.selected_time_slot}"
    )


class PaymentGateway:
    """Base class for payment providers."""

    name = ""

    def create_intent(self, amount, booking) -> PaymentIntent:
        raise NotImplementedError

    def query_status(self, provider_payment_id: str) -> PaymentState:
        raise NotImplementedError

    def capture_or_query(self, provider_payment_id: str) -> PaymentState:
        return self.query_status(provider_payment_id)

    def refund(self, reference: str, amount, reason: str = "") -> RefundResult:
        raise NotImplementedError


class HttpGateway(PaymentGateway):
    """Shared JSON-over-HTTP plumbing for REST based providers."""

    def __init__(
        self,
        *,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    def _auth_headers(self) -> Dict[str, str]:
        return {}

    def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Optional[Dict[str, Any]] = None,
        data: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        auth: Optional[httpx.Auth] = None,
    ) -> Dict[str, Any]:
        url = f"{self._base_url}{path}"
        request_headers = {"Accept": "application/json"}
        if auth is None:
            request_headers.update(self._auth_headers())
        if headers:
            request_headers.update(headers)

        with httpx.Client(timeout=self._timeout, transport=self._transport) as client:
            try:
                response = client.request(
                    method,
                    url,
                    json=json_body,
                    data=data,
                    headers=request_headers,
                    auth=auth,
                )
                response.raise_for_status()
            except httpx.HTTPStatusError as exc:
                provider_status = exc.response.status_code
                logger.error(
                    "%s API error %s for %s %s: %s",
                    self.name,
                    provider_status,
                    method,
                    path,
                    exc.response.text[:500],
                )
                raise GatewayError(
                    f"{self.name} rejected the request ({provider_status})",
                    provider=self.name,
                    status_code=(
                        status.HTTP_400_BAD_REQUEST
                        if provider_status < 500
                        else status.HTTP_502_BAD_GATEWAY
                    ),
                    provider_status=provider_status,
                ) from exc
            except httpx.RequestError as exc:
                logger.error("%s request failure for %s %s: %s", self.name, method, path, exc)
                raise GatewayError(
                    f"Failed to reach {self.name}", provider=self.name
                ) from exc

        try:
            payload = response.json()
        except json.JSONDecodeError as exc:
            logger.error("Invalid JSON from %s for %s %s", self.name, method, path)
            raise GatewayError(
                f"Received malformed response from {self.name}", provider=self.name
            ) from exc

        if not isinstance(payload, dict):
            raise GatewayError(
                f"Received malformed response from {self.name}", provider=self.name
            )
        return payload


# =========================
# PAYPAL
# =========================

PAYPAL_ORDER_STATUSES = {
    "COMPLETED": ProviderStatus.PAID,
    "CREATED": ProviderStatus.PENDING,
    "SAVED": ProviderStatus.PENDING,
    "APPROVED": ProviderStatus.PENDING,
    "PAYER_ACTION_REQUIRED": ProviderStatus.PENDING,
    "VOIDED": ProviderStatus.CANCELLED,
    "CANCELLED": ProviderStatus.CANCELLED,
}

PAYPAL_FAILED_CAPTURES = {"DECLINED", "FAILED"}


class PayPalGateway(HttpGateway):
    """PayPal Orders v2: create order, customer approves, backend captures."""

    name = PAYPAL

    LIVE_URL = "https://api-m.paypal.com"
    SANDBOX_URL = "https://api-m.sandbox.paypal.com"

    def __init__(
        self,
        *,
        client_id: str,
        client_secret: str,
        return_url: str,
        cancel_url: str,
        currency: str = "GBP",
        mode: str = "sandbox",
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        super().__init__(
            base_url=self.LIVE_URL if mode == "live" else self.SANDBOX_URL,
            timeout=timeout,
            transport=transport,
        )
        self._client_id = client_id
        self._client_secret = client_secret
        self._return_url = return_url
        self._cancel_url = cancel_url
        self._currency = currency
        self._token: Optional[str] = None
        self._token_expires_at = 0.0

    def _access_token(self) -> str:
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token
        if not self._client_id or not self._client_secret:
            raise GatewayError("PayPal is not configured", provider=self.name)

        payload = self._request(
            "POST",
            "/v1/oauth2/token",
            data={"grant_type": "client_credentials"},
            auth=httpx.BasicAuth(self._client_id, self._client_secret),
        )
        token = payload.get("access_token")
        if not token:
            raise GatewayError("PayPal did not return an access token", provider=self.name)

        # Refresh a minute early
        self._token = token
        self._token_expires_at = time.monotonic() + int(payload.get("expires_in", 0)) - 60
        return token

    def _auth_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self._access_token()}"}

    def create_intent(self, amount, booking) -> PaymentIntent:
        order = self._request(
            "POST",
            "/v2/checkout/orders",
            json_body={
                "intent": "CAPTURE",
                "purchase_units": [
                    {
                        "reference_id": str(booking.pk),
                        "custom_id": str(booking.pk),
                        "amount": {
                            "currency_code": self._currency,
                            "value": format_amount(amount),
                        },
                        "description": describe_booking(booking),
                    }
                ],
                "application_context": {
                    "return_url": self._return_url,
                    "cancel_url": self._cancel_url,
                },
            },
            headers={"Prefer": "return=representation"},
        )

        order_id = order.get("id")
        approval_url = next(
            (
                link.get("href")
                for link in order.get("links", [])
                if link.get("rel") in ("approve", "payer-action")
            ),
            None,
        )
        if not order_id or not approval_url:
            raise GatewayError("PayPal order has no approval link", provider=self.name)

        logger.info("PayPal order %s created for booking %s", order_id, booking.pk)
        return PaymentIntent(provider_payment_id=order_id, redirect_url=approval_url)

    def query_status(self, provider_payment_id: str) -> PaymentState:
        order = self._request("GET", f"/v2/checkout/orders/{provider_payment_id}")
        return self._state_from_order(order, provider_payment_id)

    def capture_or_query(self, provider_payment_id: str) -> PaymentState:
        try:
            order = self._request(
                "POST",
                f"/v2/checkout/orders/{provider_payment_id}/capture",
                json_body={},
                headers={"Prefer": "return=representation"},
            )
        except GatewayError as exc:
            # 422: already captured or not approved yet, the order itself tells which
            if exc.provider_status != status.HTTP_422_UNPROCESSABLE_ENTITY:
                raise
            return self.query_status(provider_payment_id)
        return self._state_from_order(order, provider_payment_id)

    def refund(self, reference: str, amount, reason: str = "") -> RefundResult:
        body: Dict[str, Any] = {
            "amount": {
                "currency_code": self._currency,
                "value": format_amount(amount),
            }
        }
        if reason:
            body["note_to_payer"] = reason[:255]

        refund = self._request(
            "POST",
            f"/v2/payments/captures/{reference}/refund",
            json_body=body,
            headers={"Prefer": "return=representation"},
        )
        refund_id = refund.get("id")
        if not refund_id:
            raise GatewayError("PayPal refund response has no id", provider=self.name)
        return RefundResult(
            refund_id=refund_id,
            status=str(refund.get("status", "")).lower(),
            amount=Decimal(format_amount(amount)),
            raw=refund,
        )

    def _state_from_order(self, order: Dict[str, Any], order_id: str) -> PaymentState:
        order_status = str(order.get("status", "")).upper()
        normalized = PAYPAL_ORDER_STATUSES.get(order_status)
        if normalized is None:
            logger.warning("Unknown PayPal order status %r for %s", order_status, order_id)
            normalized = ProviderStatus.PENDING

        capture = self._first_capture(order)
        transaction_id = None
        amount = None
        if capture:
            transaction_id = capture.get("id")
            value = (capture.get("amount") or {}).get("value")
            amount = Decimal(value) if value else None
            if str(capture.get("status", "")).upper() in PAYPAL_FAILED_CAPTURES:
                normalized = ProviderStatus.FAILED

        return PaymentState(
            status=normalized,
            provider_payment_id=order.get("id", order_id),
            transaction_id=transaction_id,
            amount=amount,
            raw=order,
        )

    @staticmethod
    def _first_capture(order: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        for unit in order.get("purchase_units") or []:
            captures = (unit.get("payments") or {}).get("captures") or []
            if captures:
                return captures[0]
        return None


# =========================
# MOLLIE
# =========================

MOLLIE_PAYMENT_STATUSES = {
    "paid": ProviderStatus.PAID,
    "open": ProviderStatus.PENDING,
    "pending": ProviderStatus.PENDING,
    "authorized": ProviderStatus.PENDING,
    "expired": ProviderStatus.EXPIRED,
    "canceled": ProviderStatus.CANCELLED,
    "failed": ProviderStatus.FAILED,
}


class MollieGateway(HttpGateway):
    """Mollie Payments API: hosted checkout, status pushed to a webhook."""

    name = MOLLIE

    def __init__(
        self,
        *,
        api_key: str,
        webhook_url: str,
        frontend_url: str,
        currency: str = "GBP",
        base_url: str = "https://api.mollie.com/v2",
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        super().__init__(base_url=base_url, timeout=timeout, transport=transport)
        self._api_key = api_key
        self._webhook_url = webhook_url
        self._frontend_url = frontend_url.rstrip("/")
        self._currency = currency

    def _auth_headers(self) -> Dict[str, str]:
        if not self._api_key:
            raise GatewayError("Mollie is not configured", provider=self.name)
        return {"Authorization": f"Bearer {self._api_key}"}

    def create_intent(self, amount, booking) -> PaymentIntent:
        if Decimal(amount) <= 0:
            raise GatewayError(
                "Invalid amount: payment amount must be positive",
                provider=self.name,
                status_code=status.HTTP_400_BAD_REQUEST,
            )

        payment = self._request(
            "POST",
            "/payments",
            json_body={
                "amount": {
                    "currency": self._currency,
                    "value": format_amount(amount),
                },
                "description": describe_booking(booking),
                "redirectUrl": f"{self._frontend_url}/booking/confirmation?id={booking.pk}",
                "cancelUrl": f"{self._frontend_url}/booking/booking-cancelled?id={booking.pk}",
                "webhookUrl": self._webhook_url,
                "metadata": {
                    "bookingId": str(booking.pk),
                    "service": booking.select_service,
                    "date": str(booking.selected_date),
                    "timeSlot": booking.selected_time_slot,
                },
            },
        )

        payment_id = payment.get("id")
        checkout_url = ((payment.get("_links") or {}).get("checkout") or {}).get("href")
        if not payment_id or not checkout_url:
            raise GatewayError("Mollie payment has no checkout link", provider=self.name)

        logger.info("Mollie payment %s created for booking %s", payment_id, booking.pk)
        return PaymentIntent(provider_payment_id=payment_id, redirect_url=checkout_url)

    def query_status(self, provider_payment_id: str) -> PaymentState:
        payment = self._request("GET", f"/payments/{provider_payment_id}")

        payment_status = str(payment.get("status", "")).lower()
        normalized = MOLLIE_PAYMENT_STATUSES.get(payment_status)
        if normalized is None:
            logger.warning(
                "Unknown Mollie payment status %r for %s", payment_status, provider_payment_id
            )
            normalized = ProviderStatus.PENDING

        value = (payment.get("amount") or {}).get("value")
        payment_id = payment.get("id", provider_payment_id)
        return PaymentState(
            status=normalized,
            provider_payment_id=payment_id,
            # Mollie refunds are issued against the payment itself
            transaction_id=payment_id if normalized == ProviderStatus.PAID else None,
            amount=Decimal(value) if value else None,
            raw=payment,
        )

    def refund(self, reference: str, amount, reason: str = "") -> RefundResult:
        state = self.query_status(reference)
        if state.status != ProviderStatus.PAID:
            raise GatewayError(
                f"Payment {reference} is not in a paid state. Current status: {state.status.value}",
                provider=self.name,
                status_code=status.HTTP_400_BAD_REQUEST,
            )

        refund = self._request(
            "POST",
            f"/payments/{reference}/refunds",
            json_body={
                "amount": {
                    "currency": self._currency,
                    "value": format_amount(amount),
                },
                "description": reason,
            },
        )
        refund_id = refund.get("id")
        if not refund_id:
            raise GatewayError("Mollie refund response has no id", provider=self.name)
        return RefundResult(
            refund_id=refund_id,
            status=str(refund.get("status", "")).lower(),
            amount=Decimal(format_amount(amount)),
            raw=refund,
        )


# =========================
# CASH
# =========================

class CashGateway(PaymentGateway):
    """Cash is settled by hand, so there is never a provider to talk to."""

    name = CASH

    def create_intent(self, amount, booking) -> PaymentIntent:
        return PaymentIntent(provider_payment_id=None, redirect_url=None)

    def query_status(self, provider_payment_id: str) -> PaymentState:
        return PaymentState(status=ProviderStatus.PENDING, provider_payment_id=provider_payment_id)

    def refund(self, reference: str, amount, reason: str = "") -> RefundResult:
        raise GatewayError(
            "Cash payments are refunded manually",
            provider=self.name,
            status_code=status.HTTP_400_BAD_REQUEST,
        )


def build_gateways(config) -> Dict[str, PaymentGateway]:
    """Build one gateway per payment method from Django settings."""
    frontend_url = config.FRONTEND_URL.rstrip("/")
    timeout = config.PAYMENT_TIMEOUT

    return {
        PAYPAL: PayPalGateway(
            client_id=config.PAYPAL_CLIENT_ID,
            client_secret=config.PAYPAL_CLIENT_SECRET,
            return_url=f"{frontend_url}/paypal/return",
            cancel_url=f"{frontend_url}/booking-cancelled",
            currency=config.PAYMENT_CURRENCY,
            mode=config.PAYPAL_MODE,
            timeout=timeout,
        ),
        MOLLIE: MollieGateway(
            api_key=config.MOLLIE_API_KEY,
            webhook_url=f"{config.BASE_URL.rstrip('/')}/api/payments/mollie/webhook/",
            frontend_url=frontend_url,
            currency=config.PAYMENT_CURRENCY,
            timeout=timeout,
        ),
        CASH: CashGateway(),
    }
