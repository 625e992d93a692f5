"""Shared test fixtures and helpers."""

from datetime import date, datetime
from decimal import Decimal
from zoneinfo import ZoneInfo

import pytest
from django.apps import apps
from django.conf import settings
from rest_framework.test import APIClient

from Accounts.models import User
from Bookings.models import Booking
from Bookings.service import BookingService
from payments import (
    CASH,
    MOLLIE,
    PAYPAL,
    CashGateway,
    GatewayError,
    PaymentGateway,
    PaymentIntent,
    PaymentState,
    ProviderStatus,
    RefundResult,
)

# Monday 9 March 2026, mid-morning
NOW = datetime(2026, 3, 9, 10, 0, tzinfo=ZoneInfo("Europe/London"))
TODAY = date(2026, 3, 9)
TUESDAY = date(2026, 3, 10)
WEDNESDAY = date(2026, 3, 11)
SATURDAY = date(2026, 3, 14)
SUNDAY = date(2026, 3, 15)


class FakeGateway(PaymentGateway):
    """In-memory provider. Tests set ``statuses[payment_id]`` to steer it."""

    def __init__(self, name):
        self.name = name
        self.statuses = {}
        self.intents = []
        self.refunds = []
        self.fail_intent = False
        self.fail_query = False
        self.fail_refund = False

    def create_intent(self, amount, booking):
        if self.fail_intent:
            raise GatewayError(f"{self.name} is down", provider=self.name)

        payment_id = f"{self.name.lower()}_{len(self.intents) + 1}"
        self.intents.append((payment_id, amount, booking.pk))
        self.statuses[payment_id] = ProviderStatus.PENDING
        return PaymentIntent(
            provider_payment_id=payment_id,
            redirect_url=f"https://pay.example.com/{payment_id}",
        )

    def query_status(self, provider_payment_id):
        if self.fail_query:
            raise GatewayError(f"{self.name} is down", provider=self.name)

        status = self.statuses.get(provider_payment_id, ProviderStatus.PENDING)
        return PaymentState(
            status=status,
            provider_payment_id=provider_payment_id,
            transaction_id=f"tx_{provider_payment_id}" if status == ProviderStatus.PAID else None,
        )

    def refund(self, reference, amount, reason=""):
        if self.fail_refund:
            raise GatewayError("Refund rejected", provider=self.name, status_code=400)

        self.refunds.append((reference, amount, reason))
        return RefundResult(
            refund_id=f"re_{len(self.refunds)}",
            status="completed",
            amount=Decimal(amount),
        )


class FakeNotifier:

    def __init__(self):
        self.sent = []

    def send_confirmation(self, booking, details):
        self.sent.append(("confirmation", booking.pk))

    def send_admin_notification(self, booking, details, payment):
        self.sent.append(("admin", booking.pk))

    def send_refund_notice(self, booking, refund):
        self.sent.append(("refund", booking.pk))

    def send_admin_refund_notice(self, booking, refund):
        self.sent.append(("admin_refund", booking.pk))


def booking_data(**overrides):
    """A valid booking request as the request serializer would emit it."""
    data = {
        "customer_name": "Jane Doe",
        "email": "jane@example.com",
        "contact_number": "+447700900123",
        "first_line_of_address": "1 High Street",
        "town": "Crawley",
        "postcode": "RH10 1AA",
        "selected_date": TUESDAY,
        "selected_time_slot": "9:00-9:45 AM",
        "select_service": "Gutter Cleaning",
        "gutter_cleaning_options": [],
        "gutter_repairs_options": [],
        "select_home_style": "Terrace",
        "select_home_type": "",
        "number_of_bedrooms": "3 Bedroom",
        "number_of_stories": "",
        "message": "",
        "photos": [],
        "terms_conditions": True,
        "payment_method": MOLLIE,
    }
    data.update(overrides)
    return data


def booking_payload(**overrides):
    """The same request as JSON sent by the booking form."""
    data = booking_data(**overrides)
    data["selected_date"] = data["selected_date"].isoformat()
    return data


def make_booking(**overrides):
    fields = {
        "customer_name": "Jane Doe",
        "email": "jane@example.com",
        "contact_number": "+447700900123",
        "first_line_of_address": "1 High Street",
        "town": "Crawley",
        "postcode": "RH10 1AA",
        "postcode_group": "Crawley",
        "select_service": "Gutter Cleaning",
        "select_home_style": "Terrace",
        "number_of_bedrooms": "3 Bedroom",
        "selected_date": TUESDAY,
        "selected_time_slot": "9:00-9:45 AM",
        "total_price": Decimal("69"),
        "payment_method": MOLLIE,
    }
    fields.update(overrides)
    return Booking.objects.create(**fields)


@pytest.fixture
def gateways():
    return {
        PAYPAL: FakeGateway(PAYPAL),
        MOLLIE: FakeGateway(MOLLIE),
        CASH: CashGateway(),
    }


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def service(gateways, notifier, monkeypatch):
    """Booking engine on a fixed clock, also served by the HTTP views."""
    engine = BookingService(gateways=gateways, notifier=notifier, clock=lambda: NOW)
    monkeypatch.setattr(apps.get_app_config("Bookings"), "service", engine)
    return engine


@pytest.fixture
def admin_user(db):
    return User.objects.create_user(
        email="admin@example.com",
        password="secret-pass",
        full_name="Site Admin",
        role=User.ADMIN,
    )


@pytest.fixture
def other_admin(db):
    return User.objects.create_user(
        email="other@example.com",
        password="secret-pass",
        full_name="Other Admin",
        role=User.ADMIN,
    )


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture(scope="session")
def django_db_modify_db_settings(django_db_modify_db_settings_parallel_suffix, tmp_path_factory):
    """SQLite tests run on a file database so several threads can share it."""
    db_settings = settings.DATABASES["default"]
    if db_settings["ENGINE"] == "django.db.backends.sqlite3":
        db_settings.setdefault("TEST", {})["NAME"] = str(
            tmp_path_factory.mktemp("db") / "test.sqlite3"
        )
