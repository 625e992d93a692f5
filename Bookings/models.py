from django.db import models
from django.db.models import Q


# =========================
# BOOKING QUERIES
# =========================

class BookingQuerySet(models.QuerySet):

    SEARCH_FIELDS = (
        "customer_name",
        "email",
        "contact_number",
        "first_line_of_address",
        "town",
        "postcode",
        "selected_time_slot",
        "select_service",
        "message",
        "payment_method",
        "payment_status",
        "refund_status",
        "booked_by",
        "number_of_bedrooms",
    )

    def on_date(self, day_date):
        return self.filter(selected_date=day_date).order_by("created_at", "id")

    def for_provider(self, provider_name, payment_id):
        """Booking correlated with a provider payment id, or None."""
        lookup = Booking.PROVIDER_ID_FIELDS.get(provider_name)
        if not lookup or not payment_id:
            return None
        return self.filter(**{lookup: payment_id}).first()

    def search(self, term):
        term = (term or "").strip()
        if not term:
            return self

        query = Q()
        for field in self.SEARCH_FIELDS:
            query |= Q(**{f"{field}__icontains": term})
        return self.filter(query)


# =========================
# BOOKING MODEL
# =========================

class Booking(models.Model):
    """
    A customer's reservation of one time slot, with its payment and
    refund state. The slot itself lives in the slots app and points
    back here through Slot.booked_by.
    """

    # Services
    GUTTER_CLEANING = "Gutter Cleaning"
    GUTTER_REPAIR = "Gutter Repair"

    SERVICE_CHOICES = [
        (GUTTER_CLEANING, "Gutter Cleaning"),
        (GUTTER_REPAIR, "Gutter Repair"),
    ]

    # Payment methods
    PAYPAL = "PayPal"
    MOLLIE = "Mollie"
    CASH = "Cash"

    PAYMENT_METHOD_CHOICES = [
        (PAYPAL, "PayPal"),
        (MOLLIE, "Mollie"),
        (CASH, "Cash"),
    ]

    # Payment lifecycle states
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    PAYMENT_STATUS_CHOICES = [
        (PENDING, "Pending"),
        (COMPLETED, "Completed"),
        (FAILED, "Failed"),
        (CANCELLED, "Cancelled"),
    ]

    # Refund states, unset until a refund is attempted
    REFUND_PENDING = "pending"
    REFUND_COMPLETED = "completed"
    REFUND_FAILED = "failed"
    REFUND_REVERSED = "reversed"

    REFUND_STATUS_CHOICES = [
        (REFUND_PENDING, "Pending"),
        (REFUND_COMPLETED, "Completed"),
        (REFUND_FAILED, "Failed"),
        (REFUND_REVERSED, "Reversed"),
    ]

    BY_ADMIN = "admin"
    BY_CUSTOMER = "customer"

    BOOKED_BY_CHOICES = [
        (BY_ADMIN, "Admin"),
        (BY_CUSTOMER, "Customer"),
    ]

    PROVIDER_ID_FIELDS = {
        PAYPAL: "paypal_order_id",
        MOLLIE: "mollie_payment_id",
    }

    # Contact
    customer_name = models.CharField(max_length=100)
    email = models.EmailField()
    contact_number = models.CharField(max_length=20)

    # Address
    first_line_of_address = models.CharField(max_length=100)
    town = models.CharField(max_length=50)
    postcode = models.CharField(max_length=10)
    postcode_group = models.CharField(max_length=50)

    # Service selection
    select_service = models.CharField(max_length=20, choices=SERVICE_CHOICES)
    gutter_cleaning_options = models.JSONField(default=list, blank=True)
    gutter_repairs_options = models.JSONField(default=list, blank=True)

    # Home descriptor
    select_home_style = models.CharField(max_length=30)
    select_home_type = models.CharField(max_length=30, blank=True)
    number_of_bedrooms = models.CharField(max_length=20, blank=True)
    number_of_stories = models.CharField(max_length=2, blank=True)

    message = models.TextField(blank=True)
    photos = models.JSONField(default=list, blank=True)
    terms_conditions = models.BooleanField(default=False)

    selected_date = models.DateField()
    selected_time_slot = models.CharField(max_length=20)

    # Snapshotted at creation, never recomputed
    total_price = models.DecimalField(max_digits=10, decimal_places=2)

    payment_method = models.CharField(
        max_length=10,
        choices=PAYMENT_METHOD_CHOICES
    )
    payment_status = models.CharField(
        max_length=20,
        choices=PAYMENT_STATUS_CHOICES,
        default=PENDING
    )

    # Provider correlation
    paypal_order_id = models.CharField(
        max_length=100, unique=True, null=True, blank=True
    )
    mollie_payment_id = models.CharField(
        max_length=100, unique=True, null=True, blank=True
    )
    capture_id = models.CharField(max_length=100, null=True, blank=True)

    # Refund
    refund_id = models.CharField(max_length=100, null=True, blank=True)
    refund_status = models.CharField(
        max_length=20,
        choices=REFUND_STATUS_CHOICES,
        null=True,
        blank=True
    )
    refund_amount = models.DecimalField(
        max_digits=10, decimal_places=2, null=True, blank=True
    )
    refund_reason = models.CharField(max_length=200, blank=True)
    refund_date = models.DateTimeField(null=True, blank=True)

    # Reserved, payment not yet confirmed
    is_locked = models.BooleanField(default=False)
    lock_expires_at = models.DateTimeField(null=True, blank=True)
    is_booked = models.BooleanField(default=False)

    booked_by = models.CharField(
        max_length=10,
        choices=BOOKED_BY_CHOICES,
        default=BY_CUSTOMER
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = BookingQuerySet.as_manager()

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(
                fields=["selected_date", "selected_time_slot"],
                name="booking_date_slot_idx"
            ),
        ]

    @property
    def provider_payment_id(self):
        field = self.PROVIDER_ID_FIELDS.get(self.payment_method)
        return getattr(self, field) if field else None

    def set_provider_payment_id(self, payment_id):
        field = self.PROVIDER_ID_FIELDS.get(self.payment_method)
        if field:
            setattr(self, field, payment_id)
        return field

    def __str__(self):
        return f"{self.customer_name} | {self.selected_date} | {self.selected_time_slot}"
