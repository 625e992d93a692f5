from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("customer_name", models.CharField(max_length=100)),
                ("email", models.EmailField(max_length=254)),
                ("contact_number", models.CharField(max_length=20)),
                ("first_line_of_address", models.CharField(max_length=100)),
                ("town", models.CharField(max_length=50)),
                ("postcode", models.CharField(max_length=10)),
                ("postcode_group", models.CharField(max_length=50)),
                (
                    "select_service",
                    models.CharField(
                        choices=[("Gutter Cleaning", "Gutter Cleaning"), ("Gutter Repair", "Gutter Repair")],
                        max_length=20,
                    ),
                ),
                ("gutter_cleaning_options", models.JSONField(blank=True, default=list)),
                ("gutter_repairs_options", models.JSONField(blank=True, default=list)),
                ("select_home_style", models.CharField(max_length=30)),
                ("select_home_type", models.CharField(blank=True, max_length=30)),
                ("number_of_bedrooms", models.CharField(blank=True, max_length=20)),
                ("number_of_stories", models.CharField(blank=True, max_length=2)),
                ("message", models.TextField(blank=True)),
                ("photos", models.JSONField(blank=True, default=list)),
                ("terms_conditions", models.BooleanField(default=False)),
                ("selected_date", models.DateField()),
                ("selected_time_slot", models.CharField(max_length=20)),
                ("total_price", models.DecimalField(decimal_places=2, max_digits=10)),
                (
                    "payment_method",
                    models.CharField(
                        choices=[("PayPal", "PayPal"), ("Mollie", "Mollie"), ("Cash", "Cash")],
                        max_length=10,
                    ),
                ),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                            ("cancelled", "Cancelled"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("paypal_order_id", models.CharField(blank=True, max_length=100, null=True, unique=True)),
                ("mollie_payment_id", models.CharField(blank=True, max_length=100, null=True, unique=True)),
                ("capture_id", models.CharField(blank=True, max_length=100, null=True)),
                ("refund_id", models.CharField(blank=True, max_length=100, null=True)),
                (
                    "refund_status",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("pending", "Pending"),
                            ("completed", "Completed"),
                            ("failed", "Failed"),
                            ("reversed", "Reversed"),
                        ],
                        max_length=20,
                        null=True,
                    ),
                ),
                ("refund_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=10, null=True)),
                ("refund_reason", models.CharField(blank=True, max_length=200)),
                ("refund_date", models.DateTimeField(blank=True, null=True)),
                ("is_locked", models.BooleanField(default=False)),
                ("lock_expires_at", models.DateTimeField(blank=True, null=True)),
                ("is_booked", models.BooleanField(default=False)),
                (
                    "booked_by",
                    models.CharField(
                        choices=[("admin", "Admin"), ("customer", "Customer")],
                        default="customer",
                        max_length=10,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(
                        fields=["selected_date", "selected_time_slot"],
                        name="booking_date_slot_idx",
                    ),
                ],
            },
        ),
    ]
