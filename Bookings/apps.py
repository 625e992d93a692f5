from django.apps import AppConfig


class BookingsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "Bookings"

    service = None

    def ready(self):
        from django.conf import settings

        from payments import build_gateways

        from .notifications import BookingNotifier
        from .service import BookingService

        self.service = BookingService(
            gateways=build_gateways(settings),
            notifier=BookingNotifier(),
        )
