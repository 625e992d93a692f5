from django.conf import settings
from django.conf.urls.static import static
from django.contrib import admin
from django.urls import include, path

urlpatterns = [
    path("admin/", admin.site.urls),
    path("api/accounts/", include("Accounts.urls")),
    path("api/", include("slots.urls")),
    path("api/", include("Bookings.urls")),
    path("api/", include("Dashboard.urls")),
]

# uploaded booking photos; served by the web server in production
urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
