"""
URL configuration for the SlotBook booking backend.
"""
from django.contrib import admin
from django.conf import settings
from django.urls import path, include

urlpatterns = [
    path(settings.ADMIN_URL, admin.site.urls),
    path('api/auth/', include('apps.accounts.urls', namespace='accounts')),
    path('api/', include('apps.services.urls', namespace='services')),
    path('api/appointments/', include('apps.bookings.urls', namespace='bookings')),
    path('api/', include('apps.notifications.urls', namespace='notifications')),
]
