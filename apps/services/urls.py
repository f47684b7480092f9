from django.urls import path
from . import views

app_name = 'services'

urlpatterns = [
    path('services',                            views.services_view,             name='services'),
    path('business-hours',                      views.business_hours_view,       name='business_hours'),
    path('business-hours/<uuid:window_id>',     views.business_hour_detail_view, name='business_hour_detail'),
]
