"""
Appointment API, mounted at /api/appointments/.

  available                 GET   slot grid + booked subset for a service/date
  request-verification      POST  hold a slot and send a code
  verify-code               POST  confirm with the code
  my                        GET   signed-in caller's appointments
  guest/<guest_client_id>   GET   a guest's appointments
  professional              GET   owner's calendar (?date=YYYY-MM-DD)
  <uuid>/cancel             POST  client, guest or owner cancels
  <uuid>/mark-paid          POST  owner records payment
"""
from django.urls import path
from . import views

app_name = 'bookings'

urlpatterns = [
    path('available',                           views.available_slots,        name='available'),
    path('request-verification',                views.request_verification,   name='request_verification'),
    path('verify-code',                         views.verify_code_view,       name='verify_code'),
    path('my',                                  views.my_appointments,        name='my'),
    path('guest/<str:guest_client_id>',         views.guest_appointments,     name='guest'),
    path('professional',                        views.professional_appointments, name='professional'),
    path('<uuid:appointment_id>/cancel',        views.cancel_appointment,     name='cancel'),
    path('<uuid:appointment_id>/mark-paid',     views.mark_paid_view,         name='mark_paid'),
]
