from django.contrib import admin
from .models import Guest


@admin.register(Guest)
class GuestAdmin(admin.ModelAdmin):
    list_display = ['name', 'phone', 'email', 'client_id', 'created_at']
    search_fields = ['name', 'phone', 'email', 'client_id']
    readonly_fields = ['id', 'client_id', 'created_at', 'updated_at']
