from django.contrib import admin
from .models import Service, BusinessHourWindow


@admin.register(Service)
class ServiceAdmin(admin.ModelAdmin):
    list_display = ['name', 'professional', 'duration_minutes', 'price', 'is_active']
    list_filter = ['is_active']
    search_fields = ['name', 'professional__username', 'professional__profile__display_name']
    list_editable = ['is_active', 'price']
    readonly_fields = ['id', 'created_at', 'updated_at']
    fieldsets = (
        ('Service Info', {'fields': ('id', 'professional', 'name', 'description')}),
        ('Timing & Pricing', {'fields': ('duration_minutes', 'price')}),
        ('Status', {'fields': ('is_active',)}),
        ('Audit', {'fields': ('created_at', 'updated_at'), 'classes': ('collapse',)}),
    )


@admin.register(BusinessHourWindow)
class BusinessHourWindowAdmin(admin.ModelAdmin):
    list_display = ['professional', 'day_of_week', 'start_time', 'end_time']
    list_filter = ['day_of_week']
    search_fields = ['professional__username']
    readonly_fields = ['id', 'created_at', 'updated_at']
