from django.contrib import admin
from .models import Appointment, AppointmentStatusLog


class AppointmentStatusLogInline(admin.TabularInline):
    model = AppointmentStatusLog
    extra = 0
    readonly_fields = ['from_status', 'to_status', 'changed_by', 'reason', 'changed_at']
    can_delete = False


@admin.register(Appointment)
class AppointmentAdmin(admin.ModelAdmin):
    list_display = [
        'short_id', 'client_name', 'service', 'professional',
        'start_at', 'status', 'payment_status', 'price',
    ]
    list_filter = ['status', 'payment_status', 'professional']
    search_fields = ['guest__name', 'guest__phone', 'client__username', 'contact_phone', 'service__name']
    readonly_fields = ['id', 'verification_code', 'verification_attempts', 'created_at', 'updated_at']
    date_hierarchy = 'start_at'
    inlines = [AppointmentStatusLogInline]
    fieldsets = (
        ('Appointment', {'fields': ('id', 'service', 'professional', 'client', 'guest', 'contact_phone')}),
        ('Schedule', {'fields': ('start_at', 'end_at', 'duration_minutes')}),
        ('Status', {'fields': ('status', 'payment_status', 'price')}),
        ('Verification', {'fields': ('verification_code', 'verification_attempts', 'expires_at')}),
        ('Audit', {'fields': ('created_at', 'updated_at'), 'classes': ('collapse',)}),
    )

    def short_id(self, obj):
        return obj.id_short
    short_id.short_description = 'ID'


@admin.register(AppointmentStatusLog)
class AppointmentStatusLogAdmin(admin.ModelAdmin):
    list_display = ['appointment', 'from_status', 'to_status', 'changed_by', 'changed_at']
    readonly_fields = ['id', 'appointment', 'from_status', 'to_status', 'changed_by', 'reason', 'changed_at']
    search_fields = ['appointment__guest__name', 'appointment__client__username']
