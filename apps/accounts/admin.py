from django.contrib import admin
from .models import Profile


@admin.register(Profile)
class ProfileAdmin(admin.ModelAdmin):
    list_display = ['user', 'display_name', 'role', 'phone', 'created_at']
    list_filter = ['role']
    search_fields = ['user__username', 'display_name', 'phone']
    readonly_fields = ['id', 'created_at', 'updated_at']
