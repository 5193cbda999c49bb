from django.contrib import admin
from .models import Hospital, OneTimePasscode, AuthSession

@admin.register(Hospital)
class HospitalAdmin(admin.ModelAdmin):
    list_display = ['name', 'email', 'city', 'state', 'email_verified', 'created_at']
    list_filter = ['email_verified', 'state']
    search_fields = ['name', 'user__email', 'city']

@admin.register(OneTimePasscode)
class OneTimePasscodeAdmin(admin.ModelAdmin):
    list_display = ['hospital', 'purpose', 'created_at', 'expires_at', 'failed_attempts', 'consumed_at']
    list_filter = ['purpose']
    exclude = ['code_hash']

@admin.register(AuthSession)
class AuthSessionAdmin(admin.ModelAdmin):
    list_display = ['hospital', 'created_at', 'expires_at', 'revoked_at']
    list_filter = ['revoked_at']
    exclude = ['key']
