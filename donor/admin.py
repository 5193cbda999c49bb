from django.contrib import admin
from .models import Donor, Donation

@admin.register(Donor)
class DonorAdmin(admin.ModelAdmin):
    list_display = ['get_name', 'hospital', 'phone', 'created_at']
    list_filter = ['hospital', 'gender']
    search_fields = ['first_name', 'last_name', 'phone', 'email']

@admin.register(Donation)
class DonationAdmin(admin.ModelAdmin):
    list_display = ['blood_id', 'full_blood_type', 'component_type', 'volume_ml', 'collection_date', 'expiry_date', 'status']
    list_filter = ['blood_type', 'rh_factor', 'component_type', 'status', 'hospital']
    search_fields = ['blood_id', 'donor__first_name', 'donor__last_name']
    readonly_fields = ['blood_id', 'expiry_date']
