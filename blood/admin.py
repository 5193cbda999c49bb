from django.contrib import admin
from .models import BloodRequest, HospitalEvent, Transfer

@admin.register(BloodRequest)
class BloodRequestAdmin(admin.ModelAdmin):
    list_display = ['patient_name', 'hospital', 'blood_type', 'urgency', 'units_needed', 'status', 'created_at']
    list_filter = ['blood_type', 'urgency', 'status', 'hospital']
    search_fields = ['patient_name', 'requester_name', 'contact_number']

@admin.register(Transfer)
class TransferAdmin(admin.ModelAdmin):
    list_display = ['unit', 'request', 'hospital', 'transfer_date']
    list_filter = ['hospital']
    search_fields = ['unit__blood_id', 'request__patient_name']
    raw_id_fields = ['unit', 'request']

@admin.register(HospitalEvent)
class HospitalEventAdmin(admin.ModelAdmin):
    list_display = ['id', 'hospital', 'event', 'created_at']
    list_filter = ['event', 'hospital']
    readonly_fields = ['payload', 'created_at']
