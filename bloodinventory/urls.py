"""bloodinventory URL Configuration

The dashboard SPA talks to everything under ``/api/``; the Django admin stays
available for blood-bank supervisors.
"""
from django.contrib import admin
from django.urls import path, include

urlpatterns = [
    path('admin/', admin.site.urls),

    path('api/', include('hospital.urls')),
    path('api/', include('donor.urls')),
    path('api/', include('blood.urls')),
]
