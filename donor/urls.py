from django.urls import path
from . import views

urlpatterns = [
    path('donors', views.donors_view, name='donors'),
    path('donations', views.donations_view, name='donations'),
]
