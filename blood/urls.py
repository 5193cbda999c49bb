from django.urls import path
from . import views

urlpatterns = [
    path('dashboard/stats', views.dashboard_stats_view, name='dashboard-stats'),
    path('hospital/requests', views.hospital_requests_view, name='hospital-requests'),
    path('hospital/requests/<int:request_id>/status', views.request_status_view, name='hospital-request-status'),
    path('hospital/donations/available', views.available_donations_view, name='hospital-available-donations'),
    path('hospital/transfers', views.transfers_view, name='hospital-transfers'),
    path('hospital/low-stock', views.low_stock_view, name='hospital-low-stock'),
    path('hospital/expiring-blood', views.expiring_blood_view, name='hospital-expiring-blood'),
    path('hospital/analytics', views.analytics_view, name='hospital-analytics'),
    path('hospital/events', views.events_view, name='hospital-events'),
    path('chatbot', views.chatbot_view, name='chatbot'),

    # Public intake
    path('requests', views.request_intake_view, name='request-intake'),
]
