from django.urls import path
from . import views

urlpatterns = [
    path('auth/register', views.register_view, name='auth-register'),
    path('auth/login', views.login_view, name='auth-login'),
    path('auth/verify-otp', views.verify_otp_view, name='auth-verify-otp'),
    path('auth/resend-otp', views.resend_otp_view, name='auth-resend-otp'),
    path('auth/reset-password', views.reset_password_view, name='auth-reset-password'),
    path('auth/refresh', views.refresh_view, name='auth-refresh'),
    path('auth/logout', views.logout_view, name='auth-logout'),
    path('hospital/profile', views.profile_view, name='hospital-profile'),
]
