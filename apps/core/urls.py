"""
URL configuration for core app.
"""

from django.urls import path

from . import views

app_name = "core"

urlpatterns = [
    path("api/auth/sign-in/", views.sign_in, name="sign_in"),
    path("api/auth/sign-out/", views.sign_out, name="sign_out"),
    path("api/auth/session/", views.current_session, name="current_session"),
]
