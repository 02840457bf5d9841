# users/urls.py

from django.urls import path

from .views import CreateUserView, LoginView, MeView

app_name = "users"

urlpatterns = [
    # ---------------- PUBLIC AUTH ----------------
    path("login/", LoginView.as_view(), name="login"),
    # ---------------- AUTHENTICATED ----------------
    path("me/", MeView.as_view(), name="me"),
    path("users/", CreateUserView.as_view(), name="create-user"),
]
