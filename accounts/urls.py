from django.contrib.auth import views as auth_views
from django.urls import path

from .forms import CustomAuthenticationForm
from .views.auth import LoginView, signup

app_name = "accounts"

urlpatterns = [
    path(
        "login/",
        LoginView.as_view(authentication_form=CustomAuthenticationForm),
        name="login",
    ),
    path("logout/", auth_views.LogoutView.as_view(), name="logout"),
    path("signup/", signup, name="signup"),
]
