from django.urls import path
from . import views

urlpatterns = [
    # ── Auth ─────────────────────────────────────────────────
    path('login/', views.LoginView.as_view(), name='login'),
    path('token/refresh/', views.RefreshTokenView.as_view(), name='token-refresh'),
    path('register/', views.PatientRegisterView.as_view(), name='patient-register'),

    # ── Current user ─────────────────────────────────────────
    path('me/', views.CurrentUser.as_view(), name='current-user'),

    # ── Patient records (admin / doctor) ─────────────────────
    path('patients/', views.PatientListView.as_view(), name='patient-list'),
]
