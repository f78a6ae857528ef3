from django.urls import path
from . import views

urlpatterns = [
    # Caller's prescriptions (GET) / doctor writes one (POST)
    path('', views.PrescriptionListCreateView.as_view(), name='prescription-list'),

    path('my-prescriptions/', views.PatientPrescriptionListView.as_view(), name='patient-prescriptions'),
    path('<int:pk>/', views.PrescriptionDetailView.as_view(), name='prescription-detail'),
]
