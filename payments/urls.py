from django.urls import path
from . import views

urlpatterns = [
    # Admin list (GET) / patient card payment (POST)
    path('', views.PaymentListCreateView.as_view(), name='payment-list'),

    # Role-specific listings
    path('my-pending/', views.PatientPendingPaymentsView.as_view(), name='patient-pending-payments'),
    path('doctor/my/', views.DoctorPaymentListView.as_view(), name='doctor-payments'),
    path('pending/', views.PendingPaymentListView.as_view(), name='pending-payments'),
    path('method/<str:method>/', views.PaymentMethodListView.as_view(), name='payments-by-method'),

    # Statistics
    path('doctor/stats/', views.DoctorPaymentStatsView.as_view(), name='doctor-payment-stats'),
    path('admin/stats/', views.AdminPaymentStatsView.as_view(), name='admin-payment-stats'),

    # Detail / decisions
    path('<int:pk>/', views.PaymentDetailView.as_view(), name='payment-detail'),
    path('<int:pk>/approve/', views.PaymentDecisionView.as_view(decision='approve'), name='payment-approve'),
    path('<int:pk>/deny/', views.PaymentDecisionView.as_view(decision='deny'), name='payment-deny'),
]
