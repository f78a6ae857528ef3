from django.urls import path
from . import views

urlpatterns = [
    # List for the caller's role (GET) / patient booking (POST)
    path('', views.AppointmentListCreateView.as_view(), name='appointment-list'),

    # Role-specific listings
    path('my/', views.PatientAppointmentListView.as_view(), name='patient-appointments'),
    path('doctor/my/', views.DoctorAppointmentListView.as_view(), name='doctor-appointments'),
    path('admin/all/', views.AdminAppointmentListView.as_view(), name='admin-appointments'),
    path('admin/status/<str:status_code>/', views.AdminAppointmentStatusView.as_view(),
         name='admin-appointments-by-status'),

    # Admin decisions on pending requests
    path('admin/<int:pk>/approve/',
         views.AppointmentTransitionView.as_view(lifecycle_action='approve'), name='appointment-approve'),
    path('admin/<int:pk>/deny/',
         views.AppointmentTransitionView.as_view(lifecycle_action='deny'), name='appointment-deny'),

    # Detail / delete
    path('<int:pk>/', views.AppointmentDetailView.as_view(), name='appointment-detail'),

    # Patient / doctor / admin transitions
    path('<int:pk>/cancel/',
         views.AppointmentTransitionView.as_view(lifecycle_action='cancel'), name='appointment-cancel'),
    path('<int:pk>/schedule/',
         views.AppointmentTransitionView.as_view(lifecycle_action='schedule'), name='appointment-schedule'),
    path('<int:pk>/complete/',
         views.AppointmentTransitionView.as_view(lifecycle_action='complete'), name='appointment-complete'),
]
