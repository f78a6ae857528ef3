from django.urls import path
from . import views

urlpatterns = [
    # Public listing (GET) / admin create (POST)
    path('', views.DoctorListView.as_view(), name='doctor-list'),
    path('<int:pk>/', views.DoctorDetailView.as_view(), name='doctor-detail'),

    # Doctor manages own profile
    path('me/', views.MyDoctorProfile.as_view(), name='my-doctor-profile'),

    # Free booking slots for a date
    path('<int:pk>/slots/', views.DoctorAvailableSlotsView.as_view(), name='doctor-available-slots'),
]
