from datetime import date

from django.utils import timezone
from django_filters import rest_framework as df_filters
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import filters, permissions, status
from rest_framework.generics import ListAPIView
from rest_framework.response import Response
from rest_framework.views import APIView

from appointments.lifecycle import ACTIVE_STATUSES
from appointments.models import Appointment
from appointments.scheduling import clinic_slots
from clinicdesk.log import get_logger
from users.permissions import IsAdmin, IsDoctor
from .models import DoctorProfile
from .serializers import (
    DoctorCreateSerializer, DoctorProfileSerializer, DoctorProfileWriteSerializer,
)

logger = get_logger(__name__)


# ─────────────────────────────────────────────
# Filters
# ─────────────────────────────────────────────

class DoctorFilter(df_filters.FilterSet):
    specialty = df_filters.CharFilter(field_name='specialty', lookup_expr='icontains')
    min_fee = df_filters.NumberFilter(field_name='consultation_fee', lookup_expr='gte')
    max_fee = df_filters.NumberFilter(field_name='consultation_fee', lookup_expr='lte')

    class Meta:
        model = DoctorProfile
        fields = ['specialty', 'min_fee', 'max_fee']


# ─────────────────────────────────────────────
# Doctor Profile
# ─────────────────────────────────────────────

@extend_schema(tags=['Doctors'], responses={200: DoctorProfileSerializer})
class DoctorListView(ListAPIView):
    """
    GET  – public: list all active doctors.
           Filter by ?specialty=, ?min_fee=, ?max_fee=; ?search= on name/specialty
    POST – admin: create a doctor account and profile
    """
    serializer_class = DoctorProfileSerializer
    filter_backends = [DjangoFilterBackend, filters.SearchFilter, filters.OrderingFilter]
    filterset_class = DoctorFilter
    search_fields = ['user__name', 'specialty']
    ordering_fields = ['consultation_fee', 'experience_years']

    def get_permissions(self):
        if self.request.method == 'GET':
            return [permissions.AllowAny()]
        return [IsAdmin()]

    def get_queryset(self):
        return DoctorProfile.objects.filter(is_active=True).select_related('user')

    @extend_schema(request=DoctorCreateSerializer, responses={201: DoctorProfileSerializer})
    def post(self, request):
        serializer = DoctorCreateSerializer(data=request.data)
        if serializer.is_valid():
            profile = serializer.save()
            logger.info('doctor_created', doctor_id=profile.pk, by=str(request.user.pk))
            return Response(DoctorProfileSerializer(profile).data, status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@extend_schema(tags=['Doctors'], responses={200: DoctorProfileSerializer})
class DoctorDetailView(APIView):
    """
    GET    – public doctor profile
    PUT    – admin updates professional details
    DELETE – admin deactivates the doctor (history and appointments are kept)
    """
    def get_permissions(self):
        if self.request.method == 'GET':
            return [permissions.AllowAny()]
        return [IsAdmin()]

    def get_object(self, pk):
        try:
            return DoctorProfile.objects.select_related('user').get(pk=pk, is_active=True)
        except DoctorProfile.DoesNotExist:
            return None

    def get(self, request, pk):
        doctor = self.get_object(pk)
        if not doctor:
            return Response({'message': 'Doctor not found.'}, status=status.HTTP_404_NOT_FOUND)
        return Response(DoctorProfileSerializer(doctor).data)

    def put(self, request, pk):
        doctor = self.get_object(pk)
        if not doctor:
            return Response({'message': 'Doctor not found.'}, status=status.HTTP_404_NOT_FOUND)
        serializer = DoctorProfileWriteSerializer(doctor, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(DoctorProfileSerializer(doctor).data)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

    def delete(self, request, pk):
        doctor = self.get_object(pk)
        if not doctor:
            return Response({'message': 'Doctor not found.'}, status=status.HTTP_404_NOT_FOUND)
        doctor.is_active = False
        doctor.save(update_fields=['is_active', 'updated_at'])
        logger.info('doctor_deactivated', doctor_id=doctor.pk, by=str(request.user.pk))
        return Response({'message': 'Doctor deactivated.'}, status=status.HTTP_200_OK)


@extend_schema(tags=['Doctors'], responses={200: DoctorProfileSerializer})
class MyDoctorProfile(APIView):
    """Authenticated doctor: get or update own professional profile."""
    permission_classes = [IsDoctor]

    def _get_profile(self, request):
        return DoctorProfile.objects.select_related('user').filter(user=request.user).first()

    def get(self, request):
        profile = self._get_profile(request)
        if not profile:
            return Response({'message': 'Doctor profile not found.'}, status=status.HTTP_404_NOT_FOUND)
        return Response(DoctorProfileSerializer(profile).data)

    def put(self, request):
        profile = self._get_profile(request)
        if not profile:
            return Response({'message': 'Doctor profile not found.'}, status=status.HTTP_404_NOT_FOUND)
        serializer = DoctorProfileWriteSerializer(profile, data=request.data, partial=True)
        if serializer.is_valid():
            # Activation is an admin decision.
            serializer.validated_data.pop('is_active', None)
            serializer.save()
            return Response(DoctorProfileSerializer(profile).data, status=status.HTTP_200_OK)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# ─────────────────────────────────────────────
# Available Appointment Slots for a Date
# ─────────────────────────────────────────────

@extend_schema(
    tags=['Doctors'],
    parameters=[OpenApiParameter('date', str, OpenApiParameter.QUERY,
                                 description='Date in YYYY-MM-DD format.', required=True)],
)
class DoctorAvailableSlotsView(APIView):
    """
    Public: free 30-minute slots for a doctor on a given date, within clinic
    hours. Slots held by a pending, accepted or scheduled appointment are
    taken; on today's date, slots already past are dropped.
    """
    permission_classes = [permissions.AllowAny]

    def get(self, request, pk):
        try:
            doctor = DoctorProfile.objects.get(pk=pk, is_active=True)
        except DoctorProfile.DoesNotExist:
            return Response({'message': 'Doctor not found.'}, status=status.HTTP_404_NOT_FOUND)

        date_str = request.query_params.get('date')
        if not date_str:
            return Response(
                {'message': 'date query param required (YYYY-MM-DD).'},
                status=status.HTTP_400_BAD_REQUEST
            )
        try:
            query_date = date.fromisoformat(date_str)
        except ValueError:
            return Response({'message': 'Invalid date format. Use YYYY-MM-DD.'}, status=status.HTTP_400_BAD_REQUEST)

        now = timezone.localtime()
        if query_date < now.date():
            return Response({'date': date_str, 'available_slots': []})

        booked_times = set(
            Appointment.objects.filter(
                doctor=doctor, appointment_date=query_date,
                status__in=ACTIVE_STATUSES,
            ).values_list('appointment_time', flat=True)
        )
        available_slots = [
            slot.strftime('%H:%M')
            for slot in clinic_slots(query_date, now=now)
            if slot not in booked_times
        ]
        return Response({'date': date_str, 'available_slots': available_slots})
