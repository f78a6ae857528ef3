from django.utils import timezone
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from clinicdesk.log import get_logger
from users.permissions import IsAdmin, IsDoctor, IsPatient
from . import services
from .lifecycle import AppointmentStatus, LifecycleError, TransitionNotPermitted
from .models import Appointment
from .serializers import (
    AppointmentCreateSerializer, AppointmentSerializer, CancelSerializer, VersionSerializer,
)
from .visibility import UPCOMING, filter_records, visible

logger = get_logger(__name__)

LIST_PARAMETERS = [
    OpenApiParameter('search', str, OpenApiParameter.QUERY, required=False,
                     description='Substring of patient name, doctor name or reason'),
    OpenApiParameter('status', str, OpenApiParameter.QUERY, required=False,
                     description='pending_approval, accepted, scheduled, completed, cancelled, denied'),
    OpenApiParameter('range', str, OpenApiParameter.QUERY, required=False,
                     description='today | week | month (upcoming window)'),
]


# ─────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────

def _base_queryset(user):
    """Appointments ``user`` is a party to (all of them for admins)."""
    return Appointment.objects.for_user(user).select_related('patient', 'doctor__user')


def _get_visible(pk, user):
    """The appointment if it exists and ``user`` may see it, else None."""
    try:
        appt = _base_queryset(user).get(pk=pk)
    except Appointment.DoesNotExist:
        return None
    return appt if visible([appt], user) else None


def _list_response(request, records):
    params = request.query_params
    status_f = params.get('status')
    if status_f and status_f != 'all':
        try:
            status_f = AppointmentStatus.parse(status_f).value
        except ValueError as e:
            return Response({'message': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    try:
        records = filter_records(
            visible(records, request.user),
            search=params.get('search'),
            status=status_f,
            date_range=params.get('range'),
            today=timezone.localdate(),
            direction=UPCOMING,
        )
    except ValueError as e:
        return Response({'message': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(AppointmentSerializer(records, many=True, context={'request': request}).data)


def _lifecycle_error(exc):
    code = status.HTTP_403_FORBIDDEN if isinstance(exc, TransitionNotPermitted) else status.HTTP_400_BAD_REQUEST
    return Response({'message': str(exc)}, status=code)


def _stale(exc, request):
    return Response({
        'message': str(exc),
        'appointment': AppointmentSerializer(exc.appointment, context={'request': request}).data,
    }, status=status.HTTP_409_CONFLICT)


# ─────────────────────────────────────────────
# Listing & Booking
# ─────────────────────────────────────────────

@extend_schema(tags=['Appointments'], parameters=LIST_PARAMETERS, responses={200: AppointmentSerializer(many=True)})
class AppointmentListCreateView(APIView):
    """
    GET  – appointments the logged-in user may see (all for admin, own for
           doctor/patient), with ?search=, ?status=, ?range= filters
    POST – patient books a new appointment (always starts pending approval)
    """
    permission_classes = [permissions.IsAuthenticated]

    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsPatient()]
        return super().get_permissions()

    def get(self, request):
        return _list_response(request, _base_queryset(request.user))

    @extend_schema(request=AppointmentCreateSerializer, responses={201: AppointmentSerializer})
    def post(self, request):
        serializer = AppointmentCreateSerializer(
            data=request.data, context={'request': request, 'now': services.local_now()})
        if serializer.is_valid():
            appointment = serializer.save(patient=request.user)
            logger.info('appointment_booked', appointment_id=appointment.pk,
                        patient_id=str(request.user.pk), doctor_id=appointment.doctor_id,
                        date=str(appointment.appointment_date), time=str(appointment.appointment_time))
            return Response(AppointmentSerializer(appointment, context={'request': request}).data,
                            status=status.HTTP_201_CREATED)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


@extend_schema(tags=['Appointments'], parameters=LIST_PARAMETERS, responses={200: AppointmentSerializer(many=True)})
class PatientAppointmentListView(APIView):
    """Patient: own appointments."""
    permission_classes = [IsPatient]

    def get(self, request):
        return _list_response(request, _base_queryset(request.user))


@extend_schema(tags=['Appointments'], parameters=LIST_PARAMETERS, responses={200: AppointmentSerializer(many=True)})
class DoctorAppointmentListView(APIView):
    """Doctor: appointments on their schedule."""
    permission_classes = [IsDoctor]

    def get(self, request):
        return _list_response(request, _base_queryset(request.user))


@extend_schema(tags=['Appointments'], parameters=LIST_PARAMETERS, responses={200: AppointmentSerializer(many=True)})
class AdminAppointmentListView(APIView):
    """Admin: every appointment in the clinic."""
    permission_classes = [IsAdmin]

    def get(self, request):
        return _list_response(request, _base_queryset(request.user))


@extend_schema(tags=['Appointments'], responses={200: AppointmentSerializer(many=True)})
class AdminAppointmentStatusView(APIView):
    """
    Admin: appointments in one status.
    Accepts either the status value (pending_approval) or the API code (PENDING).
    """
    permission_classes = [IsAdmin]

    def get(self, request, status_code):
        try:
            wanted = AppointmentStatus.parse(status_code)
        except ValueError as e:
            return Response({'message': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        qs = _base_queryset(request.user).filter(status=wanted.value)
        return Response(AppointmentSerializer(qs, many=True, context={'request': request}).data)


# ─────────────────────────────────────────────
# Detail & Delete
# ─────────────────────────────────────────────

@extend_schema(tags=['Appointments'], responses={200: AppointmentSerializer})
class AppointmentDetailView(APIView):
    """
    GET    – one appointment, if visible to the caller
    DELETE – hard delete: admin always, patient only while pending or accepted
             (?version= guards against deleting a changed appointment)
    """
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request, pk):
        appt = _get_visible(pk, request.user)
        if not appt:
            return Response({'message': 'Appointment not found.'}, status=status.HTTP_404_NOT_FOUND)
        return Response(AppointmentSerializer(appt, context={'request': request}).data)

    def delete(self, request, pk):
        appt = _get_visible(pk, request.user)
        if not appt:
            return Response({'message': 'Appointment not found.'}, status=status.HTTP_404_NOT_FOUND)
        version = VersionSerializer(data=request.query_params)
        if not version.is_valid():
            return Response(version.errors, status=status.HTTP_400_BAD_REQUEST)
        try:
            services.delete(appt, request.user, expected_version=version.validated_data.get('version'))
        except LifecycleError as e:
            return _lifecycle_error(e)
        except services.StaleAppointment as e:
            return _stale(e, request)
        return Response(status=status.HTTP_204_NO_CONTENT)


# ─────────────────────────────────────────────
# Lifecycle transitions
# ─────────────────────────────────────────────

class AppointmentTransitionView(APIView):
    """
    PUT – move an appointment along its lifecycle.

    One class serves approve / deny / schedule / complete / cancel; the URL
    conf picks the action. Body may carry ``version`` (409 when stale) and,
    for cancel, the required ``message``.
    """
    permission_classes = [permissions.IsAuthenticated]
    lifecycle_action = None

    @extend_schema(tags=['Appointments'], request=CancelSerializer, responses={200: AppointmentSerializer})
    def put(self, request, pk):
        appt = _get_visible(pk, request.user)
        if not appt:
            return Response({'message': 'Appointment not found.'}, status=status.HTTP_404_NOT_FOUND)

        serializer = CancelSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        try:
            appt = services.transition(
                appt, self.lifecycle_action, request.user,
                expected_version=data.get('version'),
                message=data.get('message'),
            )
        except LifecycleError as e:
            logger.info('appointment_transition_rejected', appointment_id=pk,
                        action=self.lifecycle_action, role=request.user.role, reason=str(e))
            return _lifecycle_error(e)
        except services.StaleAppointment as e:
            return _stale(e, request)
        return Response(AppointmentSerializer(appt, context={'request': request}).data)
