from drf_spectacular.utils import extend_schema
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from clinicdesk.log import get_logger
from doctors.models import DoctorProfile
from users.permissions import IsDoctor, IsPatient
from .models import Prescription
from .serializers import PrescriptionCreateSerializer, PrescriptionSerializer

logger = get_logger(__name__)


def _base_queryset(user):
    return Prescription.objects.for_user(user).select_related('doctor__user', 'patient')


# ─────────────────────────────────────────────
# Listing & Writing
# ─────────────────────────────────────────────

@extend_schema(tags=['Prescriptions'], responses={200: PrescriptionSerializer(many=True)})
class PrescriptionListCreateView(APIView):
    """
    GET  – prescriptions the caller wrote or received (all for admin)
    POST – doctor writes a prescription for one of their patients
    """
    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsDoctor()]
        return [permissions.IsAuthenticated()]

    def get(self, request):
        return Response(PrescriptionSerializer(_base_queryset(request.user), many=True).data)

    @extend_schema(request=PrescriptionCreateSerializer, responses={201: PrescriptionSerializer})
    def post(self, request):
        doctor = DoctorProfile.objects.filter(user=request.user, is_active=True).first()
        if not doctor:
            return Response({'message': 'Doctor profile not found.'}, status=status.HTTP_404_NOT_FOUND)

        serializer = PrescriptionCreateSerializer(data=request.data, context={'doctor': doctor})
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        prescription = serializer.save(doctor=doctor)
        logger.info('prescription_created', prescription_id=prescription.pk,
                    doctor_id=doctor.pk, patient_id=str(prescription.patient_id))
        return Response(PrescriptionSerializer(prescription).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=['Prescriptions'], responses={200: PrescriptionSerializer(many=True)})
class PatientPrescriptionListView(APIView):
    """Patient: own prescriptions, newest first."""
    permission_classes = [IsPatient]

    def get(self, request):
        return Response(PrescriptionSerializer(_base_queryset(request.user), many=True).data)


# ─────────────────────────────────────────────
# Detail & Delete
# ─────────────────────────────────────────────

@extend_schema(tags=['Prescriptions'], responses={200: PrescriptionSerializer})
class PrescriptionDetailView(APIView):
    """
    GET    – one prescription, if the caller wrote or received it
    DELETE – the prescribing doctor removes it
    """
    def get_permissions(self):
        if self.request.method == 'DELETE':
            return [IsDoctor()]
        return [permissions.IsAuthenticated()]

    def get_object(self, pk, user):
        return _base_queryset(user).filter(pk=pk).first()

    def get(self, request, pk):
        prescription = self.get_object(pk, request.user)
        if not prescription:
            return Response({'message': 'Prescription not found.'}, status=status.HTTP_404_NOT_FOUND)
        return Response(PrescriptionSerializer(prescription).data)

    def delete(self, request, pk):
        prescription = self.get_object(pk, request.user)
        if not prescription:
            return Response({'message': 'Prescription not found.'}, status=status.HTTP_404_NOT_FOUND)
        prescription.delete()
        logger.info('prescription_deleted', prescription_id=pk, by=str(request.user.pk))
        return Response(status=status.HTTP_204_NO_CONTENT)
