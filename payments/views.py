from django.utils import timezone
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView

from appointments.models import PaymentMethod, PaymentStatus
from appointments.visibility import RECENT, filter_records, visible
from users.permissions import IsAdmin, IsDoctor, IsPatient
from . import services
from .models import Payment
from .serializers import CardPaymentSerializer, PaymentSerializer
from .split import admin_statistics, doctor_statistics

LIST_PARAMETERS = [
    OpenApiParameter('search', str, OpenApiParameter.QUERY, required=False,
                     description='Substring of patient name, doctor name or reason'),
    OpenApiParameter('status', str, OpenApiParameter.QUERY, required=False,
                     description='pending | paid | failed'),
    OpenApiParameter('range', str, OpenApiParameter.QUERY, required=False,
                     description='today | week | month (looking back from today)'),
]


# ─────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────

def _base_queryset(user):
    return Payment.objects.for_user(user).select_related('appointment__patient', 'appointment__doctor__user')


def _get_visible(pk, user):
    try:
        payment = _base_queryset(user).get(pk=pk)
    except Payment.DoesNotExist:
        return None
    return payment if visible([payment], user) else None


def _list_response(request, records):
    params = request.query_params
    try:
        records = filter_records(
            visible(records, request.user),
            search=params.get('search'),
            status=params.get('status'),
            date_range=params.get('range'),
            today=timezone.localdate(),
            direction=RECENT,
        )
    except ValueError as e:
        return Response({'message': str(e)}, status=status.HTTP_400_BAD_REQUEST)
    return Response(PaymentSerializer(records, many=True).data)


# ─────────────────────────────────────────────
# Listing & Card Payment
# ─────────────────────────────────────────────

@extend_schema(tags=['Payments'], parameters=LIST_PARAMETERS, responses={200: PaymentSerializer(many=True)})
class PaymentListCreateView(APIView):
    """
    GET  – admin: every payment (?search=, ?status=, ?range=)
    POST – patient pays one of their appointments by card
    """
    def get_permissions(self):
        if self.request.method == 'POST':
            return [IsPatient()]
        return [IsAdmin()]

    def get(self, request):
        return _list_response(request, _base_queryset(request.user))

    @extend_schema(request=CardPaymentSerializer, responses={201: PaymentSerializer})
    def post(self, request):
        serializer = CardPaymentSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        data = serializer.validated_data

        payment = _base_queryset(request.user).filter(appointment_id=data['appointment_id']).first()
        if not payment or not visible([payment], request.user):
            return Response({'message': 'Appointment not found.'}, status=status.HTTP_404_NOT_FOUND)
        try:
            payment = services.pay_by_card(payment, request.user, data['card_last4'])
        except services.PaymentError as e:
            return Response({'message': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)


@extend_schema(tags=['Payments'], responses={200: PaymentSerializer(many=True)})
class PatientPendingPaymentsView(APIView):
    """Patient: own card payments still waiting to be paid."""
    permission_classes = [IsPatient]

    def get(self, request):
        qs = _base_queryset(request.user).filter(status=PaymentStatus.PENDING, payment_method=PaymentMethod.VISA)
        return Response(PaymentSerializer(visible(qs, request.user), many=True).data)


@extend_schema(tags=['Payments'], parameters=LIST_PARAMETERS, responses={200: PaymentSerializer(many=True)})
class DoctorPaymentListView(APIView):
    """Doctor: payments for their own appointments."""
    permission_classes = [IsDoctor]

    def get(self, request):
        return _list_response(request, _base_queryset(request.user))


@extend_schema(tags=['Payments'], responses={200: PaymentSerializer(many=True)})
class PendingPaymentListView(APIView):
    """Admin: payments awaiting approval."""
    permission_classes = [IsAdmin]

    def get(self, request):
        qs = _base_queryset(request.user).filter(status=PaymentStatus.PENDING)
        return Response(PaymentSerializer(qs, many=True).data)


@extend_schema(tags=['Payments'], responses={200: PaymentSerializer(many=True)})
class PaymentMethodListView(APIView):
    """Admin: payments made with one method (CASH or VISA)."""
    permission_classes = [IsAdmin]

    def get(self, request, method):
        method = method.upper()
        if method not in PaymentMethod.values:
            return Response({'message': f"Unknown payment method: {method}."},
                            status=status.HTTP_400_BAD_REQUEST)
        qs = _base_queryset(request.user).filter(payment_method=method)
        return Response(PaymentSerializer(qs, many=True).data)


# ─────────────────────────────────────────────
# Detail, Approve / Deny, Delete
# ─────────────────────────────────────────────

@extend_schema(tags=['Payments'], responses={200: PaymentSerializer})
class PaymentDetailView(APIView):
    """
    GET    – one payment, if visible to the caller
    DELETE – admin removes a payment record
    """
    def get_permissions(self):
        if self.request.method == 'DELETE':
            return [IsAdmin()]
        return [permissions.IsAuthenticated()]

    def get(self, request, pk):
        payment = _get_visible(pk, request.user)
        if not payment:
            return Response({'message': 'Payment not found.'}, status=status.HTTP_404_NOT_FOUND)
        return Response(PaymentSerializer(payment).data)

    def delete(self, request, pk):
        payment = _get_visible(pk, request.user)
        if not payment:
            return Response({'message': 'Payment not found.'}, status=status.HTTP_404_NOT_FOUND)
        services.delete(payment, request.user)
        return Response(status=status.HTTP_204_NO_CONTENT)


class PaymentDecisionView(APIView):
    """PUT – admin approves (paid) or denies (failed) a pending payment."""
    permission_classes = [IsAdmin]
    decision = None

    @extend_schema(tags=['Payments'], request=None, responses={200: PaymentSerializer})
    def put(self, request, pk):
        payment = _get_visible(pk, request.user)
        if not payment:
            return Response({'message': 'Payment not found.'}, status=status.HTTP_404_NOT_FOUND)
        apply = services.approve if self.decision == 'approve' else services.deny
        try:
            payment = apply(payment, request.user)
        except services.PaymentError as e:
            return Response({'message': str(e)}, status=status.HTTP_400_BAD_REQUEST)
        return Response(PaymentSerializer(payment).data)


# ─────────────────────────────────────────────
# Statistics
# ─────────────────────────────────────────────

@extend_schema(tags=['Payments'])
class DoctorPaymentStatsView(APIView):
    """Doctor: earnings over paid payments (total, clinic tax, net, count)."""
    permission_classes = [IsDoctor]

    def get(self, request):
        payments = visible(_base_queryset(request.user), request.user)
        return Response(doctor_statistics(payments, request.user.doctor_name))


@extend_schema(tags=['Payments'])
class AdminPaymentStatsView(APIView):
    """Admin: payment counts per status and paid totals."""
    permission_classes = [IsAdmin]

    def get(self, request):
        return Response(admin_statistics(_base_queryset(request.user)))
