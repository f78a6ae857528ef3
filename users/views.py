from django.contrib.auth import authenticate, get_user_model
from django.db.models import Q
from django.utils import timezone
from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import permissions, status
from rest_framework.response import Response
from rest_framework.views import APIView
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.settings import api_settings as jwt_settings
from rest_framework_simplejwt.tokens import RefreshToken

from clinicdesk.log import get_logger

from .authentication import issue_tokens
from .permissions import IsAdminOrDoctor
from .roles import Role, parse_role
from .serializers import (
    LoginSerializer, PatientRegisterSerializer, UserSerializer, UserUpdateSerializer,
)

User = get_user_model()
logger = get_logger(__name__)


# ═══════════════════════════════════════════════════════════════
# LOGIN: contact + password
# ═══════════════════════════════════════════════════════════════

@extend_schema(tags=['Auth'], request=LoginSerializer, responses={200: UserSerializer})
class LoginView(APIView):
    """
    Login with contact number + password.

    POST /api/users/login/
    {
        "contact": 9876543210,
        "password": "secret123"
    }

    The access token carries the normalized role ("ADMIN", "DOCTOR",
    "PATIENT") as its ``role`` claim.
    """
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(
                {'message': 'Contact and password are required.', 'errors': serializer.errors},
                status=status.HTTP_400_BAD_REQUEST
            )
        contact = serializer.validated_data['contact']

        user = authenticate(request, contact=contact, password=serializer.validated_data['password'])
        if not user:
            logger.info('login_failed', contact=contact)
            return Response(
                {'message': 'Invalid contact number or password.'},
                status=status.HTTP_401_UNAUTHORIZED
            )

        if not user.is_active:
            return Response(
                {'message': 'Your account has been deactivated.'},
                status=status.HTTP_403_FORBIDDEN
            )

        logger.info('login_succeeded', user_id=str(user.pk), role=user.role)
        return Response({
            **issue_tokens(user),
            'user': UserSerializer(user).data,
        }, status=status.HTTP_200_OK)


class RefreshTokenView(APIView):
    """
    Exchange a refresh token for a new access token.

    The refresh token's ``role`` claim must still match the account, so a
    role change by an admin forces a fresh login.
    """
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        raw = request.data.get('refresh')
        if not raw:
            return Response({'message': 'Refresh token is required.'}, status=status.HTTP_400_BAD_REQUEST)
        try:
            token = RefreshToken(raw)
        except TokenError as e:
            return Response({'message': str(e)}, status=status.HTTP_401_UNAUTHORIZED)

        user = User.objects.filter(pk=token.get(jwt_settings.USER_ID_CLAIM), is_active=True).first()
        if not user or token.get('role') != parse_role(user.role).value:
            logger.warning('refresh_rejected', user_id=token.get(jwt_settings.USER_ID_CLAIM))
            return Response({'message': 'Refresh token no longer matches the account.'},
                            status=status.HTTP_401_UNAUTHORIZED)
        return Response({'access': str(token.access_token)}, status=status.HTTP_200_OK)


# ═══════════════════════════════════════════════════════════════
# PATIENT REGISTRATION
# ═══════════════════════════════════════════════════════════════

@extend_schema(tags=['Auth'], request=PatientRegisterSerializer,
               responses={201: OpenApiResponse(description='Account created, tokens issued')})
class PatientRegisterView(APIView):
    """
    Patient self-registration. Doctors and admins are created by an admin.

    POST /api/users/register/
    {
        "contact": 9876543210,
        "name": "John Doe",
        "password": "secret123"
    }
    """
    permission_classes = [permissions.AllowAny]
    authentication_classes = []

    def post(self, request):
        serializer = PatientRegisterSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        user = serializer.save()
        logger.info('patient_registered', user_id=str(user.pk))
        return Response({
            'message': 'Account created.',
            **issue_tokens(user),
            'user': UserSerializer(user).data,
        }, status=status.HTTP_201_CREATED)


# ═══════════════════════════════════════════════════════════════
# Current user
# ═══════════════════════════════════════════════════════════════

@extend_schema(tags=['User'], responses={200: UserSerializer})
class CurrentUser(APIView):
    permission_classes = [permissions.IsAuthenticated]

    def get(self, request):
        return Response(UserSerializer(request.user).data)

    def put(self, request):
        serializer = UserUpdateSerializer(request.user, data=request.data, partial=True)
        if serializer.is_valid():
            serializer.save()
            return Response(UserSerializer(request.user).data, status=status.HTTP_200_OK)
        return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)


# ═══════════════════════════════════════════════════════════════
# Patient records (Admin / Doctor)
# ═══════════════════════════════════════════════════════════════

@extend_schema(
    tags=['Patients'],
    parameters=[OpenApiParameter('search', str, OpenApiParameter.QUERY,
                                 description='Substring of name, email or contact', required=False)],
)
class PatientListView(APIView):
    """
    Admin: every registered patient.
    Doctor: only patients who have booked with them.

    Response includes summary counts (total, active, new this month).
    """
    permission_classes = [IsAdminOrDoctor]

    def get(self, request):
        qs = User.objects.filter(role=Role.PATIENT)
        if request.user.role == Role.DOCTOR:
            qs = qs.filter(patient_appointments__doctor__user=request.user).distinct()

        today = timezone.localdate()
        summary = {
            'total': qs.count(),
            'active': qs.filter(is_active=True).count(),
            'new_this_month': qs.filter(
                date_joined__year=today.year, date_joined__month=today.month,
            ).count(),
        }

        search = request.query_params.get('search', '').strip()
        if search:
            term = Q(name__icontains=search) | Q(email__icontains=search)
            if search.isdigit():
                term |= Q(contact=int(search))
            qs = qs.filter(term)

        return Response({
            'summary': summary,
            'patients': UserSerializer(qs, many=True).data,
        })
