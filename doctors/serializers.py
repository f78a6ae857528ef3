from django.db import transaction
from rest_framework import serializers

from users.models import User
from users.roles import Role
from users.serializers import UserSerializer
from .models import DoctorProfile


class DoctorProfileSerializer(serializers.ModelSerializer):
    user = UserSerializer(read_only=True)
    name = serializers.CharField(read_only=True)

    class Meta:
        model = DoctorProfile
        fields = '__all__'
        read_only_fields = ['user', 'created_at', 'updated_at']


class DoctorProfileWriteSerializer(serializers.ModelSerializer):
    """Used by a doctor (own profile) or an admin to update professional details."""
    class Meta:
        model = DoctorProfile
        exclude = ['user', 'created_at', 'updated_at']


class DoctorCreateSerializer(serializers.Serializer):
    """Admin creates a doctor account together with its profile."""
    contact = serializers.IntegerField()
    name = serializers.CharField(max_length=100)
    password = serializers.CharField(write_only=True, min_length=6)
    email = serializers.EmailField(required=False, allow_blank=True)
    specialty = serializers.CharField(max_length=100, required=False, allow_blank=True)
    qualification = serializers.CharField(required=False, allow_blank=True)
    experience_years = serializers.IntegerField(required=False, min_value=0)
    consultation_fee = serializers.DecimalField(max_digits=8, decimal_places=2, required=False, min_value=0)

    def validate_contact(self, value):
        if User.objects.filter(contact=value).exists():
            raise serializers.ValidationError('A user with this contact already exists.')
        return value

    def validate_name(self, value):
        # Appointments are matched to doctors by this name, so it must be unique.
        value = value.strip()
        if DoctorProfile.objects.filter(user__name=value).exists():
            raise serializers.ValidationError('A doctor with this name already exists.')
        return value

    @transaction.atomic
    def create(self, validated_data):
        user = User.objects.create_user(
            contact=validated_data.pop('contact'),
            password=validated_data.pop('password'),
            name=validated_data.pop('name'),
            email=validated_data.pop('email', None) or None,
            role=Role.DOCTOR,
        )
        return DoctorProfile.objects.create(user=user, **validated_data)
