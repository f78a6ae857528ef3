from rest_framework import serializers

from .models import User
from .roles import Role


class UserSerializer(serializers.ModelSerializer):
    initials = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            'id', 'name', 'initials', 'email', 'age', 'gender',
            'role', 'contact', 'date_joined',
        ]
        read_only_fields = ['id', 'role', 'date_joined']


class UserUpdateSerializer(serializers.ModelSerializer):
    """Profile update: a user can never change their own role or contact."""
    password = serializers.CharField(write_only=True, required=False, min_length=6)

    class Meta:
        model = User
        fields = ['name', 'email', 'age', 'gender', 'password']

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Name cannot be blank.')
        # Doctor names are unique.
        if self.instance.role == Role.DOCTOR and User.objects.filter(
                role=Role.DOCTOR, name=value).exclude(pk=self.instance.pk).exists():
            raise serializers.ValidationError('A doctor with this name already exists.')
        return value

    def update(self, instance, validated_data):
        password = validated_data.pop('password', None)
        for attr, value in validated_data.items():
            setattr(instance, attr, value)
        if password:
            instance.set_password(password)
        instance.save()
        return instance


class PatientRegisterSerializer(serializers.Serializer):
    """Patient self-registration: contact, name, password and optional basics."""
    contact = serializers.IntegerField()
    name = serializers.CharField(max_length=100)
    password = serializers.CharField(write_only=True, min_length=6)
    email = serializers.EmailField(required=False, allow_blank=True)
    age = serializers.IntegerField(required=False, min_value=0, max_value=150)
    gender = serializers.ChoiceField(choices=['male', 'female', 'others'], required=False)

    def validate_contact(self, value):
        if User.objects.filter(contact=value).exists():
            raise serializers.ValidationError('A user with this contact already exists.')
        return value

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError('Name cannot be blank.')
        return value

    def create(self, validated_data):
        return User.objects.create_user(role=Role.PATIENT, **validated_data)


class LoginSerializer(serializers.Serializer):
    contact = serializers.IntegerField()
    password = serializers.CharField(write_only=True)
