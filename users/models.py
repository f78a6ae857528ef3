import uuid

from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models, transaction
from django.utils import timezone

from .roles import Role, parse_role

gender_choice = (
    ("male", "male"),
    ("female", "female"),
    ("others", "others")
)


class UserManager(BaseUserManager):

    def _create_user(self, contact, password, **extra_fields):
        if not contact:
            raise ValueError('The given contact must be set')
        extra_fields['role'] = parse_role(extra_fields.get('role', Role.PATIENT))
        with transaction.atomic():
            user = self.model(contact=contact, **extra_fields)
            user.set_password(password)
            user.save(using=self._db)
            return user

    def create_user(self, contact, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        return self._create_user(contact, password, **extra_fields)

    def create_superuser(self, contact, password, **extra_fields):
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        extra_fields.setdefault('role', Role.ADMIN)
        return self._create_user(contact, password=password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100, blank=True)
    email = models.EmailField(max_length=100, blank=True, null=True)
    age = models.PositiveIntegerField(default=18)
    gender = models.CharField(max_length=100, choices=gender_choice, default=None, null=True, blank=True)
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.PATIENT, db_index=True)
    contact = models.BigIntegerField(unique=True)
    is_staff = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    date_joined = models.DateTimeField(default=timezone.now)

    objects = UserManager()

    USERNAME_FIELD = 'contact'

    class Meta:
        ordering = ['-date_joined']

    def __str__(self):
        return f"{self.name or self.contact} ({self.role})"

    def save(self, *args, **kwargs):
        self.role = parse_role(self.role)
        super().save(*args, **kwargs)

    @property
    def doctor_name(self):
        """Display name appointments carry for this doctor; None for other roles."""
        return self.name if self.role == Role.DOCTOR else None

    @property
    def initials(self):
        return ''.join(part[0] for part in self.name.split() if part).upper()[:2]


def scope_to_user(queryset, user, patient_field, doctor_user_field):
    """
    Narrow ``queryset`` to the rows ``user`` is a party to.

    Admins keep everything, doctors keep rows whose ``doctor_user_field``
    is them and patients rows whose ``patient_field`` is them. Matching is
    on the foreign key, never on display names.
    """
    try:
        role = parse_role(getattr(user, 'role', None))
    except ValueError:
        return queryset.none()
    if role == Role.ADMIN:
        return queryset
    if role == Role.DOCTOR:
        return queryset.filter(**{doctor_user_field: user})
    return queryset.filter(**{patient_field: user})
