from rest_framework.permissions import BasePermission

from clinicdesk.log import get_logger

from .roles import Role

logger = get_logger(__name__)


class HasRole(BasePermission):
    """
    Allows access only to authenticated users holding one of ``roles``.
    Subclasses set ``roles``.
    """
    roles = ()
    message = "You do not have permission to perform this action."

    def has_permission(self, request, view):
        user = request.user
        if not (user and user.is_authenticated):
            return False
        if user.role in self.roles:
            return True
        logger.warning('role_denied', user_id=str(user.pk), role=user.role,
                       view=view.__class__.__name__, method=request.method)
        return False


class IsAdmin(HasRole):
    roles = (Role.ADMIN,)
    message = "Only clinic administrators can perform this action."


class IsDoctor(HasRole):
    roles = (Role.DOCTOR,)
    message = "Only doctors can perform this action."


class IsPatient(HasRole):
    roles = (Role.PATIENT,)
    message = "Only patients can perform this action."


class IsAdminOrDoctor(HasRole):
    roles = (Role.ADMIN, Role.DOCTOR)
    message = "Only administrators and doctors can perform this action."
