from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.exceptions import AuthenticationFailed
from rest_framework_simplejwt.tokens import RefreshToken

from clinicdesk.log import get_logger

from .roles import parse_role

logger = get_logger(__name__)


def issue_tokens(user):
    """Refresh + access pair; both carry the user's normalized role."""
    refresh = RefreshToken.for_user(user)
    refresh['role'] = parse_role(user.role).value
    return {
        'access': str(refresh.access_token),
        'refresh': str(refresh),
    }


class RoleJWTAuthentication(JWTAuthentication):
    """
    JWT authentication that also checks the token's ``role`` claim.

    A token issued before an admin changed someone's role is rejected
    instead of silently granting the old role's view of the data.
    """

    def get_user(self, validated_token):
        user = super().get_user(validated_token)
        claim = validated_token.get('role')
        if claim is None:
            return user
        try:
            token_role = parse_role(claim)
        except ValueError:
            raise AuthenticationFailed('Token carries an unknown role.', code='bad_role')
        if token_role != parse_role(user.role):
            logger.warning('token_role_mismatch', user_id=str(user.pk),
                           token_role=token_role.value, user_role=user.role)
            raise AuthenticationFailed('Token role no longer matches the account.', code='stale_role')
        return user
