import re

from django.db import models


class Role(models.TextChoices):
    ADMIN = 'ADMIN', 'Admin'
    DOCTOR = 'DOCTOR', 'Doctor'
    PATIENT = 'PATIENT', 'Patient'


# Upstream identity providers hand out 'ROLE_PATIENT', sometimes twice over
# ('ROLE_ROLE_PATIENT'), in any case.
_ROLE_PREFIX = re.compile(r'^ROLE_', re.IGNORECASE)


def parse_role(raw):
    """
    Normalize a role string from a token, a form or the database into a Role.

    Strips every leading ``ROLE_`` prefix and upper-cases what is left.
    Raises ValueError for empty or unknown roles.
    """
    if isinstance(raw, Role):
        return raw
    value = str(raw or '').strip()
    while _ROLE_PREFIX.match(value):
        value = _ROLE_PREFIX.sub('', value, count=1)
    try:
        return Role(value.upper())
    except ValueError:
        raise ValueError(f'Unknown role: {raw!r}') from None
