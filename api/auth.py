from dataclasses import dataclass

from django.conf import settings
from rest_framework.authentication import BaseAuthentication


@dataclass(frozen=True)
class GuestUser:
    id: str
    username: str = "guest"
    is_authenticated: bool = True
    is_anonymous: bool = False


class GuestAuthentication(BaseAuthentication):
    """
    No-auth mode: every request is attributed to the guest owner so rows stay
    owner-scoped without a login flow.
    """

    def authenticate(self, request):
        return GuestUser(id=settings.GUEST_USER_ID), None


def owner_id_for(request) -> str:
    user = getattr(request, "user", None)
    owner = getattr(user, "id", None)
    return str(owner) if owner else settings.GUEST_USER_ID
