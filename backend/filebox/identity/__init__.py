from .base import Identity, IdentityProvider
from .local import InvalidCredentialsError, LocalIdentityProvider
from .passwords import get_password_hash, verify_password

__all__ = [
    "Identity",
    "IdentityProvider",
    "InvalidCredentialsError",
    "LocalIdentityProvider",
    "get_password_hash",
    "verify_password",
]
