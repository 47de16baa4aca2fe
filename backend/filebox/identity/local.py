"""Identity provider backed by accounts declared in settings."""

from ..config import AccountSettings
from ..errors import NotAuthenticatedError
from ..logger import logger
from .base import Identity
from .passwords import verify_password


class InvalidCredentialsError(NotAuthenticatedError):
    def __init__(self):
        super().__init__("Invalid email or password")


class LocalIdentityProvider:
    def __init__(self, accounts: list[AccountSettings]):
        self._accounts: dict[str, AccountSettings] = {
            account.email.lower(): account for account in accounts
        }
        self._current: Identity | None = None

    def current_user(self) -> Identity | None:
        return self._current

    def _check_password(self, account: AccountSettings, password: str) -> bool:
        return verify_password(password, account.password_hash)

    async def sign_in(self, email: str, password: str) -> Identity:
        account = self._accounts.get(email.lower())
        if account is None or not self._check_password(account, password):
            logger.info(f"Failed sign-in attempt for {email}")
            raise InvalidCredentialsError()

        self._current = Identity(id=account.id, email=account.email)
        logger.info(f"User {account.email} signed in")
        return self._current

    async def sign_out(self) -> None:
        if self._current is not None:
            logger.info(f"User {self._current.email} signed out")
        self._current = None

    async def send_password_reset(self, email: str) -> None:
        if email.lower() not in self._accounts:
            raise LookupError(f"No account registered for {email}")
        # Delivery is handled outside this service
        logger.info(f"Password reset requested for {email}")

    async def delete_account(self, password: str) -> None:
        if self._current is None:
            raise NotAuthenticatedError()

        account = self._accounts[self._current.email.lower()]
        if not self._check_password(account, password):
            raise InvalidCredentialsError()

        del self._accounts[account.email.lower()]
        logger.info(f"Account {account.email} deleted")
        self._current = None
