from typing import Protocol

from pydantic import BaseModel


class Identity(BaseModel):
    id: str
    email: str

    @property
    def storage_prefix(self) -> str:
        """Per-user namespace in the object store."""
        return f"users/{self.id}/files"


class IdentityProvider(Protocol):
    def current_user(self) -> Identity | None: ...

    async def sign_in(self, email: str, password: str) -> Identity: ...

    async def sign_out(self) -> None: ...

    async def send_password_reset(self, email: str) -> None: ...

    async def delete_account(self, password: str) -> None: ...
