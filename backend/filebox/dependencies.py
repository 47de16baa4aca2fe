from fastapi import Depends, HTTPException, Request, status

from .identity import Identity
from .manager import FileManager


def get_file_manager(request: Request) -> FileManager:
    return request.app.state.file_manager


def get_current_user(manager: FileManager = Depends(get_file_manager)) -> Identity:
    """
    HTTP authentication dependency.
    Requires a signed-in user on the identity provider.
    """
    user = manager.identity.current_user()
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not signed in",
        )
    return user
