from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from ..dependencies import get_current_user, get_file_manager
from ..identity import Identity
from ..manager import FileManager

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


class SignInRequest(BaseModel):
    email: str
    password: str


class PasswordResetRequest(BaseModel):
    email: str


class DeleteAccountRequest(BaseModel):
    password: str


@router.post("/sign-in", response_model=Identity)
async def sign_in(
    request: SignInRequest, manager: FileManager = Depends(get_file_manager)
):
    """Sign in and load the user's files"""
    return await manager.sign_in(request.email, request.password)


@router.post("/sign-out")
async def sign_out(manager: FileManager = Depends(get_file_manager)):
    await manager.sign_out()
    return {"message": "Signed out"}


@router.get("/me", response_model=Identity)
async def get_me(user: Identity = Depends(get_current_user)):
    return user


@router.post("/password-reset")
async def send_password_reset(
    request: PasswordResetRequest, manager: FileManager = Depends(get_file_manager)
):
    try:
        await manager.identity.send_password_reset(request.email)
    except LookupError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return {"message": "Password reset email sent"}


@router.delete("/account")
async def delete_account(
    request: DeleteAccountRequest,
    manager: FileManager = Depends(get_file_manager),
    _: Identity = Depends(get_current_user),
):
    """Permanently delete the signed-in account"""
    await manager.delete_account(request.password)
    return {"message": "Account deleted"}
