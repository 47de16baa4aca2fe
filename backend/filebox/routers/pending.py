from typing import List

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel

from ..dependencies import get_current_user, get_file_manager
from ..errors import CollisionPolicyRequiredError
from ..files import BatchResult, CollisionPolicy, CollisionReport, PendingItem
from ..identity import Identity
from ..manager import FileManager

router = APIRouter(
    prefix="/pending",
    tags=["pending"],
)


class UploadRequest(BaseModel):
    """Policy applied when files in the batch share the same name"""

    policy: CollisionPolicy | None = None


@router.get("", response_model=List[PendingItem])
async def list_pending(
    manager: FileManager = Depends(get_file_manager),
    _: Identity = Depends(get_current_user),
):
    return manager.pending.items()


@router.post("", response_model=List[PendingItem])
async def add_pending(
    files: List[UploadFile] = File(...),
    manager: FileManager = Depends(get_file_manager),
    _: Identity = Depends(get_current_user),
):
    """Queue files for the next upload"""
    selected = []
    for file in files:
        if not file.filename:
            continue
        payload = await file.read()
        selected.append((file.filename, payload, file.content_type or ""))
    return await manager.add_files(selected)


@router.delete("/{item_id}")
async def cancel_pending(
    item_id: str,
    manager: FileManager = Depends(get_file_manager),
    _: Identity = Depends(get_current_user),
):
    await manager.cancel_pending(item_id)
    return {"message": "Pending file removed"}


@router.post("/{item_id}/retry", response_model=PendingItem)
async def retry_pending(
    item_id: str,
    manager: FileManager = Depends(get_file_manager),
    _: Identity = Depends(get_current_user),
):
    return manager.retry_pending(item_id)


@router.post("/upload/check", response_model=CollisionReport)
async def check_upload(
    manager: FileManager = Depends(get_file_manager),
    _: Identity = Depends(get_current_user),
):
    """Report queued files that share the same name"""
    return manager.check_collisions()


@router.post("/upload", response_model=BatchResult)
async def upload_pending(
    request: UploadRequest,
    wait: bool = False,
    manager: FileManager = Depends(get_file_manager),
    _: Identity = Depends(get_current_user),
):
    """Resolve names and start uploading every queued file.

    With ``wait=true`` the response is sent once every upload has finished.
    """

    async def ask_policy(report: CollisionReport) -> CollisionPolicy:
        if request.policy is None:
            raise CollisionPolicyRequiredError(report)
        return request.policy

    result = await manager.upload_pending(ask_policy)
    if wait:
        await manager.uploads.wait_idle()
    return result
