from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from ..dependencies import get_current_user, get_file_manager
from ..files import FilePage, FileSort, SortDirection, SortField, StorageUsage
from ..identity import Identity
from ..manager import FileManager

router = APIRouter(
    prefix="/files",
    tags=["files"],
)


class RenameFileRequest(BaseModel):
    new_name: str


@router.get("", response_model=FilePage)
async def list_files(
    search: str = "",
    sort_field: SortField | None = None,
    direction: SortDirection = SortDirection.ASC,
    page: int = Query(default=1, ge=1),
    page_size: int | None = Query(default=None, ge=1, le=100),
    manager: FileManager = Depends(get_file_manager),
    _: Identity = Depends(get_current_user),
):
    """List uploaded files, filtered by name and sorted"""
    sort = FileSort(field=sort_field, direction=direction) if sort_field else None
    return manager.list_files(search, sort, page, page_size)


@router.get("/usage", response_model=StorageUsage)
async def get_usage(
    manager: FileManager = Depends(get_file_manager),
    _: Identity = Depends(get_current_user),
):
    return manager.usage()


@router.post("/refresh")
async def refresh_files(
    manager: FileManager = Depends(get_file_manager),
    _: Identity = Depends(get_current_user),
):
    """Reload the file list from storage"""
    count = await manager.load_files()
    if count is None:
        raise HTTPException(status_code=502, detail="Failed to load files from storage")
    return {"count": count}


@router.patch("/{record_id}")
async def rename_file(
    record_id: str,
    request: RenameFileRequest,
    manager: FileManager = Depends(get_file_manager),
    _: Identity = Depends(get_current_user),
):
    name = await manager.rename_file(record_id, request.new_name)
    return {"name": name}


@router.delete("/{record_id}")
async def delete_file(
    record_id: str,
    manager: FileManager = Depends(get_file_manager),
    _: Identity = Depends(get_current_user),
):
    await manager.delete_file(record_id)
    return {"message": "File deleted successfully"}
