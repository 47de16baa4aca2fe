from fastapi import APIRouter, Depends

from ..dependencies import get_file_manager
from ..manager import FileManager
from ..preferences import UserPreferences

router = APIRouter(
    prefix="/preferences",
    tags=["preferences"],
)


@router.get("", response_model=UserPreferences)
async def get_preferences(manager: FileManager = Depends(get_file_manager)):
    return manager.preferences.load()


@router.put("", response_model=UserPreferences)
async def update_preferences(
    preferences: UserPreferences, manager: FileManager = Depends(get_file_manager)
):
    manager.preferences.save(preferences)
    return preferences
