"""
UI preferences persisted as a flat JSON object of string values.
"""

import json
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, ValidationError

from .files.types import FileSort, SortDirection, SortField
from .logger import logger


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class SortOrder(str, Enum):
    NAME_ASC = "name_asc"
    NAME_DESC = "name_desc"
    DATE_ASC = "date_asc"
    DATE_DESC = "date_desc"
    SIZE_ASC = "size_asc"
    SIZE_DESC = "size_desc"

    def to_file_sort(self) -> FileSort:
        field, direction = self.value.rsplit("_", 1)
        return FileSort(
            field=SortField.UPLOAD_DATE if field == "date" else SortField(field),
            direction=SortDirection(direction),
        )


class UserPreferences(BaseModel):
    theme: Theme = Theme.SYSTEM
    sort_order: SortOrder = SortOrder.NAME_ASC
    files_per_page: int = Field(default=10, ge=1, le=100)


class PreferenceStore:
    """Key-value store backed by a JSON file."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unreadable preferences file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring preferences file {self.path}: not an object")
            return {}
        return {str(key): str(value) for key, value in data.items()}

    def _write(self, data: dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")

    def get(self, key: str) -> str | None:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def load(self) -> UserPreferences:
        """Load preferences, falling back to defaults for invalid values."""
        preferences = UserPreferences()
        for key, value in self._read().items():
            if key not in UserPreferences.model_fields:
                continue
            try:
                preferences = UserPreferences.model_validate(
                    {**preferences.model_dump(), key: value}
                )
            except ValidationError:
                logger.warning(f"Ignoring invalid preference {key}={value!r}")
        return preferences

    def save(self, preferences: UserPreferences) -> None:
        data = self._read()
        for key, value in preferences.model_dump(mode="json").items():
            data[key] = str(value)
        self._write(data)
