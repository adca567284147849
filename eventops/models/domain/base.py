from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, model_validator


class RecordModel(BaseModel):
    """Base for models hydrated from database rows (uuid columns come back as UUID)."""

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def _stringify_uuids(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: str(value) if isinstance(value, UUID) else value for key, value in data.items()}
        return data
