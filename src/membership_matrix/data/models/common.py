from __future__ import annotations

from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field


class DirectoryBaseModel(BaseModel):
    """Base class for directory payload helpers."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Self:
        """Hydrate a model from a raw directory response."""
        return cls.model_validate(payload)

    def to_payload(self) -> dict[str, Any]:
        """Serialize back to the directory's JSON shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class DirectoryResource(DirectoryBaseModel):
    """Shared identifier for users and groups."""

    id: str = Field(min_length=1)
    url: str | None = Field(default=None, alias="@id")
