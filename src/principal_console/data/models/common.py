from __future__ import annotations

from typing import Any, Self

from pydantic import BaseModel, ConfigDict


class PrincipalBaseModel(BaseModel):
    """Base class for principal payload helpers."""

    model_config = ConfigDict(
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Self:
        """Hydrate a model from a raw loader payload."""
        return cls.model_validate(payload)

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the loader's wire shape."""
        return self.model_dump(
            mode="json",
            by_alias=True,
            exclude_none=True,
        )
