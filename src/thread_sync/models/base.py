"""Shared base for thread_sync wire models.

The messaging API speaks camelCase JSON; models expose snake_case
attributes and accept either spelling on input.
"""

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

__all__ = [
    "WireModel",
    "as_utc",
]


def as_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC so all timestamps compare."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class WireModel(BaseModel):
    """Frozen model with camelCase aliases; unknown server fields are ignored."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )

    def to_wire(self) -> dict:
        """Serialize with wire (camelCase) names, dropping unset optionals."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
