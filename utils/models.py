"""Base model for records persisted in the JSON collection files.

The files are shared with the desktop UI, which reads and writes camelCase
keys (passwordHash, expiresAt, ...). Python code uses snake_case attributes.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from clients.json_store_client import StorageError
from utils.timezone import assume_utc


class CamelModel(BaseModel):
    """Pydantic model that reads either naming style and dumps camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )

    @field_validator("*", mode="after")
    @classmethod
    def _naive_datetimes_are_utc(cls, value):
        # Hand-edited files may carry "2000-01-01T00:00:00" with no offset
        if isinstance(value, datetime):
            return assume_utc(value)
        return value

    def to_json_dict(self) -> dict:
        """Serialize for storage or the wire (camelCase, ISO datetimes)."""
        return self.model_dump(mode="json", by_alias=True)

    @classmethod
    def from_stored(cls, row: dict, source: str):
        """Parse a stored row. A malformed row raises StorageError for source."""
        try:
            return cls.model_validate(row)
        except ValidationError as e:
            raise StorageError(source, f"malformed {cls.__name__} record: {e}") from e
