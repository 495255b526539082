"""Result-set field metadata."""

from pydantic import BaseModel


class FieldInfo(BaseModel):
    """Metadata for one column of a result set."""

    name: str
    position: int
    type_name: str | None = None
    max_length: int = 0
