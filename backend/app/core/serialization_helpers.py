"""
Generic serialization helpers.
No business logic here, only output shaping.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case attributes in Python, camelCase keys on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def serialize_datetime(value):
    """Convert datetime to ISO string for JSON serialization"""
    if value is None:
        return None
    return value.isoformat()
