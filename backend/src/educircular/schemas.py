"""Shared Pydantic base for API payloads.

The public API speaks camelCase JSON (fileSize, isPublished, ...); Python
code uses snake_case attributes. Both spellings are accepted on input.
"""

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
