"""
Recipedium Shared Schemas
Base model and envelopes shared by the request/response schemas
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

# Largest value an INTEGER column holds on every supported backend
MAX_INT = 2 ** 31 - 1


class ApiModel(BaseModel):
    """Schema base: camelCase on the wire, snake_case in Python"""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        extra="ignore",
    )


class MessageResponse(BaseModel):
    """Plain acknowledgement body"""
    msg: str
