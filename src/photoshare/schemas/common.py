from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Serialized with camelCase keys; accepts either spelling on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class PaginationInfo(CamelModel):
    page: int
    limit: int
    total: int
    total_pages: int
    has_more: bool


class MessageResponse(CamelModel):
    success: bool = True
    message: str
