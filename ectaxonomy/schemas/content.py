from typing import Optional

from pydantic import BaseModel, ConfigDict


class ContentCreate(BaseModel):
    title: str
    content_type: str = "post"
    slug: Optional[str] = None


class ContentResponse(BaseModel):
    id: int
    title: str
    slug: str
    content_type: str

    model_config = ConfigDict(from_attributes=True)


class MetaBoxEntity(BaseModel):
    id: int
    name: str
    slug: str
    checked: bool = False


class MetaBoxGroup(BaseModel):
    """Entities belonging to one collection."""

    collection: str
    slug: str
    background_color: str = ""
    color: str = ""
    entities: list[MetaBoxEntity]


class MetaBoxResponse(BaseModel):
    plugin_name: str
    content_id: int
    taxonomy: str
    collection_taxonomy: str
    title: str
    groups: list[MetaBoxGroup]
    selected: list[str]


class EntitySelectionUpdate(BaseModel):
    entities: list[str]
