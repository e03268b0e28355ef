from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TaxonomyResponse(BaseModel):
    key: str
    kind: Optional[str] = None
    owner: Optional[str] = None
    object_types: list[str]
    labels: dict[str, str]
    args: dict[str, Any]

    model_config = ConfigDict(from_attributes=True)


class FieldOption(BaseModel):
    """One choice of a dropdown or multicheckbox field."""

    value: str
    label: str
    background_color: Optional[str] = None
    color: Optional[str] = None


class FieldDefinition(BaseModel):
    """A custom field shown on the add/edit term form."""

    name: str
    label: str = ""
    hint: str = ""
    type: Literal["text", "color", "dropdown", "multicheckbox"] = "text"
    value: Any = None
    options: list[FieldOption] = Field(default_factory=list)
    selected_options: list[str] = Field(default_factory=list)


class TermCreate(BaseModel):
    name: str
    slug: Optional[str] = None
    description: Optional[str] = None
    term_meta: Optional[dict[str, Any]] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be empty")
        return v


class TermUpdate(BaseModel):
    name: Optional[str] = None
    slug: Optional[str] = None
    description: Optional[str] = None
    term_meta: Optional[dict[str, Any]] = None


class TermResponse(BaseModel):
    id: int
    taxonomy: str
    name: str
    slug: str
    description: Optional[str] = None
    term_meta: dict[str, Any] = Field(default_factory=dict)


class TermRow(BaseModel):
    """A row of the term list: one value per admin column."""

    id: int
    columns: dict[str, Any]
