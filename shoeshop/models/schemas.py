"""Pydantic models for the catalog API."""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Product(BaseModel):
    """A catalog product as served to the storefront.

    Attribute names are snake_case in Python and camelCase on the wire
    (``model_path`` <-> ``modelPath``). ``shoe_scale`` is a rendering hint;
    ``None`` means the caller falls back to its default scale.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    name: str
    price: float = Field(ge=0)
    model_path: str
    color: str
    available_colors: list[str] = Field(default_factory=list)
    category: str
    description: str
    features: list[str] = Field(default_factory=list)
    rating: float
    reviews: int = Field(ge=0)
    in_stock: bool
    date: str
    shoe_scale: float | None = None

    def to_wire(self) -> dict:
        """Serialize for a JSON response, dropping an unset ``shoeScale``."""
        return self.model_dump(by_alias=True, exclude_none=True)


class Message(BaseModel):
    message: str


class ApiStatus(BaseModel):
    status: str
    time: str
