"""Schemas shared by several resources."""
from pydantic import BaseModel


class MessageOut(BaseModel):
    message: str


class PageMeta(BaseModel):
    total_items: int
    total_pages: int
    current_page: int
    items_per_page: int


def upper_if_str(value):
    """Enum inputs are accepted in any letter case."""
    return value.upper() if isinstance(value, str) else value
