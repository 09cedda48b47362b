"""Chapter data model."""

from pydantic import BaseModel


class Chapter(BaseModel):
    """A numbered textbook chapter in markdown form."""

    number: str
    title: str
    content: str
    source_path: str = ""
