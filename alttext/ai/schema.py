"""Pydantic data contracts for caption models."""

from pydantic import BaseModel


class ModelCard(BaseModel):
    """Metadata identifying a caption model."""

    name: str
    version: str
