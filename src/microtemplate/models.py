"""Base Pydantic models for catalog entries and template nodes.

This module defines the foundational model classes used by all catalog
and composition structures. It enforces immutability and strict schema
validation so that descriptors and finished nodes can be shared freely
and handed to the engine without defensive copies.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SchemaModel(BaseModel):
    """Base immutable model for catalog entries and template nodes.

    Design principles enforced by this model:
        - Immutability: descriptors and finished nodes can not be
          modified after creation.
        - Strict schema validation: unknown or extra fields are rejected
          to avoid silent errors caused by typos in catalogs.

    All catalog and node models must inherit from this class.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        frozen=True,
        extra='forbid',
    )


class DescribedMixin(SchemaModel):
    """Mixin providing catalog entry self-documentation.

    The fields defined in this model do not affect binding or
    composition and are used purely for descriptive purposes.
    """

    description: str | None = Field(
        default=None,
        title='Description',
        description='Human-readable description of the catalog entry.',
    )


class SettingsModel(BaseSettings):
    """Base immutable model for runtime settings.

    Design principles enforced by this model:
        - Immutability: resolved settings can not be modified after creation.
        - Tolerant schema handling: unknown or extra fields are ignored,
          so unrelated environment variables never break resolution.
    """

    model_config = SettingsConfigDict(
        frozen=True,
        extra='ignore',
    )
