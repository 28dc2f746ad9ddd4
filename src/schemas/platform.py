"""Pydantic schemas for platform configuration."""
from pydantic import BaseModel, ConfigDict


class PlatformConfig(BaseModel):
    """A supported platform and its URL pattern (platform-config cache element)."""

    model_config = ConfigDict(from_attributes=True)

    name: str
    display_name: str
    url_pattern: str
