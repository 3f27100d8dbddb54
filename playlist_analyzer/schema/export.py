"""Pydantic models for exported playlist rows."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ExportRow(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    title: str
    channel: str
    published_at: str = Field(alias="publishedAt")
    seconds: int
    formatted_duration: str = Field(alias="formattedDuration")


EXPORT_FIELDS = ("id", "title", "channel", "publishedAt", "seconds", "formattedDuration")
