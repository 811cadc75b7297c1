"""Pydantic schemas for create-video responses."""

from pydantic import BaseModel, Field


class CompositionErrorSchema(BaseModel):
    status: str = "error"
    failure_reason: str
    details: str | None = None


class AudioTrackSchema(BaseModel):
    file_name: str
    size_bytes: int


class AudioTrackListSchema(BaseModel):
    tracks: list[AudioTrackSchema] = Field(default_factory=list)
