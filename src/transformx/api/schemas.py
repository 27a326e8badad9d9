"""Pydantic request/response schemas for the TransformX API."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from transformx.imaging.encoder import OutputFormat, OutputSpec
from transformx.imaging.transforms import FilterKind


class ImageStatsResponse(BaseModel):
    """Metadata of an uploaded image."""

    model_config = ConfigDict(from_attributes=True)

    size: int = Field(description="Length of the uploaded file in bytes")
    width: int
    height: int
    format: str = Field(description="Content type declared by the client for the upload")


class OutputQuery(BaseModel):
    """Query parameters shared by every image-producing endpoint."""

    output_format: str = Field(default=OutputFormat.PNG.value, description="png, jpeg or gif")

    def to_output_spec(self, jpeg_quality: int) -> OutputSpec:
        return OutputSpec(format=OutputFormat.parse(self.output_format), jpeg_quality=jpeg_quality)


class ResizeQuery(OutputQuery):
    """Query parameters for the resize endpoint."""

    filter_type: str = Field(default=FilterKind.NEAREST.value, description="Resampling filter name")
    keep_aspect: bool = Field(default=True, description="Fit within the box instead of stretching")

    def to_filter(self) -> FilterKind:
        return FilterKind.parse(self.filter_type)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    version: str


class ErrorResponse(BaseModel):
    """Standard error response."""

    message: str
