"""
API Request and Response Schemas

This module defines all Pydantic models for API requests and responses.
Separated from endpoints to keep concerns separated and enable reuse.

Design Principles:
- Request models: Define input shape; URL rules live in the service
- Response models: Define output structure
- Field names follow the public JSON contract (result, correlation_id, ...)
"""

from pydantic import BaseModel, Field


class ShortenRequest(BaseModel):
    """Request model for the JSON shortening endpoint."""
    url: str = Field(..., min_length=1, description="The long URL to shorten")


class ShortenResponse(BaseModel):
    """Response model for the JSON shortening endpoint."""
    result: str = Field(..., description="The complete short URL")


class BatchRequestItem(BaseModel):
    correlation_id: str = Field(..., description="Client-chosen id echoed in the response")
    original_url: str = Field(..., min_length=1, description="The long URL to shorten")


class BatchResponseItem(BaseModel):
    correlation_id: str
    short_url: str


class UserURL(BaseModel):
    """One entry of a user's URL listing."""
    short_url: str
    original_url: str
