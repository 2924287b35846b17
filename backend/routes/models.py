"""Pydantic request models for API endpoints."""

from pydantic import BaseModel, Field


class SessionBody(BaseModel):
    user_id: str = Field(min_length=1)


class ChooseBody(SessionBody):
    target: str
    text: str = ""


class ImageFailureBody(SessionBody):
    image_id: str
