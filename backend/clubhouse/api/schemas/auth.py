"""Login request and response models."""

from typing import Optional

from pydantic import BaseModel, Field


class LoginRequest(BaseModel):
    email: str = Field(..., description="Account email")
    password: str = Field(..., description="Account password")


class LoginResponse(BaseModel):
    redirect: str = Field("/dashboard", description="Where the client should go next")
    token: str = Field(..., description="Session token, also set as a cookie")
    user_id: str
    name: str
    type: str
    expires_in_minutes: Optional[int] = None
