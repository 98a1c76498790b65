from datetime import datetime
from typing import Optional

from pydantic import Field, field_validator

from certtracker.schemas.camel_base_model import CamelCaseBaseModel as BaseModel


class CreateRecipientRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200, description="Display name")
    email: str = Field(..., min_length=1, max_length=320, description="Email address")
    role: Optional[str] = Field(default=None, max_length=200, description="Role")
    is_active: bool = Field(default=True, description="Receives notifications")

    @field_validator("name", "email")
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class UpdateRecipientRequest(BaseModel):
    """Partial update; only the fields present in the request are changed"""

    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    email: Optional[str] = Field(default=None, min_length=1, max_length=320)
    role: Optional[str] = Field(default=None, max_length=200)
    is_active: Optional[bool] = Field(default=None)


class RecipientResponse(BaseModel):
    id: str = Field(..., description="Recipient ID")
    name: str
    email: str
    role: Optional[str] = None
    is_active: bool
    created_at: datetime
    updated_at: datetime
