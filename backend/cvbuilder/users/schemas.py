"""Profile and password request schemas."""

from pydantic import BaseModel, EmailStr, Field
from pydantic.alias_generators import to_camel


class ProfileUpdateRequest(BaseModel):
    name: str | None = Field(None, max_length=255)
    email: EmailStr | None = None


class PasswordChangeRequest(BaseModel):
    model_config = {"alias_generator": to_camel, "populate_by_name": True}

    current_password: str | None = None
    new_password: str | None = Field(None, max_length=255)
