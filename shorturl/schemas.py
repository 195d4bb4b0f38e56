from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List
from datetime import datetime, timezone

from .exceptions import InvalidInputError
from .validators import is_blank, validate_code, validate_url

class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

def _checked(validator, value, field):
    try:
        return validator(value, field)
    except InvalidInputError as exc:
        # Surfaces as a pydantic ValidationError, which the API turns into a 400
        raise ValueError("; ".join(exc.errors) or exc.message) from exc

class UrlCreate(CamelModel):
    original_url: str = Field(examples=["https://github.com/user/project"])
    custom_code: Optional[str] = Field(None, examples=["my-project"])

    @field_validator("original_url")
    @classmethod
    def check_original_url(cls, v: str) -> str:
        return _checked(validate_url, v, "originalUrl")

    @field_validator("custom_code")
    @classmethod
    def check_custom_code(cls, v: Optional[str]) -> Optional[str]:
        if is_blank(v):
            return None
        return _checked(validate_code, v, "customCode")

class UrlUpdate(CamelModel):
    original_url: Optional[str] = None
    expires_at: Optional[datetime] = None
    custom_code: Optional[str] = None

    @field_validator("original_url")
    @classmethod
    def check_original_url(cls, v: Optional[str]) -> Optional[str]:
        if is_blank(v):
            return None
        return _checked(validate_url, v, "originalUrl")

    @field_validator("custom_code")
    @classmethod
    def check_custom_code(cls, v: Optional[str]) -> Optional[str]:
        if is_blank(v):
            return None
        return _checked(validate_code, v, "customCode")

    @field_validator("expires_at")
    @classmethod
    def check_expires_at(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return None
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        if v <= datetime.now(timezone.utc):
            raise ValueError("expiresAt: must be in the future")
        return v

class UrlResponse(CamelModel):
    id: int
    code: str
    short_url: str
    original_url: str
    owner_id: Optional[int] = None
    click_count: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
    expires_at: Optional[datetime] = None
    last_click_at: Optional[datetime] = None

class UrlStats(CamelModel):
    code: str
    original_url: str
    click_count: int
    created_at: datetime
    last_click_at: Optional[datetime] = None
    is_active: bool
    expires_at: Optional[datetime] = None

class ErrorResponse(BaseModel):
    status: int
    error: str
    message: str
    path: str
    timestamp: datetime
    errors: List[str] = []
