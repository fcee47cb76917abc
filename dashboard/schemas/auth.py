from typing import Optional

from pydantic import AliasChoices, BaseModel, Field


class ApiKeyValidateRequest(BaseModel):
    api_key: Optional[str] = Field(None, validation_alias=AliasChoices("api_key", "apiKey"))


class ApiKeyValidateResponse(BaseModel):
    valid: bool
    message: str
