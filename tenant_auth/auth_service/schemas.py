from pydantic import BaseModel, ConfigDict, Field, AliasChoices

from typing import List, Optional

# Request fields are optional at the schema level so that missing values are
# reported by the service as "All fields required." with a 400.


class UserCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    role: Optional[str] = Field(default=None, validation_alias=AliasChoices("role", "type"))
    admin_key: Optional[str] = Field(default=None, validation_alias=AliasChoices("adminKey", "admin_key"))
    external_id: Optional[str] = Field(default=None, validation_alias=AliasChoices("externalId", "external_id"))


class UserLogin(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class TokenVerifyRequest(BaseModel):
    token: Optional[str] = None


class Token(BaseModel):
    token: str


class TokenStatus(BaseModel):
    valid: bool


class UserName(BaseModel):
    name: str


class ErrorMessage(BaseModel):
    message: str


class ExternalIdList(BaseModel):
    tenant: str
    external_ids: List[str]
