"""
User profile field updates.

Each variant names exactly one editable column and carries a value of that
column's type, so a request cannot write arbitrary attributes.
"""
from fastapi import Body
from pydantic import BaseModel, EmailStr, Field
from typing import Annotated, Literal, Optional, Union


class UserNameUpdate(BaseModel):
    field: Literal["name"]
    value: str = Field(..., min_length=1, max_length=255)


class UserEmailUpdate(BaseModel):
    field: Literal["email"]
    value: EmailStr


class UserImageUpdate(BaseModel):
    field: Literal["image"]
    value: Optional[str] = Field(None, max_length=500)


class UserGithubUpdate(BaseModel):
    field: Literal["gh_username"]
    value: Optional[str] = Field(None, max_length=255)


UserFieldUpdate = Union[UserNameUpdate, UserEmailUpdate, UserImageUpdate, UserGithubUpdate]

# Request body form, dispatched on "field"
UserFieldUpdateBody = Annotated[UserFieldUpdate, Body(discriminator="field")]
