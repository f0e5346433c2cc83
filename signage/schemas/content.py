from typing import Literal

from pydantic import BaseModel, Field

ContentType = Literal["IMAGE", "VIDEO", "WEBSITE", "MENU_HTML", "COMPOSITION"]


class ContentIn(BaseModel):
    name: str = Field(..., min_length=1)
    type: ContentType
    url: str | None = None
    body: str | None = None
    data: str | None = None
    duration: int = Field(default=10, ge=1)


class ContentUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1)
    url: str | None = None
    body: str | None = None
    data: str | None = None
    duration: int | None = Field(default=None, ge=1)


class ContentOut(BaseModel):
    id: str
    name: str
    type: str
    url: str | None = None
    body: str | None = None
    data: str | None = None
    duration: int

    class Config:
        from_attributes = True
