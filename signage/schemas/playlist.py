from pydantic import BaseModel, Field


class PlaylistIn(BaseModel):
    name: str = Field(..., min_length=1)


class PlaylistOut(BaseModel):
    id: str
    name: str

    class Config:
        from_attributes = True


class PlaylistEntryIn(BaseModel):
    content_id: str = Field(..., min_length=1)
    duration: int | None = Field(default=None, ge=1)


class PlaylistEntryUpdate(BaseModel):
    duration: int | None = Field(default=None, ge=1)


class ReorderIn(BaseModel):
    entry_ids: list[str]


class PlaylistEntryOut(BaseModel):
    id: str
    playlist_id: str
    content_id: str
    order: int
    duration: int | None = None

    class Config:
        from_attributes = True
