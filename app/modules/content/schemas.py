from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class MediaCreate(BaseModel):
    title: str = Field(..., min_length=1)
    description: Optional[str] = None
    file_type: str
    storage_path: str = Field(..., min_length=1)
    thumbnail_path: Optional[str] = None
    scheduled_date: Optional[datetime] = None
    tags: Optional[List[str]] = None


class MediaReject(BaseModel):
    reason: Optional[str] = None


class MediaResponse(BaseModel):
    id: str
    user_id: str
    title: str
    description: Optional[str] = None
    file_type: str
    storage_path: str
    thumbnail_path: Optional[str] = None
    status: str = "pending"
    upload_date: datetime
    scheduled_date: Optional[datetime] = None
    tags: Optional[List[str]] = None

    class Config:
        from_attributes = True
