from pydantic import BaseModel, Field
from typing import Optional, Union
from datetime import datetime


class DraftPatch(BaseModel):
    """Fields the client may set; only those of the current step are accepted."""
    title: Optional[str] = Field(default=None, max_length=200)
    category: Optional[str] = None
    location: Optional[str] = Field(default=None, max_length=300)
    latitude: Optional[Union[float, str]] = None
    longitude: Optional[Union[float, str]] = None
    description: Optional[str] = Field(default=None, max_length=4000)
    priority: Optional[str] = None


class GeolocateIn(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    query: Optional[str] = Field(default=None, max_length=300)


class DraftOut(BaseModel):
    id: str
    step: int
    total_steps: int
    progress: int
    data: dict
    submitted: bool
    issue_id: Optional[str] = None
    uploading: bool = False
    locating: bool = False
    submitting: bool = False
    last_error: Optional[str] = None
    missing: list[str] = []
    can_go_back: bool
    can_go_next: bool
    can_submit: bool
    created_at: datetime
