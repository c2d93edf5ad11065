from pydantic import BaseModel, Field, model_validator
from typing import Optional, Union
from datetime import datetime
from civic_portal.core.catalog import IssueCategory, IssuePriority, IssueStatus

EntityId = Union[int, str]


class IssueOut(BaseModel):
    """Issue as returned by the gateway.

    Enumerated fields stay plain strings here; records written by other
    clients may carry values this service does not know about.
    """
    id: EntityId
    title: str
    description: Optional[str] = None
    category: Optional[str] = None
    priority: str = IssuePriority.medium.value
    status: str = IssueStatus.pending.value

    location: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    image_url: Optional[str] = None

    upvotes: int = 0
    comments_count: int = 0

    department: Optional[str] = None
    resolution_note: Optional[str] = None

    created_by: Optional[str] = None
    created_date: datetime
    updated_date: Optional[datetime] = None

    class Config:
        from_attributes = True

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class IssueCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = None
    category: IssueCategory
    priority: IssuePriority = IssuePriority.medium
    status: IssueStatus = IssueStatus.pending

    location: str = Field(default="", max_length=300)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    image_url: Optional[str] = None

    upvotes: int = Field(default=0, ge=0)
    comments_count: int = Field(default=0, ge=0)
    created_by: Optional[str] = None

    @model_validator(mode="after")
    def _coordinates_pair(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        return self


class IssueUpdate(BaseModel):
    status: Optional[IssueStatus] = None
    priority: Optional[IssuePriority] = None
    department: Optional[str] = Field(default=None, max_length=120)
    resolution_note: Optional[str] = None
    upvotes: Optional[int] = Field(default=None, ge=0)
    comments_count: Optional[int] = Field(default=None, ge=0)


class StaffIssueUpdate(BaseModel):
    status: Optional[IssueStatus] = None
    department: Optional[str] = Field(default=None, max_length=120)
    resolution_note: Optional[str] = None


class CommentOut(BaseModel):
    id: EntityId
    issue_id: EntityId
    content: str
    user_name: str = "Community Member"
    created_date: datetime

    class Config:
        from_attributes = True


class CommentCreate(BaseModel):
    issue_id: EntityId
    content: str = Field(min_length=1, max_length=4000)
    user_name: str = Field(default="Community Member", max_length=120)


class CommentIn(BaseModel):
    content: str = Field(max_length=4000)
