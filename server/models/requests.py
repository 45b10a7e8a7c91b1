"""
Pydantic request models for API validation

Shape checks only. Business rules (end after start, scope faculty counts,
minimum poll options) live in voting.admin so the CLI and API share them.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from voting.admin import ItemDraft


def _strip_required(v: str, name: str) -> str:
    if not v or not v.strip():
        raise ValueError(f"{name} cannot be empty")
    return v.strip()


class VoteRequest(BaseModel):
    selection_id: str

    @field_validator("selection_id")
    @classmethod
    def validate_selection_id(cls, v: str) -> str:
        return _strip_required(v, "selection_id")


class ItemRequest(BaseModel):
    title: str
    description: Optional[str] = None
    start_date: datetime
    end_date: datetime
    scope_type: str
    scope_faculties: List[str] = Field(default_factory=list)
    status: str = "draft"
    options: Optional[List[str]] = None  # Polls only

    def to_draft(self) -> ItemDraft:
        return ItemDraft(
            title=self.title,
            description=self.description,
            start_date=self.start_date,
            end_date=self.end_date,
            scope_type=self.scope_type,
            scope_faculties=list(self.scope_faculties),
            status=self.status,
            options=list(self.options) if self.options is not None else None,
        )


class StatusRequest(BaseModel):
    status: str


class CandidateRequest(BaseModel):
    name: str
    faculty: Optional[str] = None
    bio: Optional[str] = Field(default=None, max_length=2000)
    photo_url: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _strip_required(v, "Candidate name")

    @field_validator("photo_url")
    @classmethod
    def validate_photo_url(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if v and not v.startswith(("http://", "https://")):
            raise ValueError("Photo URL must be a valid HTTP/HTTPS URL")
        return v or None


class VoterRegistrationRequest(BaseModel):
    voter_id: str
    university_id: str
    name: str
    faculty: Optional[str] = None
    major: Optional[str] = None
    contact_email: Optional[str] = None
    role: str = "voter"


class VoterActiveRequest(BaseModel):
    is_active: bool


class VoterUpdateRequest(BaseModel):
    name: Optional[str] = None
    faculty: Optional[str] = None
    major: Optional[str] = None
    contact_email: Optional[str] = None
    university_id: Optional[str] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)
