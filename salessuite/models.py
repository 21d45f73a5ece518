"""
Data model for clients, users and AI-generated content.
"""
from datetime import date
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

ClientStatus = Literal[
    "New Lead",
    "Contacted",
    "Follow-up Needed",
    "Proposal Sent",
    "Closed - Won",
    "Closed - Lost",
]

CLIENT_STATUSES = (
    "New Lead",
    "Contacted",
    "Follow-up Needed",
    "Proposal Sent",
    "Closed - Won",
    "Closed - Lost",
)
CLOSED_STATUSES = ("Closed - Won", "Closed - Lost")

SuggestionField = Literal["business", "location"]
SUGGESTION_FIELDS = ("business", "location")
MAX_SUGGESTIONS = 5


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


class NewClient(_CamelModel):
    """Payload for adding a lead."""
    name: str = Field(min_length=1)
    value: float = Field(ge=0)
    status: ClientStatus = "New Lead"
    email: Optional[str] = None
    phone: Optional[str] = None

    @field_validator("name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name must not be blank")
        return v


class ClientRecord(NewClient):
    id: int
    user_id: str = Field(alias="userId")
    last_contact: date = Field(alias="lastContact")


class User(_CamelModel):
    id: str
    name: str
    email: str
    is_admin: bool = Field(default=False, alias="isAdmin")


class ValidationRow(_CamelModel):
    original_index: int = Field(alias="originalIndex", ge=0)
    is_valid: bool = Field(alias="isValid")
    issues: List[str] = Field(default_factory=list)


class SuggestionSet(_CamelModel):
    field: SuggestionField
    suggestions: List[str] = Field(default_factory=list, max_length=MAX_SUGGESTIONS)


class Citation(_CamelModel):
    title: str = ""
    uri: str


class GeneratedContent(_CamelModel):
    """Report, pitch or draft body plus optional grounding sources."""
    model_config = ConfigDict(frozen=True)

    text: str
    citations: List[Citation] = Field(default_factory=list)


class EmailDraft(_CamelModel):
    subject: str
    body: str


class EmailVerification(_CamelModel):
    status: str
    reason: str


class FollowUpSuggestion(_CamelModel):
    client_name: str = Field(alias="clientName")
    reason: str
