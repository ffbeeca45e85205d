from typing import FrozenSet, Optional

from pydantic import BaseModel, Field, field_validator


class CompanionFields(BaseModel):
    name: str = Field(min_length=1)
    subject: str = Field(min_length=1)
    topic: str = Field(min_length=1)
    voice: str = Field(min_length=1)
    style: str = Field(min_length=1)
    duration: int = Field(gt=0)     # minutes
    color: Optional[str] = None


class Companion(CompanionFields):
    id: str
    author: str                     # owning caller id, never rewritten
    created_at: str


class SessionHistoryEntry(BaseModel):
    id: str
    companion_id: str
    user_id: str
    created_at: str


class CallerEntitlement(BaseModel):
    plan: Optional[str] = None
    features: FrozenSet[str] = frozenset()


class Caller(BaseModel):
    user_id: str = Field(min_length=1)
    entitlement: CallerEntitlement = CallerEntitlement()


class CompanionFilter(BaseModel):
    subject: Optional[str] = None
    topic: Optional[str] = None

    @field_validator("subject", "topic")
    @classmethod
    def _blank_is_absent(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        return value


class Page(BaseModel):
    limit: int = Field(default=10, ge=0)
    page: int = Field(default=1, ge=1)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit
