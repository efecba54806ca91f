"""Command Center 스키마"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from nexus_ops.models.suggestion import Suggestion
from nexus_ops.services.command_center_service import SuggestionCounts


class DismissSuggestionRequest(BaseModel):
    """Suggestion 거절 요청"""

    reason: str | None = Field(default=None, max_length=1000)


class SuggestionResponse(BaseModel):
    """Suggestion 응답"""

    id: str
    type: str
    source_module: str = Field(serialization_alias="sourceModule")
    target_module: str = Field(serialization_alias="targetModule")
    priority: str
    status: str
    root_cause_key: str = Field(serialization_alias="rootCauseKey")
    title: str
    description: str
    payload: dict[str, Any]
    related_ids: dict[str, Any] = Field(serialization_alias="relatedIds")
    created_at: datetime = Field(serialization_alias="createdAt")
    expires_at: datetime | None = Field(default=None, serialization_alias="expiresAt")
    resolved_at: datetime | None = Field(default=None, serialization_alias="resolvedAt")
    accepted_by: str | None = Field(default=None, serialization_alias="acceptedBy")
    dismissed_by: str | None = Field(default=None, serialization_alias="dismissedBy")
    dismiss_reason: str | None = Field(default=None, serialization_alias="dismissReason")
    expire_reason: str | None = Field(default=None, serialization_alias="expireReason")
    result_ref: str | None = Field(default=None, serialization_alias="resultRef")

    class Config:
        populate_by_name = True

    @classmethod
    def from_suggestion(cls, suggestion: Suggestion) -> "SuggestionResponse":
        doc = suggestion.to_document()
        return cls.model_validate(
            {k: v for k, v in doc.items() if k in cls.model_fields}
        )


class SuggestionCountsResponse(BaseModel):
    """Suggestion 카운트 응답"""

    total: int
    pending: int
    critical: int
    by_type: dict[str, int] = Field(serialization_alias="byType")
    by_module: dict[str, int] = Field(serialization_alias="byModule")

    class Config:
        populate_by_name = True

    @classmethod
    def from_counts(cls, counts: SuggestionCounts) -> "SuggestionCountsResponse":
        return cls(
            total=counts.total,
            pending=counts.pending,
            critical=counts.critical,
            by_type=counts.by_type,
            by_module=counts.by_module,
        )


class SuggestionListResponse(BaseModel):
    """Suggestion 목록 응답"""

    suggestions: list[SuggestionResponse]


class CommandCenterResponse(BaseModel):
    """Command Center 화면 데이터 (목록 + 카운트)"""

    suggestions: list[SuggestionResponse]
    counts: SuggestionCountsResponse
