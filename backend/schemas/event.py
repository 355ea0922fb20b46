from pydantic import Field
from typing import Optional, List, Literal
from schemas.base import SCamelModel, UtcDatetime
from utils.dates import as_utc
from utils.duration import compute_event_end, format_duration_with_hours




EventStatus = Literal["open", "closed", "completed"]


class SEvent(SCamelModel):
    id: str
    organization_id: str
    title: str
    description: Optional[str] = None
    date: UtcDatetime
    duration: Optional[str] = None
    status: EventStatus
    volunteers_registered: int = 0
    created_at: UtcDatetime
    updated_at: UtcDatetime


class SEventWithSchedule(SEvent):
    duration_label: str = Field(description="Duração formatada, ex.: 1h 30m")
    ends_at: Optional[UtcDatetime] = Field(None, description="Fim calculado a partir da data e da duração; vazio se a duração for impossível")

    @classmethod
    def from_orm_event(cls, event) -> "SEventWithSchedule":
        return cls(
            **SEvent.model_validate(event).model_dump(),
            duration_label=format_duration_with_hours(event.duration),
            ends_at=compute_event_end(as_utc(event.date), event.duration)
        )


class SEventListResponse(SCamelModel):
    events: List[SEventWithSchedule]
    total_count: int
    page: int
    page_size: int
    total_pages: int


class SSweepRequest(SCamelModel):
    dry_run: bool = Field(
        False,
        description="Só reportar o que mudaria, sem gravar",
        json_schema_extra={"example": True}
    )


class SSweepResponse(SCamelModel):
    success: bool = True
    completed_event_ids: List[str]
    skipped_event_ids: List[str]
    completed_count: int
    processed_at: UtcDatetime
