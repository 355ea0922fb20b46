from pydantic import Field
from typing import Optional, List, Literal
from schemas.base import SCamelModel, UtcDatetime




TransitionAction = Literal["cancel", "approve", "reject", "reapply"]
ApplicationStatus = Literal["pending", "approved", "rejected", "cancelled"]
NotificationStatus = Literal["sent", "failed", "skipped"]


class SAttachmentFields(SCamelModel):
    attachment_path: Optional[str] = Field(None, description="Caminho do anexo no armazenamento")
    attachment_name: Optional[str] = Field(None, description="Nome original do ficheiro")
    attachment_mime_type: Optional[str] = Field(None, description="Tipo MIME do anexo")
    attachment_size_bytes: Optional[int] = Field(None, ge=0, description="Tamanho do anexo em bytes")

    def attachment(self) -> dict:
        return {
            "attachment_path": self.attachment_path,
            "attachment_name": self.attachment_name,
            "attachment_mime_type": self.attachment_mime_type,
            "attachment_size_bytes": self.attachment_size_bytes,
        }


class SApplicationCreate(SAttachmentFields):
    event_id: str = Field(description="ID do evento")
    message: Optional[str] = Field(None, description="Mensagem do voluntário para a organização")


class STransitionRequest(SAttachmentFields):
    action: TransitionAction = Field(
        description="Ação a executar",
        examples=["approve"],
        json_schema_extra={"example": "approve"}
    )
    application_id: str = Field(description="ID da candidatura")
    actor_id: Optional[str] = Field(None, description="ID do ator; tem de coincidir com o utilizador autenticado")
    message: Optional[str] = Field(None, description="Nova mensagem (só na recandidatura)")


class SProfileSummary(SCamelModel):
    id: str
    name: str
    email: Optional[str] = None
    type: str


class SEventSummary(SCamelModel):
    id: str
    title: str
    date: UtcDatetime
    duration: Optional[str] = None
    status: str
    organization_id: str
    organization: Optional[SProfileSummary] = None


class SApplicationRecord(SCamelModel):
    id: str
    event_id: str
    volunteer_id: str
    status: ApplicationStatus
    message: Optional[str] = None
    attachment_path: Optional[str] = None
    attachment_name: Optional[str] = None
    attachment_mime_type: Optional[str] = None
    attachment_size_bytes: Optional[int] = None
    applied_at: UtcDatetime
    updated_at: UtcDatetime
    event: Optional[SEventSummary] = None
    volunteer: Optional[SProfileSummary] = None

    @classmethod
    def from_details(cls, details: dict) -> "SApplicationRecord":
        """Montar o registo a partir do dicionário devolvido pelo repositório"""
        event = details.get("event")
        organization = details.get("organization")
        volunteer = details.get("volunteer")

        event_summary = None
        if event is not None:
            event_summary = SEventSummary.model_validate(event).model_copy(
                update={"organization": SProfileSummary.model_validate(organization) if organization else None}
            )

        return cls.model_validate(details["application"]).model_copy(
            update={
                "event": event_summary,
                "volunteer": SProfileSummary.model_validate(volunteer) if volunteer else None,
            }
        )


class STransitionData(SCamelModel):
    application: SApplicationRecord
    notification_status: NotificationStatus
    notification_error: Optional[str] = None


class STransitionResponse(SCamelModel):
    success: bool = True
    data: STransitionData


class SApplicationListResponse(SCamelModel):
    applications: List[SApplicationRecord]
    total_count: int
    page: int
    page_size: int
    total_pages: int
