"""Efeitos secundários das transições de candidatura.

Dois canais independentes, ambos em regime de melhor esforço:

* email ao voluntário quando a candidatura é aprovada ou rejeitada;
* notificação na aplicação quando é aprovada, rejeitada ou cancelada.

Nenhuma falha aqui é propagada: o resultado do email volta como
``NotificationResult`` e as falhas de gravação da notificação ficam no log.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError

from repositories.notification import NotificationRepository
from services.email import (
    EmailClient,
    GENERIC_FAILURE_MESSAGE,
    NotificationResult,
    build_approved_email,
    build_rejected_email,
    build_submitted_email,
)


logger = logging.getLogger(__name__)

MISSING_VOLUNTEER_EMAIL = "O voluntário não tem email associado ao perfil."


def build_status_notification(status: str, event_title: str | None) -> tuple[str, str, str]:
    """Tipo, título e mensagem da notificação para o novo estado"""
    title_label = event_title or "Evento"
    if status == "approved":
        return (
            "application_approved",
            "Candidatura aprovada",
            f'A sua candidatura ao evento "{title_label}" foi aprovada.',
        )
    if status == "rejected":
        return (
            "application_rejected",
            "Candidatura rejeitada",
            f'A sua candidatura ao evento "{title_label}" não foi aceite desta vez.',
        )
    if status == "cancelled":
        return (
            "application_updated",
            "Candidatura cancelada",
            f'Cancelou a sua candidatura ao evento "{title_label}".',
        )
    return (
        "application_updated",
        "Candidatura atualizada",
        f'O estado da sua candidatura ao evento "{title_label}" foi atualizado.',
    )


class NotificationDispatcher:
    def __init__(self, email_client: EmailClient):
        self.email_client = email_client

    async def dispatch(self, details: dict) -> NotificationResult:
        """Enviar os efeitos secundários do novo estado da candidatura"""
        application = details["application"]
        status = application.status
        result = NotificationResult(status="skipped")

        if status in ("approved", "rejected"):
            try:
                result = await self.send_status_email(details)
            except Exception as e:
                logger.error("Status email raised: application_id=%s", application.id, exc_info=True)
                result = NotificationResult(status="failed", error=str(e) or GENERIC_FAILURE_MESSAGE)

        if status in ("approved", "rejected", "cancelled"):
            await self.create_status_notification(details)

        logger.info(
            "Notifications dispatched: application_id=%s status=%s email=%s",
            application.id, status, result.status
        )
        return result

    async def send_status_email(self, details: dict) -> NotificationResult:
        application = details["application"]
        event = details.get("event")
        organization = details.get("organization")
        volunteer = details.get("volunteer")

        volunteer_email = volunteer.email if volunteer else None
        if not volunteer_email:
            logger.info("Skipping email notification, volunteer email missing: application_id=%s", application.id)
            return NotificationResult(status="skipped", error=MISSING_VOLUNTEER_EMAIL)

        volunteer_name = volunteer.name if volunteer else None
        event_title = event.title if event else None
        organization_name = organization.name if organization else None
        organization_email = organization.email if organization else None

        if application.status == "approved":
            content = build_approved_email(
                volunteer_name=volunteer_name,
                event_title=event_title,
                event_date=event.date if event else None,
                organization_name=organization_name,
                organization_email=organization_email,
                from_name=self.email_client.from_name,
            )
        else:
            content = build_rejected_email(
                volunteer_name=volunteer_name,
                event_title=event_title,
                organization_name=organization_name,
                organization_email=organization_email,
                from_name=self.email_client.from_name,
            )

        result = await self.email_client.send(volunteer_email, content)
        if result.status == "failed":
            logger.warning("Status email failed: application_id=%s error=%s", application.id, result.error)
        return result

    async def create_status_notification(self, details: dict):
        application = details["application"]
        event = details.get("event")
        notification_type, title, message = build_status_notification(
            application.status, event.title if event else None
        )

        try:
            await NotificationRepository.create_notification(
                user_id=application.volunteer_id,
                type=notification_type,
                title=title,
                message=message,
                status=application.status,
                link=f"/events/{application.event_id}",
            )
        except SQLAlchemyError:
            logger.warning("Failed to persist in-app notification: application_id=%s", application.id, exc_info=True)

    async def notify_application_submitted(self, details: dict) -> NotificationResult:
        """Avisar a organização de uma nova candidatura"""
        application = details["application"]
        event = details.get("event")
        organization = details.get("organization")
        volunteer = details.get("volunteer")

        event_title = event.title if event else "Evento"
        volunteer_name = volunteer.name if volunteer else None
        organization_id = event.organization_id if event else None
        if not organization_id:
            return NotificationResult(status="skipped")

        summary = (
            f'Recebeu uma nova candidatura de {volunteer_name} para "{event_title}".'
            if volunteer_name else f'Recebeu uma nova candidatura para "{event_title}".'
        )
        try:
            await NotificationRepository.create_notification(
                user_id=organization_id,
                type="application_submitted",
                title="Nova candidatura recebida",
                message=summary,
                status="pending",
                link="/organization/dashboard",
            )
        except SQLAlchemyError:
            logger.warning("Failed to persist submitted notification: application_id=%s", application.id, exc_info=True)

        organization_email = organization.email if organization else None
        if not organization_email:
            return NotificationResult(status="skipped", error="A organização não tem email associado ao perfil.")

        content = build_submitted_email(
            volunteer_name=volunteer_name or "Voluntário",
            volunteer_email=volunteer.email if volunteer else None,
            event_title=event_title,
            event_date=event.date if event else None,
            message=application.message,
            attachment_name=application.attachment_name,
            has_attachment=bool(application.attachment_path),
            from_name=self.email_client.from_name,
        )
        return await self.email_client.send(organization_email, content)
