"""Máquina de estados das candidaturas.

Quatro ações sobre uma candidatura, com matriz de autorização fixa:

    cancel   -> cancelled   (voluntário dono da candidatura)
    approve  -> approved    (organização dona do evento)
    reject   -> rejected    (organização dona do evento)
    reapply  -> pending     (voluntário, só a partir de cancelled)

cancel/approve/reject são aceites a partir de qualquer estado, tal como
sempre foram; restringir a ``pending`` muda comportamento observável.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Optional

from config import NOTIFICATION_WAIT_SECONDS, STORE_READ_TIMEOUT_SECONDS
from repositories.application import ApplicationRepository
from services.email import NotificationResult
from services.notifications import NotificationDispatcher
from utils.dates import utcnow
from utils.errors import (
    NotFoundError,
    ForbiddenError,
    InvalidStateError,
    TransitionConflictError,
    PersistenceError,
)


logger = logging.getLogger(__name__)

ACTIONS = ("cancel", "approve", "reject", "reapply")
VOLUNTEER_ACTIONS = ("cancel", "reapply")
ORGANIZATION_ACTIONS = ("approve", "reject")
NOTIFYING_STATUSES = ("approved", "rejected", "cancelled")

_TARGET_STATUS = {
    "cancel": "cancelled",
    "approve": "approved",
    "reject": "rejected",
    "reapply": "pending",
}

ATTACHMENT_FIELDS = ("attachment_path", "attachment_name", "attachment_mime_type", "attachment_size_bytes")


def resolve_target_status(action: str) -> str:
    return _TARGET_STATUS[action]


def authorize_transition(action: str, details: dict, actor_id: str):
    """Levantar ForbiddenError se o ator não pode executar a ação"""
    application = details["application"]

    if action in VOLUNTEER_ACTIONS and application.volunteer_id != actor_id:
        logger.warning(
            "Volunteer attempted to manage another user's application: application_id=%s actor_id=%s action=%s",
            application.id, actor_id, action
        )
        raise ForbiddenError("Não tem permissão para gerir esta candidatura.")

    if action in ORGANIZATION_ACTIONS:
        event = details.get("event")
        organization_id = event.organization_id if event else None
        if not organization_id or organization_id != actor_id:
            logger.warning(
                "Organization mismatch: application_id=%s actor_id=%s organization_id=%s action=%s",
                application.id, actor_id, organization_id, action
            )
            raise ForbiddenError("Não tem permissão para atualizar esta candidatura.")


def build_transition_values(action: str, message: Optional[str] = None, attachment: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    now = utcnow()
    values = {
        "status": resolve_target_status(action),
        "updated_at": now,
    }
    if action == "reapply":
        attachment = attachment or {}
        values["applied_at"] = now
        values["message"] = message
        for field in ATTACHMENT_FIELDS:
            values[field] = attachment.get(field)
    return values


@dataclass
class TransitionResult:
    details: dict
    notification: NotificationResult

    @property
    def application(self):
        return self.details["application"]


class ApplicationTransitionService:
    def __init__(
        self,
        dispatcher: NotificationDispatcher,
        notification_timeout: float = NOTIFICATION_WAIT_SECONDS,
        read_timeout: float = STORE_READ_TIMEOUT_SECONDS,
    ):
        self.dispatcher = dispatcher
        self.notification_timeout = notification_timeout
        self.read_timeout = read_timeout
        self._background_tasks: set[asyncio.Task] = set()

    async def load_details(self, application_id: str) -> Optional[dict]:
        """Ler a candidatura com evento e perfis, com limite de tempo"""
        try:
            return await asyncio.wait_for(
                ApplicationRepository.get_application_with_details(application_id),
                timeout=self.read_timeout,
            )
        except asyncio.TimeoutError:
            logger.error("Application read timed out after %ss: application_id=%s", self.read_timeout, application_id)
            raise PersistenceError("A leitura da candidatura excedeu o tempo limite.")

    async def transition(
        self,
        action: str,
        application_id: str,
        actor_id: str,
        message: Optional[str] = None,
        attachment: Optional[dict[str, Any]] = None,
    ) -> TransitionResult:
        """Executar uma ação sobre a candidatura e devolver o registo atualizado"""
        if action not in ACTIONS:
            raise InvalidStateError("Ação não suportada.")
        logger.info("Managing application: application_id=%s action=%s actor_id=%s", application_id, action, actor_id)

        details = await self.load_details(application_id)
        if details is None:
            logger.warning("Application not found: application_id=%s", application_id)
            raise NotFoundError("Candidatura não encontrada.")

        authorize_transition(action, details, actor_id)

        application = details["application"]
        if action == "reapply" and application.status != "cancelled":
            logger.warning(
                "Reapply attempted on non-cancelled application: application_id=%s status=%s",
                application_id, application.status
            )
            raise InvalidStateError("A candidatura não está cancelada.")

        values = build_transition_values(action, message, attachment)
        logger.info(
            "Updating application status: application_id=%s from=%s to=%s",
            application_id, application.status, values["status"]
        )

        applied = await ApplicationRepository.apply_transition(
            application_id,
            expected_version=application.version,
            values=values,
            required_status="cancelled" if action == "reapply" else None,
        )
        if not applied:
            raise await self._conflict(application_id, action)

        updated = await self.load_details(application_id)
        if updated is None:
            raise NotFoundError("Candidatura não encontrada.")

        notification = await self._notify(updated)
        logger.info(
            "Application managed successfully: application_id=%s status=%s notification=%s",
            application_id, values["status"], notification.status
        )
        return TransitionResult(details=updated, notification=notification)

    async def _conflict(self, application_id: str, action: str) -> Exception:
        current = await self.load_details(application_id)
        if current is None:
            return NotFoundError("Candidatura não encontrada.")

        current_status = current["application"].status
        logger.warning(
            "Concurrent transition won: application_id=%s action=%s current_status=%s",
            application_id, action, current_status
        )
        if action == "reapply" and current_status != "cancelled":
            return TransitionConflictError("A candidatura não está cancelada.", current_status=current_status)
        return TransitionConflictError(
            f"A candidatura foi atualizada entretanto e está agora no estado '{current_status}'.",
            current_status=current_status,
        )

    async def _notify(self, details: dict) -> NotificationResult:
        """Lançar o envio em segundo plano e esperar pelo resultado com limite de tempo"""
        if details["application"].status not in NOTIFYING_STATUSES:
            return NotificationResult(status="skipped")

        task = asyncio.create_task(self.dispatcher.dispatch(details))
        self._background_tasks.add(task)
        task.add_done_callback(self._dispatch_done)

        try:
            return await asyncio.wait_for(asyncio.shield(task), timeout=self.notification_timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Notification dispatch still running after %ss: application_id=%s",
                self.notification_timeout, details["application"].id
            )
            return NotificationResult(status="failed", error="O envio da notificação excedeu o tempo limite.")
        except Exception as e:
            # já registado em _dispatch_done
            return NotificationResult(status="failed", error=str(e) or "Erro desconhecido")

    def _dispatch_done(self, task: asyncio.Task):
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error("Notification dispatch failed", exc_info=error)

    async def drain(self):
        """Esperar pelos envios ainda em curso (no encerramento da aplicação)"""
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
