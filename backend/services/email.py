"""Envio de emails transacionais através do fornecedor HTTP (Resend por omissão).

O resultado de cada envio é classificado em ``sent``, ``failed`` ou ``skipped``
e nunca levanta exceções para quem chama: uma falha do fornecedor não pode
desfazer a mudança de estado que a originou.
"""
import html
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

import httpx

from config import (
    EMAIL_API_URL,
    EMAIL_API_KEY,
    EMAIL_FROM_ADDRESS,
    EMAIL_FROM_NAME,
    EMAIL_TIMEOUT_SECONDS,
)
from utils.dates import as_utc


logger = logging.getLogger(__name__)

GENERIC_FAILURE_MESSAGE = "Falha ao enviar notificação."

_MONTHS = (
    "janeiro", "fevereiro", "março", "abril", "maio", "junho",
    "julho", "agosto", "setembro", "outubro", "novembro", "dezembro",
)


@dataclass
class NotificationResult:
    status: str  # sent, failed, skipped
    error: Optional[str] = None


@dataclass
class EmailContent:
    subject: str
    html: str
    text: str


def format_event_date(value: Optional[datetime]) -> str:
    """Data por extenso, ex.: "15 de março de 2025, 10:00" (UTC)"""
    if value is None:
        return ""
    value = as_utc(value)
    return f"{value.day:02d} de {_MONTHS[value.month - 1]} de {value.year}, {value.hour:02d}:{value.minute:02d}"


def _wrap_html(paragraphs: list[str]) -> str:
    body = "\n      ".join(paragraph for paragraph in paragraphs if paragraph)
    return (
        '<div style="font-family: Arial, sans-serif; line-height: 1.6; color: #1f2937;">\n'
        f"      {body}\n"
        "    </div>"
    )


def build_approved_email(
    volunteer_name: Optional[str],
    event_title: Optional[str],
    event_date: Optional[datetime],
    organization_name: Optional[str],
    organization_email: Optional[str],
    from_name: str = EMAIL_FROM_NAME,
) -> EmailContent:
    subject = f"Candidatura aprovada: {event_title}" if event_title else "A sua candidatura foi aprovada"
    greeting = f"Olá {volunteer_name}," if volunteer_name else "Olá,"
    date_label = format_event_date(event_date)

    e = html.escape
    paragraphs = [
        f"<p>{e(greeting)}</p>",
        (
            f"<p>Temos o prazer de informar que a sua candidatura ao evento <strong>{e(event_title)}</strong> foi aprovada.</p>"
            if event_title else "<p>A sua candidatura foi aprovada.</p>"
        ),
        f"<p><strong>Data e hora:</strong> {date_label}</p>" if date_label else "",
        f"<p><strong>Organização:</strong> {e(organization_name)}</p>" if organization_name else "",
        "<p>A organização irá contactá-lo em breve com mais detalhes. Obrigado por fazer parte da comunidade ImpactoLocal!</p>",
        (
            f'<p>Para qualquer questão, pode contactar a organização através de <a href="mailto:{e(organization_email)}">{e(organization_email)}</a>.</p>'
            if organization_email else ""
        ),
        f"<p>Com os melhores cumprimentos,<br/>{e(from_name)}</p>",
    ]

    text_lines = [
        greeting,
        f'A sua candidatura ao evento "{event_title}" foi aprovada.' if event_title else "A sua candidatura foi aprovada.",
        f"Data e hora: {date_label}" if date_label else "",
        f"Organização: {organization_name}" if organization_name else "",
        f"Pode contactar a organização através de {organization_email}." if organization_email else "",
        "Obrigado por fazer parte da comunidade ImpactoLocal!",
        f"Com os melhores cumprimentos,\n{from_name}",
    ]
    return EmailContent(subject=subject, html=_wrap_html(paragraphs), text="\n\n".join(filter(None, text_lines)))


def build_rejected_email(
    volunteer_name: Optional[str],
    event_title: Optional[str],
    organization_name: Optional[str],
    organization_email: Optional[str],
    from_name: str = EMAIL_FROM_NAME,
) -> EmailContent:
    subject = f"Candidatura não aprovada: {event_title}" if event_title else "Atualização sobre a sua candidatura"
    greeting = f"Olá {volunteer_name}," if volunteer_name else "Olá,"

    e = html.escape
    paragraphs = [
        f"<p>{e(greeting)}</p>",
        (
            f"<p>Informamos que a sua candidatura ao evento <strong>{e(event_title)}</strong> não foi aprovada neste momento.</p>"
            if event_title else "<p>Informamos que a sua candidatura não foi aprovada neste momento.</p>"
        ),
        f"<p><strong>Organização:</strong> {e(organization_name)}</p>" if organization_name else "",
        "<p>Agradecemos o seu interesse e encorajamos a candidatar-se a outros eventos na plataforma ImpactoLocal.</p>",
        (
            f'<p>Para mais informações, pode contactar a organização através de <a href="mailto:{e(organization_email)}">{e(organization_email)}</a>.</p>'
            if organization_email else ""
        ),
        f"<p>Com os melhores cumprimentos,<br/>{e(from_name)}</p>",
    ]

    text_lines = [
        greeting,
        (
            f'A sua candidatura ao evento "{event_title}" não foi aprovada neste momento.'
            if event_title else "A sua candidatura não foi aprovada neste momento."
        ),
        f"Organização: {organization_name}" if organization_name else "",
        "Agradecemos o seu interesse e encorajamos a candidatar-se a outros eventos na plataforma ImpactoLocal.",
        f"Para mais informações: {organization_email}" if organization_email else "",
        f"Com os melhores cumprimentos,\n{from_name}",
    ]
    return EmailContent(subject=subject, html=_wrap_html(paragraphs), text="\n\n".join(filter(None, text_lines)))


def build_submitted_email(
    volunteer_name: str,
    volunteer_email: Optional[str],
    event_title: str,
    event_date: Optional[datetime],
    message: Optional[str],
    attachment_name: Optional[str],
    has_attachment: bool,
    from_name: str = EMAIL_FROM_NAME,
) -> EmailContent:
    subject = f"Nova candidatura: {event_title}" if event_title else "Nova candidatura recebida"
    date_label = format_event_date(event_date)
    attachment_label = attachment_name or "Ficheiro submetido pelo voluntário"

    e = html.escape
    contact = (
        f'<br/>\n      <strong>Email:</strong> <a href="mailto:{e(volunteer_email)}">{e(volunteer_email)}</a>'
        if volunteer_email else ""
    )
    paragraphs = [
        "<p>Olá,</p>",
        f"<p>Recebeu uma nova candidatura para o evento <strong>{e(event_title)}</strong>.</p>",
        f"<p><strong>Voluntário:</strong> {e(volunteer_name)}{contact}</p>",
        f"<p><strong>Data do evento:</strong> {date_label}</p>" if date_label else "",
        f"<p><strong>Mensagem do voluntário:</strong><br/><em>{e(message)}</em></p>" if message else "",
        f"<p><strong>Anexo enviado:</strong> {e(attachment_label)}</p>" if has_attachment else "",
        "<p>Aceda à sua dashboard para gerir esta candidatura.</p>",
        f"<p>Com os melhores cumprimentos,<br/>{e(from_name)}</p>",
    ]

    text_lines = [
        "Olá,",
        f'Recebeu uma nova candidatura para o evento "{event_title}".',
        f"Voluntário: {volunteer_name}",
        f"Email: {volunteer_email}" if volunteer_email else "",
        f"Data do evento: {date_label}" if date_label else "",
        f"Mensagem: {message}" if message else "",
        f"Anexo enviado: {attachment_label}" if has_attachment else "",
        "Aceda à sua dashboard para gerir esta candidatura.",
        f"Com os melhores cumprimentos,\n{from_name}",
    ]
    return EmailContent(subject=subject, html=_wrap_html(paragraphs), text="\n\n".join(filter(None, text_lines)))


class EmailClient:
    def __init__(
        self,
        api_url: str = EMAIL_API_URL,
        api_key: Optional[str] = EMAIL_API_KEY,
        from_address: Optional[str] = EMAIL_FROM_ADDRESS,
        from_name: str = EMAIL_FROM_NAME,
        timeout: float = EMAIL_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = api_url
        self.api_key = api_key
        self.from_address = from_address
        self.from_name = from_name
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def sender(self) -> str:
        return f"{self.from_name} <{self.from_address}>" if self.from_name else self.from_address

    async def send(self, to_email: str, content: EmailContent) -> NotificationResult:
        """Enviar email e classificar a resposta do fornecedor"""
        if not self.api_key or not self.from_address:
            logger.error("Email provider configuration missing (api key or sender address)")
            return NotificationResult(status="failed", error="Configuração de email em falta.")

        payload = {
            "from": self.sender,
            "to": [to_email],
            "subject": content.subject,
            "html": content.html,
            "text": content.text,
        }

        try:
            resp = await self._client.post(
                self.api_url,
                json=payload,
                headers={"Authorization": f"Bearer {self.api_key}"}
            )
        except httpx.TimeoutException:
            logger.error("Email request timed out: to=%s subject=%s", to_email, content.subject)
            return NotificationResult(status="failed", error="O envio do email excedeu o tempo limite.")
        except httpx.HTTPError as e:
            logger.error("Email request failed: to=%s error=%s", to_email, e)
            return NotificationResult(status="failed", error=str(e) or GENERIC_FAILURE_MESSAGE)

        return self._classify(resp)

    def _classify(self, resp: httpx.Response) -> NotificationResult:
        try:
            data = resp.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            data = {}

        provider_message = data.get("message") or data.get("error")
        if not isinstance(provider_message, str):
            provider_message = None

        if not resp.is_success:
            logger.error("Email provider error: status=%s body=%s", resp.status_code, data or resp.text)
            return NotificationResult(status="failed", error=provider_message or f"HTTP {resp.status_code}")

        if data.get("success") is False:
            logger.error("Email provider reported failure: %s", data)
            return NotificationResult(status="failed", error=provider_message or GENERIC_FAILURE_MESSAGE)

        logger.info("Email sent: message_id=%s", data.get("id") or data.get("messageId"))
        return NotificationResult(status="sent")

    async def aclose(self):
        await self._client.aclose()
