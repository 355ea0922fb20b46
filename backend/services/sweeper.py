import logging
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from sqlalchemy.exc import SQLAlchemyError

from repositories.event import EventRepository
from repositories.notification import NotificationRepository
from utils.dates import utcnow, as_utc
from utils.duration import parse_duration_to_minutes, has_event_ended, round_half_up


logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    completed_ids: list[str] = field(default_factory=list)
    skipped_ids: list[str] = field(default_factory=list)
    processed_at: datetime = field(default_factory=utcnow)
    dry_run: bool = False

    @property
    def completed_count(self) -> int:
        return len(self.completed_ids)


def partition_expired(events, now: datetime):
    """Separar eventos já terminados dos que ainda decorrem"""
    completed, skipped = [], []
    for event in events:
        if has_event_ended(as_utc(event.date), event.duration, now):
            completed.append(event)
        else:
            skipped.append(event)
    return completed, skipped


class ExpiredEventSweeper:
    """Marca como ``completed`` os eventos abertos/fechados que já terminaram.

    Pode ser executado repetidamente: sem novos eventos expirados é um no-op.
    """

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self._clock = clock

    async def sweep(self, dry_run: bool = False) -> SweepResult:
        now = self._clock()
        candidates = await EventRepository.get_sweep_candidates(now)
        completed, skipped = partition_expired(candidates, now)

        result = SweepResult(
            completed_ids=[event.id for event in completed],
            skipped_ids=[event.id for event in skipped],
            processed_at=now,
            dry_run=dry_run,
        )

        if dry_run or not completed:
            logger.info(
                "Sweep finished without writes: dry_run=%s completed=%s skipped=%s",
                dry_run, result.completed_count, len(result.skipped_ids)
            )
            return result

        changed_ids = set(await EventRepository.mark_events_completed(result.completed_ids, now))
        # outra varredura pode ter concluído alguns entretanto; só contam os que esta mudou
        completed = [event for event in completed if event.id in changed_ids]
        result.completed_ids = [event.id for event in completed]
        logger.info("Events marked as completed: count=%s ids=%s", result.completed_count, result.completed_ids)
        if not completed:
            return result

        await self._update_organization_stats(completed)
        await self._notify_organizations(completed, now)
        return result

    async def _update_organization_stats(self, completed_events):
        aggregates = defaultdict(lambda: {"events": 0, "volunteers": 0, "minutes": 0})
        for event in completed_events:
            volunteers = max(0, event.volunteers_registered or 0)
            aggregate = aggregates[event.organization_id]
            aggregate["events"] += 1
            aggregate["volunteers"] += volunteers
            aggregate["minutes"] += parse_duration_to_minutes(event.duration) * volunteers

        for organization_id, aggregate in aggregates.items():
            try:
                await EventRepository.add_organization_stats(
                    organization_id,
                    events_held=aggregate["events"],
                    volunteers_impacted=aggregate["volunteers"],
                    hours_contributed=round_half_up(aggregate["minutes"] / 60),
                )
            except SQLAlchemyError:
                logger.warning("Failed to update organization stats: organization_id=%s", organization_id, exc_info=True)

    async def _notify_organizations(self, completed_events, now: datetime):
        notifications = [
            {
                "user_id": event.organization_id,
                "type": "event_reminder",
                "title": "Evento concluído",
                "message": f'O evento "{event.title or "Sem título"}" terminou. Adicione fotografias e um resumo ao seu perfil.',
                "link": f"/organization/events/{event.id}/recap",
                "created_at": now,
            }
            for event in completed_events
        ]
        try:
            await NotificationRepository.create_notifications(notifications)
        except SQLAlchemyError:
            logger.warning("Failed to create post-event notifications", exc_info=True)
