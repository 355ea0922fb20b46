import logging
from datetime import datetime
from database import new_session
from models.event import EventOrm
from models.profile import ProfileOrm
from sqlalchemy import select, update, func
from sqlalchemy.exc import SQLAlchemyError
from utils.dates import utcnow, as_utc
from utils.errors import translate_store_error


logger = logging.getLogger(__name__)

SWEEPABLE_STATUSES = ("open", "closed")


class EventRepository:
    @classmethod
    async def create_event(
        cls,
        organization_id: str,
        title: str,
        date: datetime,
        duration: str | None = None,
        status: str = "open",
        description: str | None = None,
        volunteers_registered: int = 0,
    ):
        """Criar evento"""
        async with new_session() as session:
            event = EventOrm(
                organization_id=organization_id,
                title=title,
                description=description,
                date=as_utc(date),
                duration=duration,
                status=status,
                volunteers_registered=volunteers_registered
            )
            session.add(event)
            await session.commit()
            await session.refresh(event)
            return event


    @classmethod
    async def get_event_by_id(cls, event_id: str):
        """Obter evento por ID"""
        async with new_session() as session:
            query = select(EventOrm).where(EventOrm.id == event_id)
            result = await session.execute(query)
            return result.scalars().first()


    @classmethod
    async def get_events(cls, page: int, page_size: int, status: str | None = None, organization_id: str | None = None):
        """Listar eventos com paginação"""
        async with new_session() as session:
            base_query = select(EventOrm)
            count_query = select(func.count()).select_from(EventOrm)
            if status:
                base_query = base_query.where(EventOrm.status == status)
                count_query = count_query.where(EventOrm.status == status)
            if organization_id:
                base_query = base_query.where(EventOrm.organization_id == organization_id)
                count_query = count_query.where(EventOrm.organization_id == organization_id)

            total_count_result = await session.execute(count_query)
            total_count = total_count_result.scalar()

            offset = (page - 1) * page_size
            events_query = base_query.order_by(EventOrm.date).offset(offset).limit(page_size)
            events_result = await session.execute(events_query)
            return events_result.scalars().all(), total_count


    @classmethod
    async def get_sweep_candidates(cls, now: datetime):
        """Eventos abertos/fechados cujo início já passou"""
        try:
            async with new_session() as session:
                query = select(EventOrm).where(
                    EventOrm.status.in_(SWEEPABLE_STATUSES),
                    EventOrm.date <= now
                )
                result = await session.execute(query)
                return result.scalars().all()
        except SQLAlchemyError as e:
            logger.error("Failed to load events for the expired sweep", exc_info=True)
            raise translate_store_error(e, "Falha ao obter eventos.") from e


    @classmethod
    async def mark_events_completed(cls, event_ids: list[str], now: datetime) -> list[str]:
        """Marcar eventos como concluídos numa única instrução.

        Devolve os IDs que esta instrução mudou; os que já estavam concluídos ficam de fora.
        """
        if not event_ids:
            return []
        try:
            async with new_session() as session:
                stmt = (
                    update(EventOrm)
                    .where(
                        EventOrm.id.in_(event_ids),
                        EventOrm.status.in_(SWEEPABLE_STATUSES)
                    )
                    .values(status="completed", updated_at=now)
                    .returning(EventOrm.id)
                    .execution_options(synchronize_session=False)
                )
                result = await session.execute(stmt)
                changed_ids = list(result.scalars().all())
                await session.commit()
                return changed_ids
        except SQLAlchemyError as e:
            logger.error("Failed to mark events as completed", exc_info=True)
            raise translate_store_error(e, "Falha ao atualizar eventos.") from e


    @classmethod
    async def add_organization_stats(cls, organization_id: str, events_held: int, volunteers_impacted: int, hours_contributed: int):
        """Somar estatísticas de impacto ao perfil da organização"""
        async with new_session() as session:
            stmt = (
                update(ProfileOrm)
                .where(ProfileOrm.id == organization_id)
                .values(
                    stats_events_held=ProfileOrm.stats_events_held + events_held,
                    stats_volunteers_impacted=ProfileOrm.stats_volunteers_impacted + volunteers_impacted,
                    stats_hours_contributed=ProfileOrm.stats_hours_contributed + hours_contributed,
                    updated_at=utcnow()
                )
            )
            await session.execute(stmt)
            await session.commit()
