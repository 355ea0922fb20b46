import logging
from typing import Any
from database import new_session
from models.application import ApplicationOrm
from models.event import EventOrm
from models.profile import ProfileOrm
from sqlalchemy import select, update, and_, func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import aliased
from utils.errors import NotFoundError, ForbiddenError, InvalidStateError, translate_store_error


logger = logging.getLogger(__name__)


class ApplicationRepository:
    @classmethod
    async def create_application(
        cls,
        event_id: str,
        volunteer_id: str,
        message: str | None = None,
        attachment: dict[str, Any] | None = None,
    ):
        """Submeter candidatura a um evento"""
        async with new_session() as session:
            event_query = select(EventOrm).where(EventOrm.id == event_id)
            event_result = await session.execute(event_query)
            event = event_result.scalars().first()

            if not event:
                raise NotFoundError("Evento não encontrado.")

            if event.status != "open":
                raise InvalidStateError("O evento não está aberto a candidaturas.")

            existing_application_query = select(ApplicationOrm).where(
                and_(
                    ApplicationOrm.volunteer_id == volunteer_id,
                    ApplicationOrm.event_id == event_id
                )
            )
            existing_application_result = await session.execute(existing_application_query)
            existing_applications = existing_application_result.scalars().all()

            if any(app.status != "cancelled" for app in existing_applications):
                raise InvalidStateError("Já se candidatou a este evento.")
            if existing_applications:
                raise InvalidStateError("Tem uma candidatura cancelada a este evento. Volte a candidatar-se a partir dela.")

            application = ApplicationOrm(
                event_id=event_id,
                volunteer_id=volunteer_id,
                status="pending",
                message=message,
                **(attachment or {})
            )
            session.add(application)
            try:
                await session.commit()
            except IntegrityError:
                # candidatura concorrente para o mesmo par evento/voluntário
                await session.rollback()
                raise InvalidStateError("Já se candidatou a este evento.")
            await session.refresh(application)
            return application


    @classmethod
    async def get_application_with_details(cls, application_id: str):
        """Obter candidatura com evento, organização e voluntário numa só leitura"""
        organization = aliased(ProfileOrm)
        volunteer = aliased(ProfileOrm)
        try:
            async with new_session() as session:
                query = (
                    select(ApplicationOrm, EventOrm, organization, volunteer)
                    .outerjoin(EventOrm, ApplicationOrm.event_id == EventOrm.id)
                    .outerjoin(organization, EventOrm.organization_id == organization.id)
                    .outerjoin(volunteer, ApplicationOrm.volunteer_id == volunteer.id)
                    .where(ApplicationOrm.id == application_id)
                )
                result = await session.execute(query)
                row = result.first()
        except SQLAlchemyError as e:
            logger.error("Failed to load application %s", application_id, exc_info=True)
            raise translate_store_error(e, "Não foi possível carregar a candidatura.") from e

        if row is None:
            return None

        application, event, organization_row, volunteer_row = row
        return {
            "application": application,
            "event": event,
            "organization": organization_row,
            "volunteer": volunteer_row
        }


    @classmethod
    async def apply_transition(
        cls,
        application_id: str,
        expected_version: int,
        values: dict[str, Any],
        required_status: str | None = None,
    ) -> bool:
        """Gravar a transição só se a linha não mudou desde a leitura.

        Devolve False quando outra transição foi gravada primeiro.
        """
        stmt = (
            update(ApplicationOrm)
            .where(
                ApplicationOrm.id == application_id,
                ApplicationOrm.version == expected_version
            )
            .values(**values, version=ApplicationOrm.version + 1)
            .execution_options(synchronize_session=False)
        )
        if required_status is not None:
            stmt = stmt.where(ApplicationOrm.status == required_status)

        try:
            async with new_session() as session:
                result = await session.execute(stmt)
                await session.commit()
                return result.rowcount == 1
        except SQLAlchemyError as e:
            logger.error("Failed to update application %s", application_id, exc_info=True)
            raise translate_store_error(e, "Não foi possível atualizar a candidatura.") from e


    @classmethod
    async def get_volunteer_applications(cls, volunteer_id: str, page: int, page_size: int):
        """Candidaturas do voluntário com paginação"""
        async with new_session() as session:
            base_query = (
                select(ApplicationOrm, EventOrm)
                .join(EventOrm, ApplicationOrm.event_id == EventOrm.id)
                .where(ApplicationOrm.volunteer_id == volunteer_id)
                .order_by(ApplicationOrm.applied_at.desc())
            )

            count_query = select(func.count()).select_from(ApplicationOrm).where(ApplicationOrm.volunteer_id == volunteer_id)
            total_count_result = await session.execute(count_query)
            total_count = total_count_result.scalar()

            offset = (page - 1) * page_size
            applications_result = await session.execute(base_query.offset(offset).limit(page_size))

            applications = [
                {"application": app, "event": event}
                for app, event in applications_result.all()
            ]
            return applications, total_count


    @classmethod
    async def get_event_applications(cls, event_id: str, organization_id: str):
        """Candidaturas a um evento (só para a organização dona do evento)"""
        async with new_session() as session:
            event_query = select(EventOrm).where(EventOrm.id == event_id)
            event_result = await session.execute(event_query)
            event = event_result.scalars().first()

            if not event:
                raise NotFoundError("Evento não encontrado.")
            if event.organization_id != organization_id:
                raise ForbiddenError("Não tem permissão para ver as candidaturas deste evento.")

            applications_query = (
                select(ApplicationOrm, ProfileOrm)
                .outerjoin(ProfileOrm, ApplicationOrm.volunteer_id == ProfileOrm.id)
                .where(ApplicationOrm.event_id == event_id)
                .order_by(ApplicationOrm.applied_at)
            )
            applications_result = await session.execute(applications_query)

            return [
                {"application": app, "event": event, "volunteer": volunteer}
                for app, volunteer in applications_result.all()
            ]
