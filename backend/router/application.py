import logging
from fastapi import APIRouter, HTTPException, Depends, Query, BackgroundTasks
from repositories.application import ApplicationRepository
from schemas.application import (
    SApplicationCreate, STransitionRequest, STransitionResponse, STransitionData,
    SApplicationRecord, SApplicationListResponse
)
from schemas.base import SErrorResponse
from models.profile import ProfileOrm
from services.scheduler import SweepScheduler
from services.transitions import ApplicationTransitionService
from utils.dependencies import get_transition_service, get_sweep_scheduler
from utils.errors import ServiceError, ForbiddenError, NotFoundError
from utils.responses import error_response
from utils.security import get_current_user


logger = logging.getLogger(__name__)

ERROR_RESPONSES = {
    400: {"model": SErrorResponse},
    403: {"model": SErrorResponse},
    404: {"model": SErrorResponse},
    409: {"model": SErrorResponse},
    503: {"model": SErrorResponse},
}


router = APIRouter(
    prefix="/applications",
    tags=["Candidaturas"]
)


@router.post("/create", response_model=SApplicationRecord, responses=ERROR_RESPONSES)
async def create_application(
    application_data: SApplicationCreate,
    background_tasks: BackgroundTasks,
    current_user: ProfileOrm = Depends(get_current_user),
    service: ApplicationTransitionService = Depends(get_transition_service)
):
    """Submeter candidatura a um evento"""
    if current_user.type != "volunteer":
        return error_response(ForbiddenError("Só voluntários podem candidatar-se a eventos."))
    try:
        application = await ApplicationRepository.create_application(
            application_data.event_id,
            current_user.id,
            message=application_data.message,
            attachment=application_data.attachment()
        )
        details = await ApplicationRepository.get_application_with_details(application.id)
    except ServiceError as e:
        return error_response(e)
    except Exception:
        logger.exception("Failed to create application: event_id=%s", application_data.event_id)
        raise HTTPException(status_code=500, detail="Erro ao submeter a candidatura")

    background_tasks.add_task(service.dispatcher.notify_application_submitted, details)
    return SApplicationRecord.from_details(details)


@router.post("/manage", response_model=STransitionResponse, responses=ERROR_RESPONSES)
async def manage_application(
    transition_data: STransitionRequest,
    current_user: ProfileOrm = Depends(get_current_user),
    service: ApplicationTransitionService = Depends(get_transition_service)
):
    """Cancelar, aprovar, rejeitar ou recandidatar"""
    if transition_data.actor_id is not None and transition_data.actor_id != current_user.id:
        logger.warning("Actor id does not match session: actor_id=%s user_id=%s", transition_data.actor_id, current_user.id)
        return error_response(ForbiddenError("Não tem permissão para gerir esta candidatura."))

    try:
        result = await service.transition(
            transition_data.action,
            transition_data.application_id,
            current_user.id,
            message=transition_data.message,
            attachment=transition_data.attachment()
        )
    except ServiceError as e:
        return error_response(e)
    except Exception:
        logger.exception("Failed to manage application: application_id=%s", transition_data.application_id)
        raise HTTPException(status_code=500, detail="Erro ao atualizar a candidatura")

    return STransitionResponse(
        data=STransitionData(
            application=SApplicationRecord.from_details(result.details),
            notification_status=result.notification.status,
            notification_error=result.notification.error
        )
    )


@router.get("/my-applications", response_model=SApplicationListResponse)
async def get_my_applications(
    page: int = Query(1, ge=1, description="Número da página"),
    page_size: int = Query(20, ge=1, le=100, description="Tamanho da página"),
    current_user: ProfileOrm = Depends(get_current_user),
    scheduler: SweepScheduler = Depends(get_sweep_scheduler)
):
    """Candidaturas do voluntário autenticado"""
    await scheduler.trigger()
    try:
        applications_with_events, total_count = await ApplicationRepository.get_volunteer_applications(
            current_user.id, page, page_size
        )
    except Exception:
        logger.exception("Failed to list applications: volunteer_id=%s", current_user.id)
        raise HTTPException(status_code=500, detail="Erro ao obter candidaturas")

    total_pages = (total_count + page_size - 1) // page_size if page_size > 0 else 0

    return SApplicationListResponse(
        applications=[SApplicationRecord.from_details(details) for details in applications_with_events],
        total_count=total_count,
        page=page,
        page_size=page_size,
        total_pages=total_pages
    )


@router.get("/event/{event_id}", response_model=list[SApplicationRecord], responses=ERROR_RESPONSES)
async def get_event_applications(
    event_id: str,
    current_user: ProfileOrm = Depends(get_current_user),
    scheduler: SweepScheduler = Depends(get_sweep_scheduler)
):
    """Candidaturas a um evento (só para a organização dona do evento)"""
    await scheduler.trigger()
    try:
        applications = await ApplicationRepository.get_event_applications(event_id, current_user.id)
    except ServiceError as e:
        return error_response(e)
    except Exception:
        logger.exception("Failed to list event applications: event_id=%s", event_id)
        raise HTTPException(status_code=500, detail="Erro ao obter candidaturas")

    return [SApplicationRecord.from_details(details) for details in applications]


@router.get("/{application_id}", response_model=SApplicationRecord, responses=ERROR_RESPONSES)
async def get_application_details(
    application_id: str,
    current_user: ProfileOrm = Depends(get_current_user),
    scheduler: SweepScheduler = Depends(get_sweep_scheduler),
    service: ApplicationTransitionService = Depends(get_transition_service)
):
    """Detalhes da candidatura (voluntário dono ou organização do evento)"""
    await scheduler.trigger()
    try:
        details = await service.load_details(application_id)
    except ServiceError as e:
        return error_response(e)

    if details is None:
        return error_response(NotFoundError("Candidatura não encontrada."))

    event = details["event"]
    allowed = {details["application"].volunteer_id, event.organization_id if event else None}
    if current_user.id not in allowed:
        return error_response(ForbiddenError("Não tem permissão para ver esta candidatura."))

    return SApplicationRecord.from_details(details)
