import logging
from typing import Optional
from fastapi import APIRouter, HTTPException, Depends, Query
from repositories.event import EventRepository
from schemas.base import SErrorResponse
from schemas.event import SEventWithSchedule, SEventListResponse, SSweepRequest, SSweepResponse, EventStatus
from models.profile import ProfileOrm
from services.scheduler import SweepScheduler
from services.sweeper import ExpiredEventSweeper
from utils.dependencies import get_sweep_scheduler, get_event_sweeper
from utils.errors import ServiceError, NotFoundError
from utils.responses import error_response
from utils.security import get_current_user


logger = logging.getLogger(__name__)


router = APIRouter(
    prefix="/events",
    tags=["Eventos"]
)


@router.get("", response_model=SEventListResponse)
async def get_events(
    page: int = Query(1, ge=1, description="Número da página"),
    page_size: int = Query(20, ge=1, le=100, description="Tamanho da página"),
    status: Optional[EventStatus] = Query(None, description="Filtrar por estado"),
    organization_id: Optional[str] = Query(None, description="Filtrar por organização"),
    scheduler: SweepScheduler = Depends(get_sweep_scheduler)
):
    """Listar eventos"""
    await scheduler.trigger()
    try:
        events, total_count = await EventRepository.get_events(page, page_size, status, organization_id)
    except Exception:
        logger.exception("Failed to list events")
        raise HTTPException(status_code=500, detail="Erro ao obter eventos")

    total_pages = (total_count + page_size - 1) // page_size if page_size > 0 else 0

    return SEventListResponse(
        events=[SEventWithSchedule.from_orm_event(event) for event in events],
        total_count=total_count,
        page=page,
        page_size=page_size,
        total_pages=total_pages
    )


@router.post("/process-expired", response_model=SSweepResponse, responses={503: {"model": SErrorResponse}})
async def process_expired_events(
    sweep_data: Optional[SSweepRequest] = None,
    current_user: ProfileOrm = Depends(get_current_user),
    scheduler: SweepScheduler = Depends(get_sweep_scheduler),
    sweeper: ExpiredEventSweeper = Depends(get_event_sweeper)
):
    """Concluir eventos que já terminaram (dryRun só reporta)"""
    dry_run = sweep_data.dry_run if sweep_data else False
    logger.info("Expired events sweep requested: user_id=%s dry_run=%s", current_user.id, dry_run)
    try:
        if dry_run:
            result = await sweeper.sweep(dry_run=True)
        else:
            result = await scheduler.run()
    except ServiceError as e:
        return error_response(e)
    except Exception:
        logger.exception("Expired events sweep failed")
        raise HTTPException(status_code=500, detail="Erro ao processar eventos expirados")

    return SSweepResponse(
        completed_event_ids=result.completed_ids,
        skipped_event_ids=result.skipped_ids,
        completed_count=result.completed_count,
        processed_at=result.processed_at
    )


@router.get("/{event_id}", response_model=SEventWithSchedule, responses={404: {"model": SErrorResponse}})
async def get_event_details(
    event_id: str,
    scheduler: SweepScheduler = Depends(get_sweep_scheduler)
):
    """Detalhes do evento"""
    await scheduler.trigger()
    event = await EventRepository.get_event_by_id(event_id)
    if not event:
        return error_response(NotFoundError("Evento não encontrado."))

    return SEventWithSchedule.from_orm_event(event)
