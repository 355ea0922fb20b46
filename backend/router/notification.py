from fastapi import APIRouter, HTTPException, Depends, Query
from repositories.notification import NotificationRepository
from schemas.notification import SNotification, SNotificationListResponse
from models.profile import ProfileOrm
from utils.security import get_current_user




router = APIRouter(
    prefix="/notifications",
    tags=["Notificações"]
)


@router.get("", response_model=SNotificationListResponse)
async def get_my_notifications(
    unread_only: bool = Query(False, description="Só notificações por ler"),
    page: int = Query(1, ge=1, description="Número da página"),
    page_size: int = Query(20, ge=1, le=100, description="Tamanho da página"),
    current_user: ProfileOrm = Depends(get_current_user)
):
    """Notificações do utilizador autenticado"""
    try:
        notifications, unread_count = await NotificationRepository.get_user_notifications(
            current_user.id, unread_only, page, page_size
        )
    except Exception:
        raise HTTPException(status_code=500, detail="Erro ao obter notificações")

    return SNotificationListResponse(
        notifications=[SNotification.model_validate(notification) for notification in notifications],
        unread_count=unread_count,
        page=page,
        page_size=page_size
    )


@router.post("/{notification_id}/read")
async def mark_notification_read(
    notification_id: str,
    current_user: ProfileOrm = Depends(get_current_user)
):
    """Marcar notificação como lida"""
    updated = await NotificationRepository.mark_as_read(notification_id, current_user.id)
    if not updated:
        raise HTTPException(status_code=404, detail="Notificação não encontrada")

    return {"success": True}
