from database import new_session
from models.notification import NotificationOrm
from sqlalchemy import select, update, func




class NotificationRepository:
    @classmethod
    async def create_notification(
        cls,
        user_id: str,
        type: str,
        title: str,
        message: str,
        status: str | None = None,
        link: str | None = None,
    ):
        """Criar notificação na aplicação"""
        async with new_session() as session:
            notification = NotificationOrm(
                user_id=user_id,
                type=type,
                title=title,
                message=message,
                status=status,
                link=link
            )
            session.add(notification)
            await session.commit()
            await session.refresh(notification)
            return notification


    @classmethod
    async def create_notifications(cls, notifications: list[dict]):
        """Criar várias notificações numa só transação"""
        if not notifications:
            return
        async with new_session() as session:
            session.add_all([NotificationOrm(**data) for data in notifications])
            await session.commit()


    @classmethod
    async def get_user_notifications(cls, user_id: str, unread_only: bool, page: int, page_size: int):
        """Notificações do utilizador, mais recentes primeiro"""
        async with new_session() as session:
            base_query = select(NotificationOrm).where(NotificationOrm.user_id == user_id)
            count_query = (
                select(func.count())
                .select_from(NotificationOrm)
                .where(NotificationOrm.user_id == user_id, NotificationOrm.read.is_(False))
            )
            if unread_only:
                base_query = base_query.where(NotificationOrm.read.is_(False))

            unread_count_result = await session.execute(count_query)
            unread_count = unread_count_result.scalar()

            offset = (page - 1) * page_size
            notifications_query = base_query.order_by(NotificationOrm.created_at.desc()).offset(offset).limit(page_size)
            notifications_result = await session.execute(notifications_query)
            return notifications_result.scalars().all(), unread_count


    @classmethod
    async def mark_as_read(cls, notification_id: str, user_id: str) -> bool:
        """Marcar notificação como lida (só o destinatário)"""
        async with new_session() as session:
            stmt = (
                update(NotificationOrm)
                .where(NotificationOrm.id == notification_id, NotificationOrm.user_id == user_id)
                .values(read=True)
            )
            result = await session.execute(stmt)
            await session.commit()
            return result.rowcount > 0
