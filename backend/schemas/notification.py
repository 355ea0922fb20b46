from typing import Optional, List
from schemas.base import SCamelModel, UtcDatetime




class SNotification(SCamelModel):
    id: str
    user_id: str
    type: str
    title: str
    message: str
    status: Optional[str] = None
    link: Optional[str] = None
    read: bool
    created_at: UtcDatetime


class SNotificationListResponse(SCamelModel):
    notifications: List[SNotification]
    unread_count: int
    page: int
    page_size: int
