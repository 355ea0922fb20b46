from datetime import datetime, timezone
from typing import Optional




def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalizar para UTC com fuso explícito.

    O SQLite devolve datas sem fuso; todas as datas são gravadas em UTC,
    por isso um valor "naive" é interpretado como UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
