"""Conversão da duração em texto livre dos eventos.

Aceita "1:30", "1h30", "2h", "45m", "1h 30m", "2 horas", "90 minutos",
"1,5h" e números simples (interpretados como horas). Entradas vazias ou
ilegíveis valem zero.
"""
import math
import re
from datetime import datetime, timedelta
from typing import Optional




_CLOCK_PATTERN = re.compile(
    r"^(\d{1,3})(?:\s*(?::|h)\s*(\d{1,2}))\s*(?:m(?:in(?:s|utos?)?)?)?$"
)
_UNIT_PATTERN = re.compile(
    r"(\d+(?:\.\d+)?)\s*(h|hr|hrs|hora|horas|hour|hours|m|min|mins|minute|minutes|minuto|minutos)"
)
_LEADING_NUMBER = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)")


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def parse_duration_to_minutes(value: Optional[str]) -> int:
    """Converter a duração em minutos inteiros, nunca negativos"""
    if not value:
        return 0

    trimmed = value.strip().lower()
    if not trimmed:
        return 0

    sanitized = trimmed.replace(",", ".")

    clock_match = _CLOCK_PATTERN.match(sanitized)
    if clock_match:
        hours = int(clock_match.group(1))
        minutes = int(clock_match.group(2))
        return max(0, hours * 60 + minutes)

    normalized = re.sub(r"(\d)([a-z])", r"\1 \2", sanitized)
    normalized = re.sub(r"([a-z])(\d)", r"\1 \2", normalized)

    total_minutes = 0.0
    for number, unit in _UNIT_PATTERN.findall(normalized):
        if unit.startswith("h"):
            total_minutes += float(number) * 60
        else:
            total_minutes += float(number)

    if not math.isfinite(total_minutes):
        return 0
    if total_minutes > 0:
        return max(0, round_half_up(total_minutes))

    # número simples: horas
    number_match = _LEADING_NUMBER.match(sanitized)
    if not number_match:
        return 0
    minutes = float(number_match.group(0)) * 60
    if not math.isfinite(minutes):
        return 0
    return max(0, round_half_up(minutes))


def parse_duration_to_hours(value: Optional[str]) -> float:
    return parse_duration_to_minutes(value) / 60


def format_duration_with_hours(value: Optional[str]) -> str:
    """Formatar a duração para apresentação: "1h 30m", "2h" ou "45m" """
    total_minutes = parse_duration_to_minutes(value)
    if total_minutes <= 0:
        return ""

    hours, minutes = divmod(total_minutes, 60)
    if hours > 0 and minutes > 0:
        return f"{hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h"
    return f"{minutes}m"


def compute_event_end(start: datetime, duration: Optional[str]) -> Optional[datetime]:
    """Instante em que o evento termina; sem duração válida termina no início.

    Devolve None quando a duração empurra o fim para fora do calendário.
    """
    try:
        return start + timedelta(minutes=parse_duration_to_minutes(duration))
    except OverflowError:
        return None


def has_event_ended(start: Optional[datetime], duration: Optional[str], reference: datetime) -> bool:
    if start is None:
        return False
    end = compute_event_end(start, duration)
    # fim impossível de representar: o evento nunca termina
    if end is None:
        return False
    return end <= reference
