"""
Message template rendering

Templates use {{token}} placeholders (whitespace inside the braces is allowed):

    patientName  patient name, title-cased
    doctor       doctor name, title-cased
    date         booking date as stored (dd/mm/yyyy)
    dataCurta    dd/mm
    diaSemana    weekday in upper-case Portuguese (SEGUNDA, TERÇA, ...)
    time         HH:MM

Unknown tokens are left untouched so a typo shows up in the preview instead of
silently vanishing from the patient's message.
"""

import logging
import re
from typing import Optional

from ... import config
from ...shared.validators import parse_clinic_date

logger = logging.getLogger(__name__)

TOKEN_PATTERN = re.compile(r"\{\{\s*(\w+)\s*\}\}")

# Indexed Sunday-first, like the clinic's own calendar
WEEKDAYS = ("DOMINGO", "SEGUNDA", "TERÇA", "QUARTA", "QUINTA", "SEXTA", "SÁBADO")

DEFAULT_TEMPLATE = """Bom dia!

📅 Consulta: *{{diaSemana}}*
{{dataCurta}} às {{time}}h
*com o Dr(a). {{doctor}}*

📍 Rua Dr. Roberto Barrozo, 1379 – Hospital Otorrinos- 2º andar
 https://maps.google.com/?q=-25.415823,-49.282524

🅿️ ESTACIONAMENTO NO LOCAL

⚠️ Chegar 15 min antes
⚠️ Tolerância 15 min de atraso.
⚠️ UNIMED PLENO precisa estar com a consulta LIBERADA

✅ Confirma presença?

Sem confirmação, a consulta será cancelada.‼️"""


def title_case(value: Optional[str]) -> str:
    """'JOAO DA SILVA' -> 'Joao Da Silva'; spacing is preserved"""
    if not value:
        return ""
    return re.sub(r"\S+", lambda m: m.group(0)[:1].upper() + m.group(0)[1:].lower(), value)


def weekday_name(date_schedule: str) -> Optional[str]:
    try:
        day = parse_clinic_date(date_schedule)
    except (TypeError, ValueError):
        return None
    # datetime.weekday() is Monday=0
    return WEEKDAYS[(day.weekday() + 1) % 7]


def short_date(date_schedule: str) -> Optional[str]:
    """Day and month of a dd/mm/yyyy date, as stored"""
    parts = date_schedule.split("/")
    if len(parts) < 2:
        return None
    return "/".join(parts[:2])


def booking_tokens(booking) -> dict[str, Optional[str]]:
    """Token values for one booking; None means the token cannot be filled"""
    date_schedule = booking.date_schedule or ""
    hour_schedule = booking.hour_schedule or ""

    return {
        "patientName": title_case(booking.patient_name),
        "doctor": title_case(booking.doctor_name),
        "date": date_schedule,
        "dataCurta": short_date(date_schedule),
        "diaSemana": weekday_name(date_schedule),
        "time": hour_schedule[:5] if hour_schedule else None,
    }


def resolve(template_content: str, booking) -> str:
    """Render template_content for a single booking"""
    tokens = booking_tokens(booking)

    def substitute(match: re.Match) -> str:
        value = tokens.get(match.group(1))
        return match.group(0) if value is None else value

    return TOKEN_PATTERN.sub(substitute, template_content)


def fallback_template() -> str:
    return config.MESSAGE_TEMPLATE_FALLBACK or DEFAULT_TEMPLATE


def resolve_active(booking, template=None) -> str:
    """Render with the active template, or the fallback when none is active"""
    if template is None:
        logger.debug("No active template, rendering with the fallback message")
        return resolve(fallback_template(), booking)
    return resolve(template.content, booking)
