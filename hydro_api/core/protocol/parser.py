"""Parser del protocolo de telemetría del dispositivo.

Formato (una línea, tokens separados por espacios, orden indiferente):

    Date:29-12-2025 Time=0:47:9 LDR=1174 VB=56.50 T=30.00 CHILLER=OFF(A) MODE=AUTO STATE=S0

REGLAS:
- Cada campo se extrae de forma independiente; el orden no importa
- Contenido no reconocido (p.ej. el sufijo "(A)" del chiller) se ignora
- Un token presente pero inválido NO aborta el parseo: se registra como
  MalformedField y el campo queda ausente (o con default, para fecha/hora)
- Solo fecha y hora tienen default (reloj de ingesta); nada más se rellena
- Valores que no caben en su columna (LDR, VB, T, STATE) también son
  MalformedField: un token no puede tirar el INSERT de toda la fila
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Callable, List, Optional, Pattern, Tuple

from ..domain.telemetry import ChillerState, OperatingMode, TelemetryRecord
from ..errors import MalformedField

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]

YEAR_MIN = 2000
YEAR_MAX = 2100

# Límites de las columnas: INTEGER, NUMERIC(5,2) y VARCHAR(16)
LDR_MAX = 2**31 - 1
DECIMAL_LIMIT = 1000
STATE_MAX_DIGITS = 15


@dataclass(frozen=True)
class _TokenRule:
    """Token KEY<sep>VALUE: `key` localiza el token, `value` valida el prefijo."""

    field: str
    key: Pattern[str]
    value: Pattern[str]


def _rule(field: str, key: str, sep: str, value: str, *, ignore_case: bool = False) -> _TokenRule:
    # El protocolo es ASCII: \d no debe aceptar dígitos Unicode
    flags = re.ASCII | (re.IGNORECASE if ignore_case else 0)
    return _TokenRule(
        field=field,
        key=re.compile(rf"(?<![A-Za-z0-9_]){key}{sep}(\S*)", flags),
        value=re.compile(value, flags),
    )


_DATE = _rule("date", "Date", ":", r"(\d{2})-(\d{2})-(\d{4})")
_TIME = _rule("time", "Time", "=", r"(\d{1,2}):(\d{1,2}):(\d{1,2})")
_LDR = _rule("ldr_value", "LDR", "=", r"\d{1,10}(?!\d)")
_DECIMAL = r"-?(?:\d+(?:\.\d*)?|\.\d+)"
_VB = _rule("battery_voltage", "VB", "=", _DECIMAL)
_TEMP = _rule("temperature", "T", "=", _DECIMAL)
_CHILLER = _rule("chiller_state", "CHILLER", "=", r"ON|OFF", ignore_case=True)
_STATE = _rule("fsm_state", "STATE", "=", rf"S\d{{1,{STATE_MAX_DIGITS}}}(?!\d)", ignore_case=True)
_MODE = _rule("operating_mode", "MODE", "=", r"AUTO|MANUAL", ignore_case=True)


def _local_now() -> datetime:
    return datetime.now()


class TelemetryParser:
    """Decodifica una línea de telemetría en un TelemetryRecord.

    Función pura salvo por el reloj, que se inyecta para los defaults de
    fecha/hora. Nunca lanza por input malformado.
    """

    def __init__(self, clock: Optional[Clock] = None):
        self._clock = clock or _local_now

    def parse(self, line: str) -> TelemetryRecord:
        record, _ = self.parse_with_diagnostics(line)
        return record

    def parse_with_diagnostics(self, line: str) -> Tuple[TelemetryRecord, List[MalformedField]]:
        """Igual que parse() pero devuelve también los campos descartados."""
        now = self._clock()
        issues: List[MalformedField] = []
        text = line or ""

        def attempt(extract: Callable[[str], object]) -> object:
            try:
                return extract(text)
            except MalformedField as issue:
                logger.warning("[PARSER] Malformed field %s", issue)
                issues.append(issue)
                return None

        record_date = attempt(_extract_date)
        record_time = attempt(_extract_time)
        chiller = attempt(_extract_chiller)
        mode = attempt(_extract_mode)

        record = TelemetryRecord(
            record_date=record_date if record_date is not None else now.date(),
            record_time=record_time if record_time is not None else now.time().replace(microsecond=0),
            ldr_value=attempt(_extract_ldr),
            battery_voltage=attempt(_extract_battery_voltage),
            temperature=attempt(_extract_temperature),
            chiller_state=ChillerState(chiller) if chiller else None,
            fsm_state=attempt(_extract_fsm_state),
            operating_mode=OperatingMode(mode) if mode else None,
        )
        return record, issues


def parse_telemetry_line(line: str, clock: Optional[Clock] = None) -> TelemetryRecord:
    """Atajo funcional sobre TelemetryParser.parse()."""
    return TelemetryParser(clock).parse(line)


# ---------------------------------------------------------------------------
# Extractores por campo: devuelven None si el token no está y lanzan
# MalformedField si está pero no es válido.
# ---------------------------------------------------------------------------


def _match_token(rule: _TokenRule, text: str) -> Optional[re.Match[str]]:
    found = rule.key.search(text)
    if found is None:
        return None
    raw = found.group(1)
    value = rule.value.match(raw)
    if value is None:
        raise MalformedField(rule.field, raw, "unrecognized value")
    return value


def _extract_date(text: str) -> Optional[date]:
    match = _match_token(_DATE, text)
    if match is None:
        return None

    day, month, year = (int(part) for part in match.groups())
    raw = match.group(0)
    if not (YEAR_MIN <= year <= YEAR_MAX and 1 <= month <= 12 and 1 <= day <= 31):
        raise MalformedField("date", raw, "component out of range")
    try:
        return date(year, month, day)
    except ValueError as e:
        # 31-02-2025 pasa el rango pero no existe en el calendario
        raise MalformedField("date", raw, str(e)) from e


def _extract_time(text: str) -> Optional[time]:
    match = _match_token(_TIME, text)
    if match is None:
        return None

    hours, minutes, seconds = (int(part) for part in match.groups())
    if not (hours <= 23 and minutes <= 59 and seconds <= 59):
        raise MalformedField("time", match.group(0), "component out of range")
    return time(hours, minutes, seconds)


def _extract_ldr(text: str) -> Optional[int]:
    match = _match_token(_LDR, text)
    if match is None:
        return None
    value = int(match.group(0))
    if value > LDR_MAX:
        raise MalformedField(_LDR.field, match.group(0), "out of range")
    return value


def _decimal(rule: _TokenRule, text: str) -> Optional[float]:
    match = _match_token(rule, text)
    if match is None:
        return None
    value = float(match.group(0))
    # NUMERIC(5,2) redondea a 2 decimales antes de validar la precisión
    if abs(round(value, 2)) >= DECIMAL_LIMIT:
        raise MalformedField(rule.field, match.group(0), "out of range")
    return value


def _extract_battery_voltage(text: str) -> Optional[float]:
    return _decimal(_VB, text)


def _extract_temperature(text: str) -> Optional[float]:
    return _decimal(_TEMP, text)


def _extract_chiller(text: str) -> Optional[str]:
    match = _match_token(_CHILLER, text)
    return match.group(0).upper() if match else None


def _extract_fsm_state(text: str) -> Optional[str]:
    match = _match_token(_STATE, text)
    return match.group(0).upper() if match else None


def _extract_mode(text: str) -> Optional[str]:
    match = _match_token(_MODE, text)
    return match.group(0).upper() if match else None
