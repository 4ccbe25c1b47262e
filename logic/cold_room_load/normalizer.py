"""
Normalización de las entradas crudas del formulario.

Cada campo numérico se interpreta; si no se puede (vacío, texto, NaN, inf)
se reemplaza por el valor por defecto del cuarto frío. Nunca lanza excepción.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from typing import Any, Optional

from .models import ConditionsInput, ProductInput, RoomInput
from .tables import DEFAULT_PRODUCT_KEY, DEFAULT_STORAGE_KEY

logger = logging.getLogger(__name__)

DEFAULT_INSULATION = "PUF"

ROOM_DEFAULTS = {
    "length": 5.0,
    "width": 4.0,
    "height": 3.0,
    "door_width": 1.2,
    "door_height": 2.1,
    "door_openings": 20.0,
    "insulation_thickness": 100.0,
}
CONDITIONS_DEFAULTS = {
    "external_temp": 35.0,
    "internal_temp": 4.0,
    "operating_hours": 24.0,
    "pull_down_time": 6.0,
}
PRODUCT_DEFAULTS = {
    "daily_load": 2000.0,
    "incoming_temp": 25.0,
    "outgoing_temp": 4.0,
    "number_of_people": 2.0,
    "working_hours": 6.0,
    "lighting_wattage": 200.0,
    "equipment_load": 500.0,
}

_NUMBER_PREFIX = re.compile(r"^[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?")


def parse_number(val: Any) -> Optional[float]:
    """
    Interpreta un valor numérico crudo. Devuelve None si no es un número finito.

    Acepta coma decimal ("4,5") y texto a continuación del número ("12 m").
    """
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, (int, float)):
        raw = val
    else:
        m = _NUMBER_PREFIX.match(str(val).strip().replace(",", "."))
        if not m:
            return None
        raw = m.group(0)
    try:
        num = float(raw)
    except (OverflowError, ValueError):
        return None
    if not math.isfinite(num):
        return None
    return num


def _number(val: Any, default: float, name: str, zero_means_missing: bool) -> float:
    num = parse_number(val)
    if num is None or (zero_means_missing and num == 0):
        if val not in (None, ""):
            logger.debug("Campo %s=%r inválido; se usa %s", name, val, default)
        return default
    return num


def _key(val: Any, default: str) -> str:
    text = str(val).strip() if val else ""
    return text or default


@dataclass(frozen=True)
class NormalizedInputs:
    length: float
    width: float
    height: float
    door_width: float
    door_height: float
    door_openings: float
    insulation_type: str
    insulation_thickness: float
    external_temp: float
    internal_temp: float
    operating_hours: float
    pull_down_time: float
    product_type: str
    daily_load: float
    incoming_temp: float
    outgoing_temp: float
    storage_type: str
    number_of_people: float
    working_hours: float
    lighting_wattage: float
    equipment_load: float


def normalize(
    room: RoomInput | None,
    conditions: ConditionsInput | None,
    product: ProductInput | None,
    *,
    zero_means_missing: bool = True,
) -> NormalizedInputs:
    room = room or RoomInput()
    conditions = conditions or ConditionsInput()
    product = product or ProductInput()

    values = {}
    for record, defaults in (
        (room, ROOM_DEFAULTS),
        (conditions, CONDITIONS_DEFAULTS),
        (product, PRODUCT_DEFAULTS),
    ):
        for name, default in defaults.items():
            values[name] = _number(getattr(record, name), default, name, zero_means_missing)

    return NormalizedInputs(
        insulation_type=_key(room.insulation_type, DEFAULT_INSULATION),
        product_type=_key(product.product_type, DEFAULT_PRODUCT_KEY),
        storage_type=_key(product.storage_type, DEFAULT_STORAGE_KEY),
        **values,
    )
