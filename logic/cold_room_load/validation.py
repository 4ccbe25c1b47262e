from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Dict, List

from .models import LoadResult, ValidationIssue
from .normalizer import NormalizedInputs
from .tables import DATA_DIR

logger = logging.getLogger(__name__)

RULES_PATH = DATA_DIR / "validation_rules.json"

DEFAULT_LIMITS = {
    "min_dim_m": 1.0,
    "max_dim_m": 30.0,
    "min_hours": 0.0,
    "max_hours": 24.0,
    "max_utilization_pct": 100.0,
    "min_internal_temp_C": 0.0,
}


def load_rules(path: Path | None = None) -> Dict:
    path = Path(path) if path else RULES_PATH
    if path.exists():
        return json.loads(path.read_text(encoding="utf-8"))
    logger.debug("Sin archivo de reglas en %s; se usan límites por defecto", path)
    return {}


def _limits(rules: Dict) -> Dict[str, float]:
    limits = dict(DEFAULT_LIMITS)
    limits.update((rules or {}).get("limits", {}))
    return limits


def validate(inp: NormalizedInputs, rules: Dict | None = None) -> List[ValidationIssue]:
    """
    Revisa las entradas ya normalizadas. Los errores impiden un resultado
    físicamente válido; las advertencias solo se informan.
    """
    issues: List[ValidationIssue] = []
    limits = _limits(rules)

    def add(msg, level="warning", field=None):
        issues.append(ValidationIssue(level=level, message=msg, field=field))

    dT = inp.external_temp - inp.internal_temp
    if dT <= 0:
        add(
            f"Temperatura interna ({inp.internal_temp} °C) no es menor que la externa ({inp.external_temp} °C)",
            "error",
            "internal_temp",
        )
    if inp.pull_down_time <= 0:
        add("Tiempo de enfriamiento debe ser mayor a 0 h", "error", "pull_down_time")

    min_dim = limits.get("min_dim_m")
    max_dim = limits.get("max_dim_m")
    for key in ("length", "width", "height", "door_width", "door_height"):
        val = getattr(inp, key)
        if val <= 0:
            add(f"{key.upper()} debe ser mayor a 0 m", "error", key)
            continue
        if key.startswith("door"):
            continue
        if max_dim and val > max_dim:
            add(f"{key.upper()} supera {max_dim} m", field=key)
        if min_dim and val < min_dim:
            add(f"{key.upper()} es menor a {min_dim} m", field=key)

    for key in ("operating_hours", "working_hours"):
        val = getattr(inp, key)
        if not limits["min_hours"] <= val <= limits["max_hours"]:
            add(f"{key.upper()} fuera de {limits['min_hours']:g}-{limits['max_hours']:g} h", field=key)

    if inp.incoming_temp < inp.outgoing_temp:
        add("El producto entra más frío de lo que sale; la carga de producto será negativa", field="incoming_temp")
    if inp.internal_temp < limits["min_internal_temp_C"]:
        add("Temperatura interna bajo 0 °C: el modelo no incluye congelación", field="internal_temp")
    return issues


def validate_result(result: LoadResult, rules: Dict | None = None) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    limits = _limits(rules)
    util = result.storage_capacity.utilization
    if util > limits["max_utilization_pct"]:
        issues.append(
            ValidationIssue(
                level="warning",
                message=f"Utilización de almacenamiento {util:.1f}% supera {limits['max_utilization_pct']:g}%",
                field="daily_load",
            )
        )
    return issues
