"""
Motor de cálculo de carga de refrigeración para cuartos fríos (sin congelación).

Contiene el cargador de tablas térmicas/productos y el cálculo principal
expuesto en :class:`ColdRoomLoadCalculator` y en :func:`compute`.
Esta capa de lógica es independiente de la UI.
"""

from .calculator import ColdRoomLoadCalculator, compute, project_frame  # noqa: F401
from .models import (  # noqa: F401
    CheckedLoad,
    ConditionsInput,
    LoadResult,
    ProductInput,
    ProjectResult,
    RoomInput,
)
from .tables import LookupTables, ThermalConstants, load_tables, resolve  # noqa: F401
