from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from typing import Any, Dict, List, Mapping, Optional

KW_TO_BTUH = 3412.142


def _pick(data: Mapping[str, Any], snake: str, camel: str) -> Any:
    if snake in data:
        return data[snake]
    return data.get(camel)


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(p.capitalize() for p in rest)


class _RawRecord:
    """Construcción desde dicts del formulario (snake_case o camelCase)."""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None):
        data = data or {}
        kwargs = {f.name: _pick(data, f.name, _camel(f.name)) for f in fields(cls)}
        return cls(**kwargs)


# ---------------------------- ENTRADAS ---------------------------- #


@dataclass(frozen=True)
class RoomInput(_RawRecord):
    length: Any = None
    width: Any = None
    height: Any = None
    door_width: Any = None
    door_height: Any = None
    door_openings: Any = None  # aperturas / día
    insulation_type: Any = None
    insulation_thickness: Any = None  # mm


@dataclass(frozen=True)
class ConditionsInput(_RawRecord):
    external_temp: Any = None
    internal_temp: Any = None
    operating_hours: Any = None
    pull_down_time: Any = None


@dataclass(frozen=True)
class ProductInput(_RawRecord):
    product_type: Any = None
    daily_load: Any = None  # kg / día
    incoming_temp: Any = None
    outgoing_temp: Any = None
    storage_type: Any = None
    number_of_people: Any = None
    working_hours: Any = None
    lighting_wattage: Any = None
    equipment_load: Any = None


# ---------------------------- TABLAS ---------------------------- #


@dataclass(frozen=True)
class Product:
    density: float
    storage_efficiency: float
    specific_heat_above: float


# ---------------------------- RESULTADO ---------------------------- #


@dataclass(frozen=True)
class Dimensions:
    length: float
    width: float
    height: float


@dataclass(frozen=True)
class DoorDimensions:
    width: float
    height: float


@dataclass(frozen=True)
class Areas:
    wall: float
    ceiling: float
    floor: float
    door: float


@dataclass(frozen=True)
class StorageCapacity:
    maximum: float
    utilization: float  # %, sin recortar
    storage_factor: float
    storage_type: str


@dataclass(frozen=True)
class Construction:
    type: str
    thickness: float
    u_factor: float


@dataclass(frozen=True)
class TransmissionLoad:
    walls: float
    ceiling: float
    floor: float
    total: float


@dataclass(frozen=True)
class ProductInfo:
    type: str
    mass: float
    incoming_temp: float
    outgoing_temp: float
    properties: Product


@dataclass(frozen=True)
class ProductLoad:
    sensible: float
    latent: float
    total: float


@dataclass(frozen=True)
class InternalLoads:
    people: float
    lighting: float
    equipment: float
    total: float


@dataclass(frozen=True)
class LoadResult:
    dimensions: Dimensions
    door_dimensions: DoorDimensions
    areas: Areas
    volume: float
    storage_capacity: StorageCapacity
    temperature_difference: float
    pull_down_time: float
    construction: Construction
    transmission_load: TransmissionLoad
    product_info: ProductInfo
    product_load: ProductLoad
    air_change_rate: float
    air_infiltration_load: float
    internal_loads: InternalLoads
    door_load: float
    door_openings: float
    working_hours: float
    total_load: float
    total_load_with_safety: float
    refrigeration_tons: float

    @property
    def total_btuh(self) -> float:
        return self.total_load_with_safety * KW_TO_BTUH

    def category_totals(self) -> Dict[str, float]:
        return {
            "transmission": self.transmission_load.total,
            "product": self.product_load.total,
            "infiltration": self.air_infiltration_load,
            "internal": self.internal_loads.total,
            "door": self.door_load,
        }

    def as_percentages(self) -> Dict[str, float]:
        tot = self.total_load or 1.0
        return {f"{k}_pct": v / tot for k, v in self.category_totals().items()}

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ProjectResult:
    rooms: List[LoadResult]
    total_load: float
    total_load_with_safety: float
    refrigeration_tons: float


@dataclass
class ValidationIssue:
    level: str  # warning | error
    message: str
    field: Optional[str] = None


@dataclass
class CheckedLoad:
    valid: bool
    issues: List[ValidationIssue] = field(default_factory=list)
    result: Optional[LoadResult] = None

    @property
    def errors(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.level == "error"]

    @property
    def warnings(self) -> List[ValidationIssue]:
        return [i for i in self.issues if i.level == "warning"]
