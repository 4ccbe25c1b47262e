from __future__ import annotations

import logging
import math
from typing import Iterable, Optional, Tuple

import pandas as pd

from .models import (
    Areas,
    CheckedLoad,
    ConditionsInput,
    Construction,
    Dimensions,
    DoorDimensions,
    InternalLoads,
    LoadResult,
    ProductInfo,
    ProductInput,
    ProductLoad,
    ProjectResult,
    RoomInput,
    StorageCapacity,
    TransmissionLoad,
)
from .normalizer import NormalizedInputs, normalize
from .tables import LookupTables, load_tables
from .validation import load_rules, validate, validate_result

logger = logging.getLogger(__name__)

KW_PER_TR = 3.517
DOOR_FLOW_COEFF = 3.0


def _div(num: float, den: float) -> float:
    """División con semántica IEEE (±inf / nan) en lugar de ZeroDivisionError."""
    if den == 0:
        if num == 0 or math.isnan(num):
            return math.nan
        return math.copysign(math.inf, num) * math.copysign(1.0, den)
    return num / den


def _sqrt(x: float) -> float:
    return math.sqrt(x) if x >= 0 else math.nan


# ---------------------------- CALCULADORA ---------------------------- #


class ColdRoomLoadCalculator:
    """
    Carga de refrigeración de un cuarto frío (sin congelación).

    Sin estado entre llamadas: las tablas son de solo lectura y
    ``compute`` es una función pura de sus argumentos.
    """

    def __init__(
        self,
        tables: Optional[LookupTables] = None,
        data_dir=None,
        *,
        zero_means_missing: bool = True,
    ):
        self.tables = tables if tables is not None else load_tables(data_dir)
        self.zero_means_missing = zero_means_missing

    # cargas parciales
    def _transmission(self, areas: Areas, u: float, dT: float) -> TransmissionLoad:
        walls = (u * areas.wall * dT) / 1000
        ceiling = (u * areas.ceiling * dT) / 1000
        floor = (u * areas.floor * dT) / 1000
        return TransmissionLoad(walls=walls, ceiling=ceiling, floor=floor, total=walls + ceiling + floor)

    def _product(self, inp: NormalizedInputs, cp_above: float) -> ProductLoad:
        # solo calor sensible: el cuarto trabaja por encima de congelación
        sensible = _div(
            inp.daily_load * cp_above * (inp.incoming_temp - inp.outgoing_temp),
            inp.pull_down_time * 3.6,
        )
        return ProductLoad(sensible=sensible, latent=0.0, total=sensible)

    def _infiltration(self, volume: float, dT: float, rate: float) -> float:
        th = self.tables.thermal
        return (volume * th.air_density * th.air_specific_heat * dT * rate) / 3.6

    def _internal(self, inp: NormalizedInputs) -> InternalLoads:
        people = inp.number_of_people * self.tables.thermal.person_heat_load * (inp.working_hours / 24)
        lighting = (inp.lighting_wattage * (inp.operating_hours / 24)) / 1000
        equipment = inp.equipment_load / 1000
        return InternalLoads(people=people, lighting=lighting, equipment=equipment, total=people + lighting + equipment)

    def _door(self, inp: NormalizedInputs, door_area: float, dT: float) -> float:
        # mezcla turbulenta en la puerta ~ sqrt(dT)
        return (inp.door_openings * door_area * DOOR_FLOW_COEFF * _sqrt(dT)) / 24 / 1000

    # cálculo principal
    def compute_normalized(self, inp: NormalizedInputs) -> LoadResult:
        areas = Areas(
            wall=2 * (inp.length + inp.width) * inp.height,
            ceiling=inp.length * inp.width,
            floor=inp.length * inp.width,
            door=inp.door_width * inp.door_height,
        )
        volume = inp.length * inp.width * inp.height
        dT = inp.external_temp - inp.internal_temp

        u = self.tables.thermal.u_factor(inp.insulation_type, inp.insulation_thickness)
        product_key, product = self.tables.product(inp.product_type)
        storage_key, storage_factor = self.tables.storage_factor(inp.storage_type)

        max_capacity = volume * product.density * product.storage_efficiency * storage_factor
        utilization = _div(inp.daily_load, max_capacity) * 100

        transmission = self._transmission(areas, u, dT)
        product_load = self._product(inp, product.specific_heat_above)
        rate = self.tables.thermal.cold_room_air_change_rate
        infiltration = self._infiltration(volume, dT, rate)
        internal = self._internal(inp)
        door = self._door(inp, areas.door, dT)

        total = transmission.total + product_load.total + infiltration + internal.total + door
        total_safety = total * self.tables.thermal.safety_factor
        tons = total_safety / KW_PER_TR

        return LoadResult(
            dimensions=Dimensions(inp.length, inp.width, inp.height),
            door_dimensions=DoorDimensions(inp.door_width, inp.door_height),
            areas=areas,
            volume=volume,
            storage_capacity=StorageCapacity(
                maximum=max_capacity,
                utilization=utilization,
                storage_factor=storage_factor,
                storage_type=storage_key,
            ),
            temperature_difference=dT,
            pull_down_time=inp.pull_down_time,
            construction=Construction(type=inp.insulation_type, thickness=inp.insulation_thickness, u_factor=u),
            transmission_load=transmission,
            product_info=ProductInfo(
                type=product_key,
                mass=inp.daily_load,
                incoming_temp=inp.incoming_temp,
                outgoing_temp=inp.outgoing_temp,
                properties=product,
            ),
            product_load=product_load,
            air_change_rate=rate,
            air_infiltration_load=infiltration,
            internal_loads=internal,
            door_load=door,
            door_openings=inp.door_openings,
            working_hours=inp.working_hours,
            total_load=total,
            total_load_with_safety=total_safety,
            refrigeration_tons=tons,
        )

    def normalize(self, room: RoomInput | None, conditions: ConditionsInput | None, product: ProductInput | None) -> NormalizedInputs:
        return normalize(room, conditions, product, zero_means_missing=self.zero_means_missing)

    def compute(
        self,
        room: RoomInput | None = None,
        conditions: ConditionsInput | None = None,
        product: ProductInput | None = None,
    ) -> LoadResult:
        return self.compute_normalized(self.normalize(room, conditions, product))

    def compute_checked(
        self,
        room: RoomInput | None = None,
        conditions: ConditionsInput | None = None,
        product: ProductInput | None = None,
        rules: Optional[dict] = None,
    ) -> CheckedLoad:
        """
        Igual que ``compute`` pero valida antes/después; con errores no hay resultado.
        """
        inp = self.normalize(room, conditions, product)
        rules = rules if rules is not None else load_rules()
        issues = validate(inp, rules)
        if any(i.level == "error" for i in issues):
            logger.debug("Entradas inválidas: %s", "; ".join(i.message for i in issues if i.level == "error"))
            return CheckedLoad(valid=False, issues=issues, result=None)
        result = self.compute_normalized(inp)
        issues.extend(validate_result(result, rules))
        return CheckedLoad(valid=True, issues=issues, result=result)

    # ---------------- PROYECTO (varios cuartos) ---------------- #
    def compute_project(
        self, rooms: Iterable[Tuple[RoomInput, ConditionsInput, ProductInput]]
    ) -> ProjectResult:
        res_rooms = [self.compute(r, c, p) for r, c, p in rooms]
        tot = sum(r.total_load for r in res_rooms)
        tot_safety = sum(r.total_load_with_safety for r in res_rooms)
        return ProjectResult(
            rooms=res_rooms,
            total_load=tot,
            total_load_with_safety=tot_safety,
            refrigeration_tons=tot_safety / KW_PER_TR,
        )


def project_frame(project: ProjectResult, names: Optional[Iterable[str]] = None) -> pd.DataFrame:
    """Una fila por cuarto con las cargas por categoría (kW) y los totales."""
    names = list(names) if names is not None else [f"CUARTO {i + 1}" for i in range(len(project.rooms))]
    rows = []
    for name, r in zip(names, project.rooms):
        row = {
            "cuarto": name,
            "largo_m": r.dimensions.length,
            "ancho_m": r.dimensions.width,
            "alto_m": r.dimensions.height,
            "volumen_m3": r.volume,
            "dT_C": r.temperature_difference,
        }
        row.update({f"{k}_kW": v for k, v in r.category_totals().items()})
        row.update(
            {
                "total_kW": r.total_load,
                "total_seguridad_kW": r.total_load_with_safety,
                "TR": r.refrigeration_tons,
            }
        )
        rows.append(row)
    return pd.DataFrame(rows)


# ---------------------------- API de módulo ---------------------------- #

_DEFAULT_CALCULATOR: Optional[ColdRoomLoadCalculator] = None


def default_calculator() -> ColdRoomLoadCalculator:
    global _DEFAULT_CALCULATOR
    if _DEFAULT_CALCULATOR is None:
        _DEFAULT_CALCULATOR = ColdRoomLoadCalculator()
    return _DEFAULT_CALCULATOR


def compute(
    room: RoomInput | None = None,
    conditions: ConditionsInput | None = None,
    product: ProductInput | None = None,
) -> LoadResult:
    return default_calculator().compute(room, conditions, product)


if __name__ == "__main__":
    res = compute()
    print(f"Cuarto {res.dimensions.length} x {res.dimensions.width} x {res.dimensions.height} m | dT {res.temperature_difference} °C")
    print({k: round(v, 3) for k, v in res.category_totals().items()})
    print(f"Total {res.total_load:.2f} kW | con seguridad {res.total_load_with_safety:.2f} kW | {res.refrigeration_tons:.2f} TR")
