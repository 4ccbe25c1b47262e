from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

import pandas as pd

from .models import Product

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parent / "data"

THERMAL_FILE = "thermal_data.json"
PRODUCTS_FILE = "products.csv"
STORAGE_FILE = "storage_factors.csv"

DEFAULT_PRODUCT_KEY = "General Food Items"
DEFAULT_STORAGE_KEY = "Palletized"
COLD_ROOM_CATEGORY = "coldRoom"
DEFAULT_U_FACTOR = 0.25

# valores de respaldo si la tabla externa no trae la entrada
FALLBACK_PRODUCT = Product(density=400.0, storage_efficiency=0.6, specific_heat_above=3.5)
FALLBACK_STORAGE_FACTOR = 0.8
FALLBACK_CONSTANTS = {
    "air_change_rate": 0.5,
    "air_density": 1.2,
    "air_specific_heat": 1.005,
    "person_heat_load": 0.27,
    "safety_factor": 1.1,
}

_MISSING = object()


def resolve(table: Mapping[Any, Any] | None, primary: Any, secondary: Any = _MISSING, default: Any = None) -> Any:
    """
    Búsqueda en uno o dos niveles; devuelve ``default`` si falta cualquier clave.
    """
    if table is None or primary not in table:
        return default
    value = table[primary]
    if secondary is _MISSING:
        return value
    if not isinstance(value, Mapping) or secondary not in value:
        return default
    return value[secondary]


def _thickness_key(value: Any) -> Optional[float]:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# ---------------------------- CONSTANTES TÉRMICAS ---------------------------- #


@dataclass(frozen=True)
class ThermalConstants:
    u_factors: Dict[str, Dict[float, float]] = field(default_factory=dict)
    air_change_rates: Dict[str, float] = field(default_factory=dict)
    air_density: float = FALLBACK_CONSTANTS["air_density"]
    air_specific_heat: float = FALLBACK_CONSTANTS["air_specific_heat"]
    person_heat_load: float = FALLBACK_CONSTANTS["person_heat_load"]
    safety_factor: float = FALLBACK_CONSTANTS["safety_factor"]

    @classmethod
    def from_dict(cls, blob: Mapping[str, Any]) -> "ThermalConstants":
        raw_u = blob.get("u_factors_W_m2K", blob.get("u_factors", {})) or {}
        u_factors: Dict[str, Dict[float, float]] = {}
        for ins_type, by_thk in raw_u.items():
            u_factors[str(ins_type)] = {
                _thickness_key(k): float(v) for k, v in by_thk.items() if _thickness_key(k) is not None
            }

        def scalar(*names: str, default: float) -> float:
            for n in names:
                if blob.get(n) is not None:
                    return float(blob[n])
            return default

        return cls(
            u_factors=u_factors,
            air_change_rates={str(k): float(v) for k, v in (blob.get("air_change_rates") or {}).items()},
            air_density=scalar("air_density_kg_m3", "air_density", default=FALLBACK_CONSTANTS["air_density"]),
            air_specific_heat=scalar(
                "air_specific_heat_kJ_kgK", "air_specific_heat", default=FALLBACK_CONSTANTS["air_specific_heat"]
            ),
            person_heat_load=scalar(
                "person_heat_load_kW", "person_heat_load", default=FALLBACK_CONSTANTS["person_heat_load"]
            ),
            safety_factor=scalar("safety_factor", default=FALLBACK_CONSTANTS["safety_factor"]),
        )

    def u_factor(self, insulation_type: str, thickness: Any) -> float:
        value = resolve(self.u_factors, insulation_type, _thickness_key(thickness), default=None)
        if value is None:
            logger.debug(
                "Sin factor U para %s / %s mm; se usa %.2f", insulation_type, thickness, DEFAULT_U_FACTOR
            )
            return DEFAULT_U_FACTOR
        return value

    @property
    def cold_room_air_change_rate(self) -> float:
        value = resolve(self.air_change_rates, COLD_ROOM_CATEGORY, default=None)
        if value is None:
            logger.debug("Tabla sin tasa de renovación '%s'; se usa valor por defecto", COLD_ROOM_CATEGORY)
            return FALLBACK_CONSTANTS["air_change_rate"]
        return value


# ---------------------------- TABLAS COMPLETAS ---------------------------- #


@dataclass(frozen=True)
class LookupTables:
    thermal: ThermalConstants
    products: Dict[str, Product] = field(default_factory=dict)
    storage_factors: Dict[str, float] = field(default_factory=dict)

    # utilidades
    def product(self, name: str) -> tuple[str, Product]:
        """Devuelve (clave usada, producto); cae al registro por defecto."""
        prod = resolve(self.products, name)
        if prod is not None:
            return name, prod
        target = (name or "").lower()
        for key, val in self.products.items():
            if key.lower() == target:
                return key, val
        logger.debug("Producto '%s' no encontrado; se usa '%s'", name, DEFAULT_PRODUCT_KEY)
        return DEFAULT_PRODUCT_KEY, resolve(self.products, DEFAULT_PRODUCT_KEY, default=FALLBACK_PRODUCT)

    def storage_factor(self, name: str) -> tuple[str, float]:
        factor = resolve(self.storage_factors, name)
        if factor is not None:
            return name, factor
        logger.debug("Tipo de almacenamiento '%s' no encontrado; se usa '%s'", name, DEFAULT_STORAGE_KEY)
        return DEFAULT_STORAGE_KEY, resolve(self.storage_factors, DEFAULT_STORAGE_KEY, default=FALLBACK_STORAGE_FACTOR)

    # opciones para la capa de presentación
    def insulation_types(self) -> List[str]:
        return list(self.thermal.u_factors)

    def thicknesses(self, insulation_type: str) -> List[float]:
        return sorted(resolve(self.thermal.u_factors, insulation_type, default={}))

    def product_names(self) -> List[str]:
        return list(self.products)

    def storage_types(self) -> List[str]:
        return list(self.storage_factors)


# ---------------------------- CARGA DESDE DISCO ---------------------------- #


def _load_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"No se encontró el archivo de datos: {path}")
    return json.loads(path.read_text(encoding="utf-8"))


def _read_table(path: Path) -> pd.DataFrame:
    if not path.exists():
        raise FileNotFoundError(f"No se encontró el archivo de datos: {path}")
    if path.suffix.lower() in (".xlsx", ".xlsm"):
        df = pd.read_excel(path, engine="openpyxl")
    else:
        df = pd.read_csv(path)
    df.columns = [str(c).strip() for c in df.columns]
    return df


def _require(df: pd.DataFrame, cols: List[str], path: Path) -> None:
    missing = [c for c in cols if c not in df.columns]
    if missing:
        raise ValueError(f"{path.name}: faltan columnas {missing}")


def load_products(path: str | Path) -> Dict[str, Product]:
    path = Path(path)
    df = _read_table(path)
    cols = ["name", "density_kg_m3", "storage_efficiency", "specific_heat_above_kJ_kgK"]
    _require(df, cols, path)
    df = df.dropna(subset=["name"])
    return {
        str(r["name"]).strip(): Product(
            density=float(r["density_kg_m3"]),
            storage_efficiency=float(r["storage_efficiency"]),
            specific_heat_above=float(r["specific_heat_above_kJ_kgK"]),
        )
        for _, r in df.iterrows()
    }


def load_storage_factors(path: str | Path) -> Dict[str, float]:
    path = Path(path)
    df = _read_table(path)
    _require(df, ["storage_type", "factor"], path)
    df = df.dropna(subset=["storage_type", "factor"])
    return {str(k).strip(): float(v) for k, v in zip(df["storage_type"], df["factor"])}


def load_tables(
    data_dir: str | Path | None = None,
    *,
    products_file: str = PRODUCTS_FILE,
    storage_file: str = STORAGE_FILE,
) -> LookupTables:
    """
    Carga las tres tablas externas desde ``data_dir`` (por defecto el directorio data/ del paquete).

    Las tablas de productos y de almacenamiento aceptan .csv o .xlsx.
    """
    base = Path(data_dir) if data_dir else DATA_DIR
    thermal = ThermalConstants.from_dict(_load_json(base / THERMAL_FILE))
    products = load_products(base / products_file)
    storage = load_storage_factors(base / storage_file)
    logger.info(
        "Tablas cargadas desde %s: %d aislamientos, %d productos, %d almacenamientos",
        base, len(thermal.u_factors), len(products), len(storage),
    )
    return LookupTables(thermal=thermal, products=products, storage_factors=storage)
