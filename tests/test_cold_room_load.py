import math

import pytest

from logic.cold_room_load.calculator import KW_PER_TR, ColdRoomLoadCalculator, compute
from logic.cold_room_load.models import ConditionsInput, ProductInput, RoomInput


@pytest.fixture(scope="module")
def calc():
    return ColdRoomLoadCalculator()


def _scenario():
    room = RoomInput(length="6", width="5", height="3", insulation_type="PUF", insulation_thickness=100)
    cond = ConditionsInput(external_temp="35", internal_temp="4", pull_down_time="6")
    prod = ProductInput(daily_load="2500", incoming_temp="25", outgoing_temp="4")
    return room, cond, prod


def test_defaults_todo_vacio(calc):
    res = calc.compute(RoomInput(), ConditionsInput(), ProductInput())
    assert (res.dimensions.length, res.dimensions.width, res.dimensions.height) == (5.0, 4.0, 3.0)
    assert (res.door_dimensions.width, res.door_dimensions.height) == (1.2, 2.1)
    assert res.construction.type == "PUF"
    assert res.construction.thickness == 100
    assert res.construction.u_factor == 0.25
    assert res.volume == 60.0
    assert res.temperature_difference == 31.0
    assert res.pull_down_time == 6.0
    assert res.door_openings == 20
    assert res.working_hours == 6
    assert res.product_info.type == "General Food Items"
    assert res.product_info.mass == 2000
    assert res.storage_capacity.storage_type == "Palletized"


def test_defaults_texto_invalido(calc):
    room = RoomInput(length="abc", width="", height=float("nan"), door_width="inf", door_openings=None)
    cond = ConditionsInput(external_temp="n/a", internal_temp=" ", pull_down_time=float("inf"))
    res = calc.compute(room, cond, ProductInput(daily_load="x"))
    assert res == calc.compute(RoomInput(), ConditionsInput(), ProductInput())


def test_total_es_suma_de_categorias(calc):
    res = calc.compute(*_scenario())
    suma = (
        res.transmission_load.total
        + res.product_load.total
        + res.air_infiltration_load
        + res.internal_loads.total
        + res.door_load
    )
    assert math.isclose(res.total_load, suma, abs_tol=1e-9)
    assert math.isclose(res.transmission_load.total, sum(
        (res.transmission_load.walls, res.transmission_load.ceiling, res.transmission_load.floor)
    ), abs_tol=1e-9)


def test_toneladas_y_factor_seguridad(calc):
    res = calc.compute(*_scenario())
    assert res.refrigeration_tons == res.total_load_with_safety / 3.517
    assert KW_PER_TR == 3.517
    assert res.total_load_with_safety == res.total_load * calc.tables.thermal.safety_factor


def test_escenario_formulas(calc):
    res = calc.compute(*_scenario())
    th = calc.tables.thermal
    prod = calc.tables.products["General Food Items"]
    u, dT = 0.25, 31.0

    assert res.areas.wall == 66.0
    assert res.areas.ceiling == res.areas.floor == 30.0
    assert res.volume == 90.0
    # transmisión
    assert math.isclose(res.transmission_load.walls, u * 66 * dT / 1000)
    assert math.isclose(res.transmission_load.ceiling, u * 30 * dT / 1000)
    assert math.isclose(res.transmission_load.floor, u * 30 * dT / 1000)
    assert math.isclose(res.transmission_load.total, 0.9765)
    # producto (solo sensible)
    sensible = 2500 * prod.specific_heat_above * (25 - 4) / (6 * 3.6)
    assert math.isclose(res.product_load.sensible, sensible)
    assert res.product_load.latent == 0.0
    assert res.product_load.total == res.product_load.sensible
    # infiltración
    rate = th.air_change_rates["coldRoom"]
    assert res.air_change_rate == rate
    infil = 90 * th.air_density * th.air_specific_heat * dT * rate / 3.6
    assert math.isclose(res.air_infiltration_load, infil)
    # internas con valores por defecto
    assert math.isclose(res.internal_loads.people, 2 * th.person_heat_load * 6 / 24)
    assert math.isclose(res.internal_loads.lighting, 200 * 24 / 24 / 1000)
    assert math.isclose(res.internal_loads.equipment, 0.5)
    # puerta
    door = 20 * (1.2 * 2.1) * 3.0 * math.sqrt(dT) / 24 / 1000
    assert math.isclose(res.door_load, door)
    assert math.isclose(res.total_load_with_safety, res.total_load * th.safety_factor)


def test_capacidad_almacenamiento(calc):
    res = calc.compute(*_scenario())
    prod = calc.tables.products["General Food Items"]
    factor = calc.tables.storage_factors["Palletized"]
    maximo = 90 * prod.density * prod.storage_efficiency * factor
    assert math.isclose(res.storage_capacity.maximum, maximo)
    assert math.isclose(res.storage_capacity.utilization, 2500 / maximo * 100)
    assert res.storage_capacity.storage_factor == factor


def test_utilizacion_sin_recortar(calc):
    res = calc.compute(RoomInput(length=1, width=1, height=1), None, ProductInput(daily_load=100000))
    assert res.storage_capacity.utilization > 100


def test_monotonia_temperatura_externa(calc):
    room, _, prod = _scenario()
    prev = None
    for text in (10, 20, 30, 40):
        res = calc.compute(room, ConditionsInput(external_temp=text, internal_temp=4), prod)
        if prev is not None:
            assert res.transmission_load.total > prev.transmission_load.total
            assert res.air_infiltration_load > prev.air_infiltration_load
            assert res.door_load > prev.door_load
        prev = res


def test_producto_desconocido_igual_a_default(calc):
    room, cond, _ = _scenario()
    a = calc.compute(room, cond, ProductInput(product_type="Producto inexistente"))
    b = calc.compute(room, cond, ProductInput(product_type="General Food Items"))
    assert a == b


def test_producto_sin_distinguir_mayusculas(calc):
    res = calc.compute(None, None, ProductInput(product_type="dairy products"))
    assert res.product_info.type == "Dairy Products"
    assert res.product_info.properties == calc.tables.products["Dairy Products"]


def test_almacenamiento_y_aislamiento_desconocidos(calc):
    res = calc.compute(
        RoomInput(insulation_type="Corcho", insulation_thickness=100),
        None,
        ProductInput(storage_type="Flotante"),
    )
    assert res.construction.type == "Corcho"
    assert res.construction.u_factor == 0.25
    assert res.storage_capacity.storage_type == "Palletized"
    res2 = calc.compute(RoomInput(insulation_type="EPS", insulation_thickness="150"))
    assert res2.construction.u_factor == calc.tables.thermal.u_factors["EPS"][150.0]
    res3 = calc.compute(RoomInput(insulation_type="EPS", insulation_thickness=137))
    assert res3.construction.u_factor == 0.25


def test_idempotente(calc):
    a = calc.compute(RoomInput(), ConditionsInput(), ProductInput())
    b = calc.compute(RoomInput(), ConditionsInput(), ProductInput())
    assert a == b
    assert a.total_load == b.total_load
    assert compute() == compute()


def test_cero_como_faltante_por_defecto(calc):
    res = calc.compute(None, None, ProductInput(equipment_load=0, number_of_people="0"))
    assert res.internal_loads.equipment == 0.5
    assert res.internal_loads.people > 0


def test_cero_permitido():
    calc = ColdRoomLoadCalculator(zero_means_missing=False)
    res = calc.compute(RoomInput(door_openings=0), None, ProductInput(equipment_load=0, number_of_people="0"))
    assert res.internal_loads.equipment == 0.0
    assert res.internal_loads.people == 0.0
    assert res.door_load == 0.0
    # división entre cero sin excepción
    res2 = calc.compute(None, ConditionsInput(pull_down_time=0), None)
    assert math.isinf(res2.product_load.sensible)


def test_delta_t_negativo_no_lanza(calc):
    res = calc.compute(None, ConditionsInput(external_temp=2, internal_temp=10), None)
    assert res.temperature_difference == -8
    assert res.transmission_load.total < 0
    assert math.isnan(res.door_load)


def test_porcentajes_y_btuh(calc):
    res = calc.compute(*_scenario())
    pct = res.as_percentages()
    assert math.isclose(sum(pct.values()), 1.0)
    assert math.isclose(res.total_btuh, res.total_load_with_safety * 3412.142)
    d = res.to_dict()
    assert d["construction"]["u_factor"] == 0.25
    assert d["product_info"]["properties"]["density"] == res.product_info.properties.density


def test_desde_dict_camel_case(calc):
    room = RoomInput.from_dict({"length": "6", "width": "5", "height": "3", "doorWidth": "1.0", "insulationType": "PIR"})
    cond = ConditionsInput.from_dict({"externalTemp": "32", "pull_down_time": "8"})
    prod = ProductInput.from_dict({"productType": "Eggs", "dailyLoad": "1200"})
    assert room.door_width == "1.0"
    res = calc.compute(room, cond, prod)
    assert res.door_dimensions.width == 1.0
    assert res.construction.type == "PIR"
    assert res.temperature_difference == 28
    assert res.pull_down_time == 8
    assert res.product_info.type == "Eggs"


def test_proyecto_varios_cuartos(calc):
    rooms = [_scenario(), (RoomInput(), ConditionsInput(), ProductInput())]
    proj = calc.compute_project(rooms)
    assert len(proj.rooms) == 2
    assert math.isclose(proj.total_load, sum(r.total_load for r in proj.rooms))
    assert math.isclose(proj.total_load_with_safety, sum(r.total_load_with_safety for r in proj.rooms))
    assert math.isclose(proj.refrigeration_tons, proj.total_load_with_safety / 3.517)


def test_entradas_extremas_no_lanzan(calc):
    res = calc.compute(RoomInput(length=10**400, insulation_type=0), None, None)
    assert res == calc.compute(RoomInput(), ConditionsInput(), ProductInput())
    assert res.construction.type == "PUF"
