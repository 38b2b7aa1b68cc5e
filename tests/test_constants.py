import numpy as np
import pytest

from eddies import (
    Config,
    Constant,
    Constants,
    build_mesh,
    c,
    get_constant,
    get_dtype,
    pressure_at_depth,
    with_precision,
)


def test_defaults():
    constants = Constants()
    assert constants.GRAVITATIONAL_ACCELERATION == 9.80665
    assert constants["SEA_LEVEL_PRESSURE"].unit == "Pa"
    assert "SEAWATER_DENSITY" in constants
    assert constants.get("MISSING", 1.0) == 1.0


def test_overrides_keep_metadata():
    constants = Constants(SEAWATER_DENSITY=1000.0)
    assert constants.SEAWATER_DENSITY == 1000.0
    assert constants["SEAWATER_DENSITY"].unit == "kg/m³"

    constants.CUSTOM = Constant(3.0, description="Custom", unit="m")
    assert constants.CUSTOM == 3.0
    assert constants.get_constant("CUSTOM").description == "Custom"


def test_unknown_constant_raises_attribute_error():
    with pytest.raises(AttributeError):
        Constants().NOT_A_CONSTANT


def test_global_proxy_can_be_overridden_in_a_context():
    assert c.GRAVITATIONAL_ACCELERATION == 9.80665
    with Constants(GRAVITATIONAL_ACCELERATION=10.0)():
        assert c.GRAVITATIONAL_ACCELERATION == 10.0
        assert get_constant("GRAVITATIONAL_ACCELERATION").value == 10.0
        assert pressure_at_depth(2.0, density=1000.0) == pytest.approx(
            c.SEA_LEVEL_PRESSURE + 20000.0
        )
    assert c.GRAVITATIONAL_ACCELERATION == 9.80665


def test_pressure_at_depth():
    assert pressure_at_depth(0.0) == c.SEA_LEVEL_PRESSURE
    assert pressure_at_depth(10.0) == pytest.approx(101325.0 + 1025.0 * 10.0 * 9.80665)
    assert pressure_at_depth(1.0, constants=Constants(SEA_LEVEL_PRESSURE=0.0)) == (
        pytest.approx(1025.0 * 9.80665)
    )


def test_config_gravity_follows_its_constants():
    config = Config(constants=Constants(GRAVITATIONAL_ACCELERATION=1.62))
    assert config.gravity.up == -1.62


def test_still_water_under_custom_gravity():
    config = Config(constants=Constants(GRAVITATIONAL_ACCELERATION=3.71))
    mesh = build_mesh(3, 3, 3, config=config)
    later = mesh.step(1.0)
    for address in later.addresses((3, 3, 3)):
        cell = later.cell(address)
        for component in cell.velocity:
            assert component == pytest.approx(0.0, abs=1e-7)
        assert cell.pressure == pytest.approx(
            mesh.cell(address).pressure, abs=0.01
        )


def test_precision_switch_is_scoped():
    assert get_dtype() == np.float64
    with with_precision("float32"):
        assert get_dtype() == np.float32
    assert get_dtype() == np.float64
