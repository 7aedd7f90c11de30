"""Unit tests for the Mean Kinetic Temperature engine."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from statistics import mean

import pytest

from models.errors import EmptyInputError, InvalidActivationEnergyError, MktComputationError
from models.records import TemperatureReading
from services.mkt import DEFAULT_ACTIVATION_ENERGY, MktCalculator, MktConfig, compute_mkt


@pytest.mark.parametrize("value", [-20.0, 0.0, 25.0, 40.0])
@pytest.mark.parametrize("count", [1, 5, 250])
def test_constant_temperatures_return_that_temperature(value: float, count: int) -> None:
    assert compute_mkt([value] * count) == pytest.approx(value, abs=0.1)


def test_default_scenario_is_pulled_above_the_mean() -> None:
    mkt = compute_mkt([20.0, 25.0, 30.0], 83.144)

    assert 25.0 < mkt < 30.0


@pytest.mark.parametrize(
    "temperatures",
    [
        [15.0, 20.0, 25.0, 30.0, 35.0],
        [0.0, 100.0],
        [2.0, 8.0, 5.5, 7.25],
        [-25.0, -18.0, -20.0],
        [24.9, 25.0, 25.1],
    ],
)
def test_mkt_lies_between_mean_and_max(temperatures: list[float]) -> None:
    mkt = compute_mkt(temperatures)

    assert mkt >= mean(temperatures)
    assert mkt < max(temperatures)


def test_similar_temperatures_stay_close_to_their_average() -> None:
    assert compute_mkt([24.9, 25.0, 25.1]) == pytest.approx(25.0, abs=0.1)


def test_high_outlier_moves_mkt_more_than_low_outlier() -> None:
    baseline = compute_mkt([25.0] * 5)
    with_spike = compute_mkt([25.0, 25.0, 40.0, 25.0, 25.0])
    with_dip = compute_mkt([25.0, 25.0, 10.0, 25.0, 25.0])

    assert with_spike > 27.0
    assert with_spike - baseline > baseline - with_dip > 0


def test_activation_energy_changes_result() -> None:
    temperatures = [20.0, 25.0, 30.0]

    standard = compute_mkt(temperatures, 83.144)

    assert compute_mkt(temperatures, 100.0) != standard
    assert compute_mkt(temperatures, 60.0) != standard


def test_very_cold_readings_do_not_underflow() -> None:
    mkt = compute_mkt([-270.0, -269.0])

    assert math.isfinite(mkt)
    assert -270.0 < mkt < -269.0


def test_readings_and_plain_temperatures_agree() -> None:
    moment = datetime(2024, 1, 1, tzinfo=timezone.utc)
    readings = [TemperatureReading(timestamp=moment, temperature_celsius=value) for value in (4.0, 6.0, 9.0)]

    assert compute_mkt(readings) == compute_mkt([4.0, 6.0, 9.0])


def test_empty_input_fails() -> None:
    with pytest.raises(EmptyInputError):
        compute_mkt([])


@pytest.mark.parametrize("energy", [0.0, -83.144, float("nan"), float("inf")])
def test_invalid_activation_energy_fails(energy: float) -> None:
    with pytest.raises(InvalidActivationEnergyError):
        compute_mkt([20.0, 25.0], energy)


def test_temperature_below_absolute_zero_fails() -> None:
    with pytest.raises(MktComputationError):
        compute_mkt([20.0, -300.0])


def test_calculator_uses_configured_activation_energy() -> None:
    calculator = MktCalculator(MktConfig(activation_energy=100.0))

    result = calculator.calculate([20.0, 25.0, 30.0])

    assert result.activation_energy == 100.0
    assert result.temperature_count == 3
    assert result.mkt_celsius == pytest.approx(compute_mkt([20.0, 25.0, 30.0], 100.0))
    assert result.mkt_kelvin == pytest.approx(result.mkt_celsius + 273.15)


def test_calculator_override_does_not_change_configuration() -> None:
    calculator = MktCalculator()

    overridden = calculator.calculate([20.0, 30.0], activation_energy=60.0)
    default = calculator.calculate([20.0, 30.0])

    assert overridden.activation_energy == 60.0
    assert default.activation_energy == DEFAULT_ACTIVATION_ENERGY
    assert calculator.config.activation_energy == DEFAULT_ACTIVATION_ENERGY


def test_calculator_rejects_invalid_configuration() -> None:
    with pytest.raises(InvalidActivationEnergyError):
        MktCalculator(MktConfig(activation_energy=0.0))


def test_gas_constant_is_configurable() -> None:
    config = MktConfig(gas_constant=8.314462618)

    assert config.gas_constant_kj == pytest.approx(0.008314462618)
    result = MktCalculator(config).calculate([20.0, 30.0])
    assert result.mkt_celsius != compute_mkt([20.0, 30.0])
