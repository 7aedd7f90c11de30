"""Mean Kinetic Temperature calculation.

MKT is the single isothermal temperature that would produce the same
cumulative thermal degradation as a varying temperature profile::

    MKT = -(dH / R) / ln( sum(exp(-(dH / R) / T_i)) / n )

with ``dH`` the activation energy in kJ/mol, ``R`` the gas constant in
kJ/(mol K) and ``T_i`` each reading in Kelvin. The average of exponentials
is evaluated in log space so that very cold readings do not underflow to
zero.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional

from models.errors import EmptyInputError, InvalidActivationEnergyError, MktComputationError
from models.records import KELVIN_OFFSET, MktResult
from services.aggregator import TemperatureInput, celsius_values
from services.parsers import is_valid_temperature
from settings import DEFAULT_ACTIVATION_ENERGY

GAS_CONSTANT = 8.314  # J/(mol K)


@dataclass(frozen=True)
class MktConfig:
    activation_energy: float = DEFAULT_ACTIVATION_ENERGY  # kJ/mol
    gas_constant: float = GAS_CONSTANT  # J/(mol K)

    @property
    def gas_constant_kj(self) -> float:
        return self.gas_constant / 1000


def validate_activation_energy(value: float) -> float:
    try:
        energy = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidActivationEnergyError(
            f"Activation energy must be a number, got {value!r}."
        ) from exc
    if not math.isfinite(energy) or energy <= 0:
        raise InvalidActivationEnergyError(
            f"Activation energy must be a positive number of kJ/mol, got {value!r}."
        )
    return energy


def compute_mkt(
    values: Iterable[TemperatureInput],
    activation_energy: float = DEFAULT_ACTIVATION_ENERGY,
    gas_constant: float = GAS_CONSTANT,
) -> float:
    """Return the MKT in Celsius for readings or plain Celsius temperatures."""
    temperatures = celsius_values(values)
    if not temperatures:
        raise EmptyInputError("Temperature list cannot be empty.")

    energy = validate_activation_energy(activation_energy)
    if not math.isfinite(gas_constant) or gas_constant <= 0:
        raise MktComputationError(f"Gas constant must be positive, got {gas_constant!r}.")

    for temperature in temperatures:
        if not is_valid_temperature(temperature):
            raise MktComputationError(
                f"Temperature {temperature!r} is not above absolute zero."
            )

    ratio = energy / (gas_constant / 1000)
    exponents = [-ratio / (temperature + KELVIN_OFFSET) for temperature in temperatures]
    peak = max(exponents)
    log_average = (
        peak
        + math.log(math.fsum(math.exp(exponent - peak) for exponent in exponents))
        - math.log(len(exponents))
    )

    if not math.isfinite(log_average) or log_average >= 0:
        raise MktComputationError(
            f"Average exponential term is out of range (log={log_average!r})."
        )

    mkt_kelvin = -ratio / log_average
    if not math.isfinite(mkt_kelvin):
        raise MktComputationError("MKT computation did not produce a finite value.")
    return mkt_kelvin - KELVIN_OFFSET


class MktCalculator:
    """Computes MKT with an explicit, per-instance configuration."""

    def __init__(self, config: Optional[MktConfig] = None) -> None:
        self.config = config or MktConfig()
        validate_activation_energy(self.config.activation_energy)

    def calculate(
        self,
        values: Iterable[TemperatureInput],
        activation_energy: Optional[float] = None,
    ) -> MktResult:
        energy = self.config.activation_energy if activation_energy is None else activation_energy
        temperatures = celsius_values(values)
        mkt = compute_mkt(temperatures, energy, self.config.gas_constant)
        return MktResult(
            mkt_celsius=mkt,
            activation_energy=float(energy),
            temperature_count=len(temperatures),
        )
