"""
VIN decoding for Tesla vehicles.

This is a heuristic lookup: the model comes from the 4th VIN character and
the model year from the 10th. VINs outside these tables are reported as
``Unknown`` / the current year and may be misclassified.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional

UNKNOWN_MODEL = "Unknown"

MODEL_CODES = {
    "3": "Model 3",
    "Y": "Model Y",
    "S": "Model S",
    "X": "Model X",
}

YEAR_CODES = {
    "J": 2018,
    "K": 2019,
    "L": 2020,
    "M": 2021,
    "N": 2022,
    "P": 2023,
    "R": 2024,
    "S": 2025,
}


@dataclass(frozen=True)
class VehicleDimensions:
    length_inches: float
    width_inches: float
    height_inches: float


# Exterior dimensions, mirrors folded
MODEL_DIMENSIONS = {
    "Model 3": VehicleDimensions(184.8, 72.8, 56.8),
    "Model Y": VehicleDimensions(187.0, 75.6, 63.9),
    "Model S": VehicleDimensions(196.0, 77.3, 56.9),
    "Model X": VehicleDimensions(198.3, 78.7, 66.3),
}

# Unknown vehicles are assumed to be as large as the largest model
LARGEST_DIMENSIONS = max(MODEL_DIMENSIONS.values(), key=lambda d: (d.length_inches, d.width_inches))


@dataclass(frozen=True)
class DecodedVin:
    model: str
    year: int


def decode_model(vin: Optional[str]) -> str:
    if not vin or len(vin) < 4:
        return UNKNOWN_MODEL
    return MODEL_CODES.get(vin[3].upper(), UNKNOWN_MODEL)


def decode_year(vin: Optional[str], current_year: Optional[int] = None) -> int:
    fallback = current_year if current_year is not None else date.today().year
    if not vin or len(vin) < 10:
        return fallback
    return YEAR_CODES.get(vin[9].upper(), fallback)


def decode_vin(vin: Optional[str], current_year: Optional[int] = None) -> DecodedVin:
    return DecodedVin(model=decode_model(vin), year=decode_year(vin, current_year))


def dimensions_for(model: str) -> VehicleDimensions:
    return MODEL_DIMENSIONS.get(model, LARGEST_DIMENSIONS)
