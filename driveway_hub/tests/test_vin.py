"""
VIN decoder tests.

The decoder is a lookup on VIN positions 4 (model) and 10 (year).
"""

import pytest

from driveway_hub.app.services.tesla.vin import (
    LARGEST_DIMENSIONS,
    MODEL_DIMENSIONS,
    UNKNOWN_MODEL,
    decode_vin,
    dimensions_for,
)


@pytest.mark.parametrize("vin,model,year", [
    ("5YJ3E1EA7KF317000", "Model 3", 2019),
    ("7SAYGDEE5PF000001", "Model Y", 2023),
    ("5YJSA1E26JF250000", "Model S", 2018),
    ("5YJXCBE24SF000002", "Model X", 2025),
    ("5yj3e1ea7nf000003", "Model 3", 2022),
])
def test_known_codes(vin, model, year):
    decoded = decode_vin(vin, current_year=2030)
    assert decoded.model == model
    assert decoded.year == year


def test_unknown_codes_fall_back():
    decoded = decode_vin("1HGCM82633A004352", current_year=2026)
    assert decoded.model == UNKNOWN_MODEL
    assert decoded.year == 2026


@pytest.mark.parametrize("vin", [None, "", "5YJ"])
def test_short_or_missing_vin(vin):
    decoded = decode_vin(vin, current_year=2026)
    assert decoded.model == UNKNOWN_MODEL
    assert decoded.year == 2026


def test_unknown_model_gets_largest_dimensions():
    assert dimensions_for(UNKNOWN_MODEL) == LARGEST_DIMENSIONS == MODEL_DIMENSIONS["Model X"]
    assert dimensions_for("Model 3").length_inches == 184.8
