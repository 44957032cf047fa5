"""
Unit tests for aquawatch.core.thresholds.threshold_table.

These tests validate:
- the calibration values of THRESHOLD_TABLE
- immutability of the table
- nesting validation in build_threshold_table
- the JSON view used by the HTTP API
"""

from __future__ import annotations

import pytest

from aquawatch.core.thresholds.threshold_table import (
    MONITORED_PARAMETERS,
    THRESHOLD_TABLE,
    Band,
    ParameterThresholds,
    build_threshold_table,
    threshold_table_as_dict,
)
from aquawatch.domain.models import Parameter, Severity


def test_table_order_matches_monitored_parameters() -> None:
    assert MONITORED_PARAMETERS == (
        Parameter.PH,
        Parameter.DO,
        Parameter.TEMPERATURE,
        Parameter.EC,
        Parameter.WEIGHT,
    )


def test_calibration_values() -> None:
    ph = THRESHOLD_TABLE[Parameter.PH]
    assert (ph.optimal, ph.warning, ph.critical) == (Band(6.5, 8.5), Band(6.5, 8.5), Band(6.0, 9.0))

    do = THRESHOLD_TABLE[Parameter.DO]
    assert (do.optimal, do.warning, do.critical) == (Band(5.0, 7.0), Band(4.5, None), Band(3.0, None))

    temp = THRESHOLD_TABLE[Parameter.TEMPERATURE]
    assert (temp.optimal, temp.warning, temp.critical) == (Band(26, 30), Band(24, 31), Band(22, 32))

    ec = THRESHOLD_TABLE[Parameter.EC]
    assert (ec.optimal, ec.warning, ec.critical) == (Band(500, 1500), Band(500, 1500), Band(250, 2000))

    weight = THRESHOLD_TABLE[Parameter.WEIGHT]
    assert weight.is_single_sided
    assert weight.refill == Band(0.0, 1.0)


def test_table_is_read_only() -> None:
    with pytest.raises(TypeError):
        THRESHOLD_TABLE[Parameter.PH] = THRESHOLD_TABLE[Parameter.EC]  # type: ignore[index]


def test_band_helpers() -> None:
    b = Band(1.0, None)
    assert b.below(0.5)
    assert not b.above(1e9)
    assert b.contains(1.0)
    assert b.to_dict() == {"min": 1.0, "max": None}


def test_band_for_returns_matching_band() -> None:
    ph = THRESHOLD_TABLE[Parameter.PH]
    assert ph.band_for(Severity.CRITICAL) == Band(6.0, 9.0)
    assert ph.band_for(Severity.REFILL) is None


def test_build_rejects_bands_that_do_not_nest() -> None:
    bad = ParameterThresholds(
        parameter=Parameter.PH,
        optimal=Band(6.5, 8.5),
        warning=Band(6.0, 9.0),
        critical=Band(6.2, 8.8),
    )
    with pytest.raises(ValueError):
        build_threshold_table([bad])


def test_build_rejects_missing_band_on_two_sided_entry() -> None:
    with pytest.raises(ValueError):
        build_threshold_table([ParameterThresholds(parameter=Parameter.EC, optimal=Band(1, 2))])


def test_build_rejects_duplicates() -> None:
    entry = ParameterThresholds(parameter=Parameter.WEIGHT, refill=Band(0.0, 1.0))
    with pytest.raises(ValueError):
        build_threshold_table([entry, entry])


def test_table_as_dict_is_json_friendly() -> None:
    d = threshold_table_as_dict()

    assert list(d) == ["pH", "DO", "temperature", "EC", "weight"]
    assert d["DO"]["warning"] == {"min": 4.5, "max": None}
    assert d["weight"] == {"unit": "kg", "refill": {"min": 0.0, "max": 1.0}}
