"""
Threshold calibration table.

This module holds the product's calibration: the optimal / warning / critical
ranges for every two-sided parameter and the refill ceiling for feed weight.
Changing a value here silently changes alerting behaviour, so the table is an
immutable, process-wide constant built once at import time.

Notes
-----
- A band side set to ``None`` is unbounded. Dissolved oxygen defines no upper
  warning or critical limit.
- The nesting invariant (bands widen outward from optimal) is checked when the
  module is imported.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from aquawatch.domain.models import Parameter, Severity


@dataclass(frozen=True)
class Band:
    """
    Inclusive numeric range.

    Parameters
    ----------
    min
        Lower bound, or ``None`` when the band has no lower side.
    max
        Upper bound, or ``None`` when the band has no upper side.
    """

    min: Optional[float] = None
    max: Optional[float] = None

    def below(self, value: float) -> bool:
        """True if ``value`` falls under the lower bound."""
        return self.min is not None and value < self.min

    def above(self, value: float) -> bool:
        """True if ``value`` exceeds the upper bound."""
        return self.max is not None and value > self.max

    def contains(self, value: float) -> bool:
        return not (self.below(value) or self.above(value))

    def to_dict(self) -> Dict[str, Optional[float]]:
        return {"min": self.min, "max": self.max}


@dataclass(frozen=True)
class ParameterThresholds:
    """
    Calibration entry for one parameter.

    Two-sided parameters set ``optimal``, ``warning`` and ``critical``.
    Feed weight sets only ``refill``.

    Parameters
    ----------
    parameter
        Parameter this entry belongs to.
    unit
        Display unit (informational only).
    optimal, warning, critical
        Severity bands, nesting outward from optimal.
    refill
        Single-sided refill band (kilograms).
    """

    parameter: Parameter
    unit: str = ""
    optimal: Optional[Band] = None
    warning: Optional[Band] = None
    critical: Optional[Band] = None
    refill: Optional[Band] = None

    @property
    def is_single_sided(self) -> bool:
        return self.refill is not None

    def band_for(self, severity: Severity) -> Optional[Band]:
        """
        Return the band whose violation produces ``severity``.

        Parameters
        ----------
        severity
            Severity band name.

        Returns
        -------
        Band or None
            The matching band, or None if this entry does not define it.
        """
        return {
            Severity.OPTIMAL: self.optimal,
            Severity.WARNING: self.warning,
            Severity.CRITICAL: self.critical,
            Severity.REFILL: self.refill,
        }[severity]

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"unit": self.unit}
        for name in ("optimal", "warning", "critical", "refill"):
            band = getattr(self, name)
            if band is not None:
                out[name] = band.to_dict()
        return out


def _check_nesting(entry: ParameterThresholds) -> None:
    """
    Verify ``critical.min <= warning.min <= optimal.min <= optimal.max <= warning.max <= critical.max``.

    Only sides defined by both neighbouring bands are compared.

    Raises
    ------
    ValueError
        If a two-sided entry is missing a band or the bands do not nest.
    """
    if entry.is_single_sided:
        return
    if entry.optimal is None or entry.warning is None or entry.critical is None:
        raise ValueError(f"{entry.parameter.value}: optimal, warning and critical bands are required")

    lows = [entry.critical.min, entry.warning.min, entry.optimal.min]
    highs = [entry.optimal.max, entry.warning.max, entry.critical.max]

    for chain in (lows, highs):
        present = [v for v in chain if v is not None]
        if present != sorted(present):
            raise ValueError(f"{entry.parameter.value}: bands must nest outward from optimal")

    if entry.optimal.min is not None and entry.optimal.max is not None and entry.optimal.min > entry.optimal.max:
        raise ValueError(f"{entry.parameter.value}: optimal.min exceeds optimal.max")


def build_threshold_table(entries: Iterable[ParameterThresholds]) -> Mapping[Parameter, ParameterThresholds]:
    """
    Validate entries and freeze them into a read-only mapping.

    Parameters
    ----------
    entries
        Calibration entries; one per parameter.

    Returns
    -------
    Mapping[Parameter, ParameterThresholds]
        Read-only mapping preserving entry order.

    Raises
    ------
    ValueError
        If an entry violates the nesting invariant or a parameter repeats.
    """
    table: Dict[Parameter, ParameterThresholds] = {}
    for entry in entries:
        if entry.parameter in table:
            raise ValueError(f"Duplicate threshold entry: {entry.parameter.value}")
        _check_nesting(entry)
        table[entry.parameter] = entry
    return MappingProxyType(table)


THRESHOLD_TABLE: Mapping[Parameter, ParameterThresholds] = build_threshold_table(
    [
        ParameterThresholds(
            parameter=Parameter.PH,
            optimal=Band(6.5, 8.5),
            warning=Band(6.5, 8.5),
            critical=Band(6.0, 9.0),
        ),
        ParameterThresholds(
            parameter=Parameter.DO,
            unit="mg/L",
            optimal=Band(5.0, 7.0),
            warning=Band(4.5, None),
            critical=Band(3.0, None),
        ),
        ParameterThresholds(
            parameter=Parameter.TEMPERATURE,
            unit="°C",
            optimal=Band(26.0, 30.0),
            warning=Band(24.0, 31.0),
            critical=Band(22.0, 32.0),
        ),
        ParameterThresholds(
            parameter=Parameter.EC,
            unit="µS/cm",
            optimal=Band(500.0, 1500.0),
            warning=Band(500.0, 1500.0),
            critical=Band(250.0, 2000.0),
        ),
        ParameterThresholds(
            parameter=Parameter.WEIGHT,
            unit="kg",
            refill=Band(0.0, 1.0),
        ),
    ]
)

MONITORED_PARAMETERS: Tuple[Parameter, ...] = tuple(THRESHOLD_TABLE)


def threshold_table_as_dict() -> Dict[str, Dict[str, Any]]:
    """JSON-friendly view of :data:`THRESHOLD_TABLE` keyed by parameter name."""
    return {p.value: entry.to_dict() for p, entry in THRESHOLD_TABLE.items()}
