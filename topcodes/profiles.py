"""
Parameter presets for common capture setups.

Profiles are *recommendations*, not automatic overrides; callers and the CLI
can still pass explicit values. The point is to keep the size assumptions
behind each setup machine-readable and testable.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict

from .scanner import DEFAULT_MAX_DIAMETER, DEFAULT_MIN_DIAMETER, ScanParams


@dataclass(frozen=True)
class ScanProfile:
    name: str
    min_diameter: float
    max_diameter: float
    notes: str


DEFAULT = ScanProfile(
    name="default",
    min_diameter=DEFAULT_MIN_DIAMETER,
    max_diameter=DEFAULT_MAX_DIAMETER,
    notes="Accepts anything from a 2px unit up to an 80px unit.",
)

TABLETOP = ScanProfile(
    name="tabletop",
    min_diameter=DEFAULT_MIN_DIAMETER,
    max_diameter=80.0,
    notes=(
        "Overhead webcam over a table. Markers rarely exceed 50-60px there, so "
        "a low cap removes most false positives and speeds up the scan."
    ),
)

PRINT = ScanProfile(
    name="print",
    min_diameter=32.0,
    max_diameter=1024.0,
    notes="Flatbed scans and print proofs where a marker can fill much of the page.",
)

PROFILES: Dict[str, ScanProfile] = {p.name: p for p in (DEFAULT, TABLETOP, PRINT)}


def params_for(name: str = DEFAULT.name, **overrides: Any) -> ScanParams:
    """Build :class:`ScanParams` from a named profile plus explicit overrides."""
    try:
        profile = PROFILES[name]
    except KeyError as exc:
        raise ValueError(f"Unknown profile {name!r}; choose one of: {', '.join(sorted(PROFILES))}") from exc
    base = ScanParams(min_diameter=profile.min_diameter, max_diameter=profile.max_diameter)
    return replace(base, **overrides) if overrides else base


def as_policy_dict() -> Dict[str, object]:
    """Small policy block that can be embedded in summary outputs."""
    return {
        "profiles": {
            p.name: {"min_diameter": p.min_diameter, "max_diameter": p.max_diameter}
            for p in PROFILES.values()
        },
        "default_profile": DEFAULT.name,
    }
