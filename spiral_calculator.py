"""Spiral staircase calculator.

Turns the four design inputs (center pole diameter, overall height, outside
diameter, total rotation) plus a rotation direction into the derived counts,
angles and radii the validator and the geometry builder work from.

All functions are pure. Lengths are inches, angles are degrees.
"""
import math
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# IRC R311.7.10.1 spiral stair limits used by the derivation
MAX_RISER_HEIGHT = 7.75
MIN_TREADS = 2
NOSING_ALLOWANCE = 1.5        # tread nosing / rail allowance off the clear width
WALKLINE_OFFSET = 12.0        # walkline sits 12in out from the pole face
MID_LANDING_HEIGHT = 151.0    # max vertical rise between landings
MID_LANDING_ROTATION = 90.0   # a mid landing always turns a quarter


class SpiralStaircaseError(Exception):
    """Base class for internal staircase faults."""


class InfeasibleConfigurationError(SpiralStaircaseError):
    """Raised when derived values cannot exist for the given inputs."""


class Direction(str, Enum):
    CLOCKWISE = "clockwise"
    COUNTER_CLOCKWISE = "counter_clockwise"

    @property
    def sign(self) -> int:
        # Plan view with angles measured counter-clockwise from +X
        return -1 if self is Direction.CLOCKWISE else 1


class StaircaseSpec(BaseModel):
    """The design inputs. Frozen: repairs produce a new spec."""

    model_config = ConfigDict(frozen=True)

    center_pole_diameter: float = Field(..., gt=0, allow_inf_nan=False)
    overall_height: float = Field(..., gt=0, allow_inf_nan=False)
    outside_diameter: float = Field(..., gt=0, allow_inf_nan=False)
    total_rotation: float = Field(..., gt=0, allow_inf_nan=False)
    direction: Direction = Direction.CLOCKWISE

    def with_value(self, field: str, value: float) -> "StaircaseSpec":
        """Copy of this spec with one input replaced (re-validated)."""
        data = self.model_dump()
        data[field] = value
        return StaircaseSpec(**data)


class DerivedParameters(BaseModel):
    model_config = ConfigDict(frozen=True)

    number_of_treads: int
    riser_height: float
    rotation_per_tread: float
    tread_clear_width: float
    walkline_radius: float
    walkline_width: float
    requires_mid_landing: bool
    mid_landing_index: int = -1

    @property
    def has_mid_landing(self) -> bool:
        return self.mid_landing_index >= 0


# ---------------------------------------------------------------------------
# Derivations
# ---------------------------------------------------------------------------

def number_of_treads(height: float) -> int:
    """Fewest treads that keep every riser at or below 7.75in (never below 2)."""
    return max(MIN_TREADS, math.ceil(height / MAX_RISER_HEIGHT))


def riser_height(height: float, n: int) -> float:
    return height / n


def rotation_per_tread(total_rotation: float, n: int) -> float:
    return total_rotation / n


def tread_clear_width(outside_dia: float, center_dia: float) -> float:
    return outside_dia / 2 - center_dia / 2 - NOSING_ALLOWANCE


def walkline_radius(center_dia: float) -> float:
    return center_dia / 2 + WALKLINE_OFFSET


def walkline_width(radius: float, rotation_deg: float) -> float:
    """Arc length one tread sweeps at the walkline radius."""
    return radius * abs(rotation_deg) * math.pi / 180


def requires_mid_landing(height: float) -> bool:
    return height > MID_LANDING_HEIGHT


def mid_landing_rotation_per_tread(total_rotation: float, n: int) -> float:
    """Per-tread rotation once a mid landing takes 90 degrees and one slot.

    The top landing owns the last slot and the mid landing another, so the
    residual rotation is split over n - 2 treads.
    """
    remaining = n - 2
    if remaining <= 0:
        raise InfeasibleConfigurationError(
            f"A mid landing needs at least 3 treads, got {n}")
    return abs(total_rotation - MID_LANDING_ROTATION) / remaining


def derive(spec: StaircaseSpec, mid_landing_index: int = -1) -> DerivedParameters:
    """Compute every derived value from the current spec."""
    n = number_of_treads(spec.overall_height)
    # Slot n - 1 always holds the top landing
    if not -1 <= mid_landing_index <= n - 2:
        raise InfeasibleConfigurationError(
            f"Mid landing index {mid_landing_index} is outside 0..{n - 2} for {n} treads")
    if mid_landing_index >= 0:
        per_tread = mid_landing_rotation_per_tread(spec.total_rotation, n)
    else:
        per_tread = rotation_per_tread(spec.total_rotation, n)
    radius = walkline_radius(spec.center_pole_diameter)

    return DerivedParameters(
        number_of_treads=n,
        riser_height=riser_height(spec.overall_height, n),
        rotation_per_tread=per_tread,
        tread_clear_width=tread_clear_width(spec.outside_diameter, spec.center_pole_diameter),
        walkline_radius=radius,
        walkline_width=walkline_width(radius, per_tread),
        requires_mid_landing=requires_mid_landing(spec.overall_height),
        mid_landing_index=mid_landing_index,
    )
