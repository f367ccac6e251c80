"""IRC R311.7.10.1 compliance checks for spiral stairs.

Checks run in a fixed order. The first three are absolute input ranges and
are fatal; the rest are code clearances that come with suggested fixes the
repair loop can offer.
"""
import math
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from diameter_catalog import DEFAULT_CATALOG
from spiral_calculator import (
    WALKLINE_OFFSET,
    NOSING_ALLOWANCE,
    MID_LANDING_HEIGHT,
    DerivedParameters,
    StaircaseSpec,
    derive,
    tread_clear_width,
)

# Input ranges
MIN_HEIGHT = 20.0
MAX_HEIGHT = 300.0
MIN_OUTSIDE_OVER_POLE = 10.0   # outside dia must be at least pole dia + 10
MAX_OUTSIDE_DIAMETER = 120.0
MIN_ROTATION = 90.0
MAX_ROTATION = 1080.0

# Clearances
MIN_CLEAR_WIDTH = 26.0
MAX_WALKLINE_RADIUS = 24.5
MIN_WALKLINE_WIDTH = 6.75

# Float slack on clearance minimums
CLEARANCE_TOLERANCE = 1e-9

MID_LANDING_FIELD = "mid_landing_tread"


class ViolationKind(str, Enum):
    HEIGHT_OUT_OF_RANGE = "height_out_of_range"
    OUTSIDE_DIAMETER_OUT_OF_RANGE = "outside_diameter_out_of_range"
    ROTATION_OUT_OF_RANGE = "rotation_out_of_range"
    CLEAR_WIDTH_TOO_NARROW = "clear_width_too_narrow"
    WALKLINE_RADIUS_EXCEEDED = "walkline_radius_exceeded"
    WALKLINE_WIDTH_TOO_NARROW = "walkline_width_too_narrow"
    MID_LANDING_REQUIRED = "mid_landing_required"


class SuggestedFix(BaseModel):
    """One corrective value: `field` names a StaircaseSpec input, or
    `mid_landing_tread` for the 1-based landing position."""

    field: str
    value: float
    label: str


class ComplianceViolation(BaseModel):
    kind: ViolationKind
    message: str
    fatal: bool = False
    suggestions: list[SuggestedFix] = Field(default_factory=list)


class ValidationResult(BaseModel):
    ok: bool
    derived: Optional[DerivedParameters] = None
    violations: list[ComplianceViolation] = Field(default_factory=list)


# ===========================================================================
# FATAL RANGE CHECKS
# ===========================================================================

def check_height(spec: StaircaseSpec, derived: DerivedParameters):
    h = spec.overall_height
    if not (MIN_HEIGHT <= h <= MAX_HEIGHT):
        return ComplianceViolation(
            kind=ViolationKind.HEIGHT_OUT_OF_RANGE,
            message=f"Overall height {h:.2f}in is outside the allowed range [{MIN_HEIGHT:.0f}, {MAX_HEIGHT:.0f}]",
            fatal=True,
        )
    return None


def check_outside_diameter(spec: StaircaseSpec, derived: DerivedParameters):
    lo = spec.center_pole_diameter + MIN_OUTSIDE_OVER_POLE
    od = spec.outside_diameter
    if not (lo <= od <= MAX_OUTSIDE_DIAMETER):
        return ComplianceViolation(
            kind=ViolationKind.OUTSIDE_DIAMETER_OUT_OF_RANGE,
            message=f"Outside diameter {od:.2f}in is outside the allowed range [{lo:.2f}, {MAX_OUTSIDE_DIAMETER:.0f}]",
            fatal=True,
        )
    return None


def check_rotation(spec: StaircaseSpec, derived: DerivedParameters):
    rot = spec.total_rotation
    if not (MIN_ROTATION <= rot <= MAX_ROTATION):
        return ComplianceViolation(
            kind=ViolationKind.ROTATION_OUT_OF_RANGE,
            message=f"Total rotation {rot:.2f}° is outside the allowed range [{MIN_ROTATION:.0f}, {MAX_ROTATION:.0f}]",
            fatal=True,
        )
    return None


# ===========================================================================
# CLEARANCE CHECKS (repairable)
# ===========================================================================

def check_clear_width(spec: StaircaseSpec, derived: DerivedParameters):
    width = derived.tread_clear_width
    if width < MIN_CLEAR_WIDTH - CLEARANCE_TOLERANCE:
        # Rounded up to the hundredth so the new diameter never lands just short
        fix = math.ceil(2 * (MIN_CLEAR_WIDTH + spec.center_pole_diameter / 2 + NOSING_ALLOWANCE) * 100) / 100
        suggestions = []
        if fix <= MAX_OUTSIDE_DIAMETER:
            suggestions.append(SuggestedFix(field="outside_diameter", value=fix,
                                            label=f"Outside diameter {fix:.2f}in"))
        return ComplianceViolation(
            kind=ViolationKind.CLEAR_WIDTH_TOO_NARROW,
            message=(f"Clear width {width:.2f}in is less than the minimum of {MIN_CLEAR_WIDTH:.0f}in. "
                     f"Suggested outside diameter: {fix:.2f}in"),
            suggestions=suggestions,
        )
    return None


def check_walkline_radius(spec: StaircaseSpec, derived: DerivedParameters):
    radius = derived.walkline_radius
    if radius > MAX_WALKLINE_RADIUS:
        fix = 2 * (MAX_WALKLINE_RADIUS - WALKLINE_OFFSET)
        return ComplianceViolation(
            kind=ViolationKind.WALKLINE_RADIUS_EXCEEDED,
            message=(f"Walkline radius {radius:.2f}in exceeds the maximum of {MAX_WALKLINE_RADIUS}in. "
                     f"Suggested center pole diameter: {fix:.2f}in"),
            suggestions=[SuggestedFix(field="center_pole_diameter", value=fix,
                                      label=f"Center pole diameter {fix:.2f}in")],
        )
    return None


def check_walkline_width(spec: StaircaseSpec, derived: DerivedParameters, catalog=DEFAULT_CATALOG):
    """Walkline width needs either a fatter pole or more total rotation.

    (a) the pole whose walkline radius gives 6.75in at the current tread
        angle, snapped up to stock;
    (b) the rotation that gives every tread but the first 6.75in at the
        current walkline radius, offered only while it stays in range.
    """
    width = derived.walkline_width
    if width >= MIN_WALKLINE_WIDTH - CLEARANCE_TOLERANCE:
        return None

    n = derived.number_of_treads
    suggestions = []

    if derived.rotation_per_tread > 0:
        min_pole = (MIN_WALKLINE_WIDTH * 180 / math.pi / abs(derived.rotation_per_tread) - WALKLINE_OFFSET) * 2
        pole = catalog.ceiling(min_pole)
        # Earlier checks are not revisited, so the new pole must keep the clear width
        keeps_clear = tread_clear_width(spec.outside_diameter, pole) >= MIN_CLEAR_WIDTH
        if pole > spec.center_pole_diameter and keeps_clear:
            suggestions.append(SuggestedFix(
                field="center_pole_diameter", value=pole,
                label=f"Increase center pole diameter to {catalog.label(pole) or f'{pole:.2f}'}"))

    min_rotation = 90 + (MIN_WALKLINE_WIDTH / derived.walkline_radius) * (180 / math.pi) * (n - 1)
    if min_rotation <= MAX_ROTATION:
        suggestions.append(SuggestedFix(
            field="total_rotation", value=min_rotation,
            label=f"Increase total rotation to {min_rotation:.2f}°"))

    return ComplianceViolation(
        kind=ViolationKind.WALKLINE_WIDTH_TOO_NARROW,
        message=f"Walkline width {width:.2f}in is less than the minimum of {MIN_WALKLINE_WIDTH}in",
        suggestions=suggestions,
    )


def check_mid_landing(spec: StaircaseSpec, derived: DerivedParameters):
    """Not a defect in the inputs: tall stairs must pick a landing position."""
    if not derived.requires_mid_landing or derived.has_mid_landing:
        return None
    n = derived.number_of_treads
    middle = math.ceil(n / 2)
    return ComplianceViolation(
        kind=ViolationKind.MID_LANDING_REQUIRED,
        message=(f"Overall height {spec.overall_height:.2f}in exceeds {MID_LANDING_HEIGHT:.0f}in. "
                 f"A mid landing is required (tread 1 to {n - 1}, tread {n} holds the top landing)"),
        suggestions=[SuggestedFix(field=MID_LANDING_FIELD, value=middle,
                                  label=f"Mid landing at tread {middle}")],
    )


CHECKS = {
    ViolationKind.HEIGHT_OUT_OF_RANGE: check_height,
    ViolationKind.OUTSIDE_DIAMETER_OUT_OF_RANGE: check_outside_diameter,
    ViolationKind.ROTATION_OUT_OF_RANGE: check_rotation,
    ViolationKind.CLEAR_WIDTH_TOO_NARROW: check_clear_width,
    ViolationKind.WALKLINE_RADIUS_EXCEEDED: check_walkline_radius,
    ViolationKind.WALKLINE_WIDTH_TOO_NARROW: check_walkline_width,
    ViolationKind.MID_LANDING_REQUIRED: check_mid_landing,
}

FATAL_CHECK_ORDER = [
    ViolationKind.HEIGHT_OUT_OF_RANGE,
    ViolationKind.OUTSIDE_DIAMETER_OUT_OF_RANGE,
    ViolationKind.ROTATION_OUT_OF_RANGE,
]

# Order matters: walkline width is judged on a pole that earlier fixes may
# already have changed.
SOFT_CHECK_ORDER = [
    ViolationKind.CLEAR_WIDTH_TOO_NARROW,
    ViolationKind.WALKLINE_RADIUS_EXCEEDED,
    ViolationKind.WALKLINE_WIDTH_TOO_NARROW,
]


def run_check(kind: ViolationKind, spec: StaircaseSpec, derived: DerivedParameters):
    return CHECKS[kind](spec, derived)


def check_fatal(spec: StaircaseSpec, derived: DerivedParameters) -> list[ComplianceViolation]:
    """Every failing absolute range check, in order."""
    issues = []
    for kind in FATAL_CHECK_ORDER:
        v = run_check(kind, spec, derived)
        if v is not None:
            issues.append(v)
    return issues


def check_soft(spec: StaircaseSpec, derived: DerivedParameters) -> list[ComplianceViolation]:
    """Clearance violations as they stand for this spec, without repair."""
    issues = []
    for kind in SOFT_CHECK_ORDER + [ViolationKind.MID_LANDING_REQUIRED]:
        v = run_check(kind, spec, derived)
        if v is not None:
            issues.append(v)
    return issues


def validate(spec: StaircaseSpec) -> ValidationResult:
    """First-pass gate: derived values, or the full list of fatal violations."""
    derived = derive(spec)
    issues = check_fatal(spec, derived)
    if issues:
        return ValidationResult(ok=False, violations=issues)
    return ValidationResult(ok=True, derived=derived)
