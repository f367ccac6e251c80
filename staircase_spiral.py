"""Spiral Staircase Builder.

Lays out a helical stair around a center pole from a repaired spec:
- Center pole spanning the full height
- One pie-slice tread per riser, turning in the stair direction
- Optional quarter-turn mid landing in place of one tread
- Rectangular top landing in the last tread slot

The builder only emits placements (radii, angles, heights, thickness). Turning
them into solids is spiral_helpers.py's job.

Usage:
    python staircase_spiral.py [--height 160] [--decisions interactive] [--show]
"""
import argparse
import logging
import math
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from diameter_catalog import DEFAULT_CATALOG
from repair_loop import (
    Decision,
    DecisionProvider,
    RepairOutcome,
    always_ignore,
    repair,
)
from spiral_calculator import (
    MID_LANDING_HEIGHT,
    MID_LANDING_ROTATION,
    DerivedParameters,
    Direction,
    SpiralStaircaseError,
    StaircaseSpec,
)
from validators.building_regs import ComplianceViolation, ViolationKind

logger = logging.getLogger(__name__)

# Default Configuration
DEFAULT_CONFIG = {
    "center_pole_diameter": 5.62,
    "overall_height": 144.0,
    "outside_diameter": 72.0,
    "total_rotation": 450.0,
    "direction": "clockwise",
    "tread_thickness": 0.25,
    "landing_width": 50.0,
    "arc_segments": 8,
}

SPEC_FIELDS = ("center_pole_diameter", "overall_height", "outside_diameter",
               "total_rotation", "direction")

# Display classes. `aci` is the AutoCAD colour index for CAD renderers.
TAG_STYLE = {
    "pole":        {"color": [0.45, 0.45, 0.47], "aci": 251},
    "tread":       {"color": [0.72, 0.52, 0.30], "aci": 251},
    "mid_landing": {"color": [0.80, 0.22, 0.18], "aci": 1},
    "top_landing": {"color": [0.30, 0.62, 0.32], "aci": 3},
}


class GeometryDefectError(SpiralStaircaseError):
    """Degenerate input reached the builder. Upstream checks let it through."""


class ShapeKind(str, Enum):
    CENTER_POLE = "center_pole"
    TREAD_SECTOR = "tread_sector"
    MID_LANDING_SECTOR = "mid_landing_sector"
    TOP_LANDING_PANEL = "top_landing_panel"


class ShapePlacement(BaseModel):
    """One solid to render.

    Sectors use inner/outer radius and start/end angle (degrees, counter-
    clockwise from +X). The top landing is a `length` x `width` rectangle
    with one long edge on the ray at `start_angle` from the pole axis, and
    extends sideways in the `turn` sense. Every shape is extruded upward by
    `thickness` from `z`.
    """

    kind: ShapeKind
    index: Optional[int] = None
    inner_radius: float = 0.0
    outer_radius: float = 0.0
    start_angle: float = 0.0
    end_angle: float = 0.0
    width: float = 0.0
    length: float = 0.0
    turn: int = 1
    z: float
    thickness: float
    tag: str

    @property
    def sweep(self) -> float:
        return self.end_angle - self.start_angle

    def outline(self, segments: int = 1) -> list[tuple[float, float]]:
        """Closed 2D boundary (first point not repeated).

        segments=1 gives the plain quadrilateral between the two rays;
        higher values approximate the arcs.
        """
        if self.kind is ShapeKind.CENTER_POLE:
            count = max(16, 4 * segments)
            return [_polar(self.outer_radius, 360.0 * i / count) for i in range(count)]

        if self.kind is ShapeKind.TOP_LANDING_PANEL:
            a = math.radians(self.start_angle)
            ux, uy = math.cos(a), math.sin(a)
            vx, vy = -uy * self.turn, ux * self.turn
            L, W = self.length, self.width
            return [(0.0, 0.0), (L * ux, L * uy),
                    (L * ux + W * vx, L * uy + W * vy), (W * vx, W * vy)]

        angles = [self.start_angle + self.sweep * j / segments for j in range(segments + 1)]
        inner = [_polar(self.inner_radius, a) for a in angles]
        outer = [_polar(self.outer_radius, a) for a in reversed(angles)]
        return inner + outer


def _polar(r, angle_deg):
    a = math.radians(angle_deg)
    return (r * math.cos(a), r * math.sin(a))


# ===========================================================================
# GEOMETRY
# ===========================================================================

def _check_finite(**values):
    for name, v in values.items():
        if not math.isfinite(v):
            raise GeometryDefectError(f"{name} is not finite: {v}")


def build_geometry(spec: StaircaseSpec, derived: DerivedParameters,
                   mid_landing_index: Optional[int] = None,
                   tread_thickness: float = 0.25, landing_width: float = 50.0) -> list[ShapePlacement]:
    """Ordered placements: the pole, then one shape per tread slot.

    The mid landing and the top landing take tread slots rather than adding
    to them, so the list always holds number_of_treads + 1 shapes.
    """
    if mid_landing_index is None:
        mid_landing_index = derived.mid_landing_index
    if mid_landing_index != derived.mid_landing_index:
        raise GeometryDefectError(
            f"Mid landing index {mid_landing_index} does not match the derived "
            f"parameters ({derived.mid_landing_index})")

    n = derived.number_of_treads
    if n < 2:
        raise GeometryDefectError(f"Tread count {n} reached the builder")
    if not -1 <= mid_landing_index <= n - 2:
        raise GeometryDefectError(
            f"Mid landing index {mid_landing_index} has no tread slot among {n} treads")
    _check_finite(height=spec.overall_height, riser=derived.riser_height,
                  rotation_per_tread=derived.rotation_per_tread)

    r_in = spec.center_pole_diameter / 2
    r_out = spec.outside_diameter / 2
    if r_out <= r_in:
        raise GeometryDefectError(f"Outer radius {r_out} does not clear the pole radius {r_in}")

    turn = spec.direction.sign
    regular = n - 1 - (1 if mid_landing_index >= 0 else 0)
    if regular > 0 and derived.rotation_per_tread <= 0:
        raise GeometryDefectError("Zero-width tread sector")

    placements = [ShapePlacement(
        kind=ShapeKind.CENTER_POLE,
        outer_radius=r_in,
        z=0.0,
        thickness=spec.overall_height,
        tag="pole",
    )]

    current_angle = 0.0
    top_z = spec.overall_height - tread_thickness
    for i in range(n):
        # Tread top surface sits on the riser line
        z = min(derived.riser_height * (i + 1) - tread_thickness, top_z)

        if i == n - 1:
            placements.append(ShapePlacement(
                kind=ShapeKind.TOP_LANDING_PANEL, index=i,
                start_angle=current_angle, end_angle=current_angle,
                width=landing_width, length=r_out, turn=turn,
                z=z, thickness=tread_thickness, tag="top_landing",
            ))
        elif i == mid_landing_index:
            end = current_angle + MID_LANDING_ROTATION * turn
            placements.append(ShapePlacement(
                kind=ShapeKind.MID_LANDING_SECTOR, index=i,
                inner_radius=r_in, outer_radius=r_out,
                start_angle=current_angle, end_angle=end,
                z=z, thickness=tread_thickness, tag="mid_landing",
            ))
            current_angle = end
        else:
            end = current_angle + derived.rotation_per_tread * turn
            placements.append(ShapePlacement(
                kind=ShapeKind.TREAD_SECTOR, index=i,
                inner_radius=r_in, outer_radius=r_out,
                start_angle=current_angle, end_angle=end,
                z=z, thickness=tread_thickness, tag="tread",
            ))
            current_angle = end

    logger.info(f"Built {len(placements)} placements: 1 pole, {regular} treads, "
                f"{1 if mid_landing_index >= 0 else 0} mid landing, 1 top landing")
    return placements


# ===========================================================================
# SUMMARY
# ===========================================================================

class StaircaseSummary(BaseModel):
    """Everything a caller needs to annotate the finished stair."""

    center_pole_diameter: float
    center_pole_stock: Optional[str] = None
    overall_height: float
    outside_diameter: float
    total_rotation: float
    direction: Direction
    number_of_treads: int
    riser_height: float
    tread_angle: float
    tread_clear_width: float
    walkline_radius: float
    walkline_width: float
    mid_landing: str
    ignored: list[str] = Field(default_factory=list)


def mid_landing_status(derived: DerivedParameters, ignored=()) -> str:
    if derived.has_mid_landing:
        return f"Yes at tread {derived.mid_landing_index + 1}"
    if derived.requires_mid_landing:
        declined = any(v.kind is ViolationKind.MID_LANDING_REQUIRED for v in ignored)
        if declined:
            return f"Declined (required above {MID_LANDING_HEIGHT:.0f}in)"
        return f"Missing (required above {MID_LANDING_HEIGHT:.0f}in)"
    return "No"


def summarize(spec: StaircaseSpec, derived: DerivedParameters,
              ignored: list[ComplianceViolation] = ()) -> StaircaseSummary:
    return StaircaseSummary(
        center_pole_diameter=spec.center_pole_diameter,
        center_pole_stock=DEFAULT_CATALOG.label(spec.center_pole_diameter),
        overall_height=spec.overall_height,
        outside_diameter=spec.outside_diameter,
        total_rotation=spec.total_rotation,
        direction=spec.direction,
        number_of_treads=derived.number_of_treads,
        riser_height=derived.riser_height,
        tread_angle=derived.rotation_per_tread * spec.direction.sign,
        tread_clear_width=derived.tread_clear_width,
        walkline_radius=derived.walkline_radius,
        walkline_width=derived.walkline_width,
        mid_landing=mid_landing_status(derived, ignored),
        ignored=[v.message for v in ignored],
    )


# ===========================================================================
# PIPELINE
# ===========================================================================

class StaircaseDesign(BaseModel):
    outcome: RepairOutcome
    placements: list[ShapePlacement] = Field(default_factory=list)
    summary: Optional[StaircaseSummary] = None


def spec_from_config(config) -> StaircaseSpec:
    return StaircaseSpec(**{k: config[k] for k in SPEC_FIELDS})


def design_staircase(config, decide: DecisionProvider = always_ignore,
                     snap_center_pole: bool = False) -> StaircaseDesign:
    """Repair the configured spec, then build placements and the summary.

    Placements are only built for a READY outcome; rejected and aborted
    runs come back with the outcome alone.
    """
    spec = spec_from_config(config)
    outcome = repair(spec, decide, snap_center_pole=snap_center_pole)
    if not outcome.ready:
        return StaircaseDesign(outcome=outcome)

    placements = build_geometry(
        outcome.spec, outcome.derived, outcome.mid_landing_index,
        tread_thickness=config.get("tread_thickness", DEFAULT_CONFIG["tread_thickness"]),
        landing_width=config.get("landing_width", DEFAULT_CONFIG["landing_width"]),
    )
    summary = summarize(outcome.spec, outcome.derived, outcome.ignored + outcome.advisories)
    return StaircaseDesign(outcome=outcome, placements=placements, summary=summary)


def auto_accept(violation: ComplianceViolation) -> Decision:
    """Take the first suggestion wherever there is one."""
    if violation.suggestions:
        return Decision.accept(0)
    return Decision.ignore()


def console_decider(violation: ComplianceViolation) -> Decision:
    """Ask on the terminal, in the spirit of the CAD command prompt."""
    print(f"\n{violation.message}")
    landing = violation.kind is ViolationKind.MID_LANDING_REQUIRED
    if landing:
        print(f"  Suggested: {violation.suggestions[0].label}")
        prompt = "Tread number for the landing, [Enter] for the suggestion, [I]gnore or [A]bort: "
    else:
        for i, fix in enumerate(violation.suggestions, start=1):
            print(f"  {i} - {fix.label}")
        prompt = "Suggestion number, [I]gnore or [A]bort: "

    while True:
        answer = input(prompt).strip().lower()
        if answer in ("a", "abort"):
            return Decision.abort()
        if answer in ("i", "ignore"):
            return Decision.ignore()
        if landing and answer == "":
            return Decision.accept()
        if answer.isdigit():
            k = int(answer)
            if violation.kind is ViolationKind.MID_LANDING_REQUIRED:
                return Decision.landing_at(k)
            if 1 <= k <= len(violation.suggestions):
                return Decision.accept(k - 1)
        print("  Not a valid answer.")


DECIDERS = {
    "auto": auto_accept,
    "ignore": always_ignore,
    "interactive": console_decider,
}


def _print_summary(summary: StaircaseSummary):
    print("\nSpiral Staircase Created Successfully:")
    print(f"  Center Pole Diameter: {summary.center_pole_diameter:.2f} inches"
          + (f" [{summary.center_pole_stock}]" if summary.center_pole_stock else " [custom]"))
    print(f"  Overall Height: {summary.overall_height:.2f} inches")
    print(f"  Outside Diameter: {summary.outside_diameter:.2f} inches")
    print(f"  Total Rotation: {summary.total_rotation:.2f} degrees ({summary.direction.value})")
    print(f"  Number of Treads: {summary.number_of_treads}")
    print(f"  Riser Height: {summary.riser_height:.2f} inches")
    print(f"  Tread Angle: {summary.tread_angle:.2f} degrees")
    print(f"  Clear Width: {summary.tread_clear_width:.2f} inches")
    print(f"  Walkline Width: {summary.walkline_width:.2f} inches")
    print(f"  Midlanding: {summary.mid_landing}")
    for msg in summary.ignored:
        print(f"  [!] Accepted violation: {msg}")


if __name__ == "__main__":
    from log_setup import setup_logging

    parser = argparse.ArgumentParser(description="Spiral Staircase Builder")
    parser.add_argument("--pole", type=float, default=DEFAULT_CONFIG["center_pole_diameter"])
    parser.add_argument("--height", type=float, default=DEFAULT_CONFIG["overall_height"])
    parser.add_argument("--outside", type=float, default=DEFAULT_CONFIG["outside_diameter"])
    parser.add_argument("--rotation", type=float, default=DEFAULT_CONFIG["total_rotation"])
    parser.add_argument("--direction", choices=[d.value for d in Direction],
                        default=DEFAULT_CONFIG["direction"])
    parser.add_argument("--decisions", choices=sorted(DECIDERS), default="interactive",
                        help="How violations are answered")
    parser.add_argument("--snap-pole", action="store_true",
                        help="Snap the pole to the closest stock diameter first")
    parser.add_argument("--log-level", default="INFO")
    parser.add_argument("--show", action="store_true", help="Preview in the OCP viewer")
    args = parser.parse_args()

    setup_logging(args.log_level)

    config = DEFAULT_CONFIG.copy()
    config.update({
        "center_pole_diameter": args.pole,
        "overall_height": args.height,
        "outside_diameter": args.outside,
        "total_rotation": args.rotation,
        "direction": args.direction,
    })

    try:
        design = design_staircase(config, DECIDERS[args.decisions], snap_center_pole=args.snap_pole)
    except SpiralStaircaseError as e:
        print(f"\nError: {e}")
        raise SystemExit(2)
    outcome = design.outcome
    if not outcome.ready:
        print(f"\nScript {outcome.status.value}.")
        for v in outcome.violations:
            print(f"  {v.message}")
        raise SystemExit(1)

    _print_summary(design.summary)

    if args.show:
        from ocp_vscode import show, set_port
        from spiral_helpers import build_spiral_solids

        set_port(3939)
        solids = build_spiral_solids(design.placements, arc_segments=config["arc_segments"])
        parts, names = [], []
        for cat, items in solids.items():
            for i, p in enumerate(items):
                parts.append(p)
                names.append(f"{cat}_{i+1}")
        show(*parts, names=names)
