"""Spiral stair helper functions for build123d.
Turns ShapePlacements into solids: the pole, tread/landing sectors and the
top landing panel, each built in place (no later transforms).
"""
import logging

from build123d import *

from staircase_spiral import ShapeKind, TAG_STYLE

CATEGORY_BY_KIND = {
    ShapeKind.CENTER_POLE: "pole",
    ShapeKind.TREAD_SECTOR: "treads",
    ShapeKind.MID_LANDING_SECTOR: "mid_landing",
    ShapeKind.TOP_LANDING_PANEL: "top_landing",
}
CATEGORY_ORDER = ["pole", "treads", "mid_landing", "top_landing"]

logger = logging.getLogger(__name__)


def make_center_pole(placement):
    """Solid cylinder standing on z, `thickness` tall."""
    with BuildPart() as bp:
        with Locations((0, 0, placement.z)):
            Cylinder(radius=placement.outer_radius, height=placement.thickness,
                     align=(Align.CENTER, Align.CENTER, Align.MIN))
    return bp.part


def _extrude_outline(pts, z, thickness):
    with BuildPart() as bp:
        with BuildSketch(Plane.XY.offset(z)):
            with BuildLine():
                Polyline(list(pts) + [pts[0]])
            make_face()
        extrude(amount=thickness)
    return bp.part


def make_sector(placement, arc_segments: int = 8):
    """Tread or mid-landing slab between two radii and two rays.

    Args:
        arc_segments: Straight segments per arc. 1 gives the plain
                      quadrilateral, more follow the pole and outer rim.
    """
    return _extrude_outline(placement.outline(arc_segments), placement.z, placement.thickness)


def make_top_landing(placement):
    return _extrude_outline(placement.outline(), placement.z, placement.thickness)


def make_solid(placement, arc_segments: int = 8):
    if placement.kind is ShapeKind.CENTER_POLE:
        return make_center_pole(placement)
    if placement.kind is ShapeKind.TOP_LANDING_PANEL:
        return make_top_landing(placement)
    return make_sector(placement, arc_segments)


def build_spiral_solids(placements, arc_segments: int = 8):
    """Build every placement, grouped by category in display order."""
    elements = {cat: [] for cat in CATEGORY_ORDER}
    for p in placements:
        part = make_solid(p, arc_segments)
        part.color = Color(*TAG_STYLE[p.tag]["color"])
        part.label = f"{p.tag}_{p.index}" if p.index is not None else p.tag
        elements[CATEGORY_BY_KIND[p.kind]].append(part)

    logger.info(", ".join(f"{len(elements[cat])} {cat}" for cat in CATEGORY_ORDER))
    return elements
