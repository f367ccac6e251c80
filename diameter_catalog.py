"""Stock center pole diameters.

Spiral stair poles are cut from standard tube and pipe stock, so any pole
diameter the studio proposes should land on one of these sizes.
"""

# (diameter in inches, label) in ascending order
STOCK_DIAMETERS = [
    (3.0,    "3 (tube)"),
    (3.5,    "3.5 (tube)"),
    (4.0,    "4 (tube)"),
    (4.5,    "4.5 (tube)"),
    (5.0,    "5 (tube)"),
    (5.56,   "5.56 (tube)"),
    (6.0,    "6 (tube)"),
    (6.625,  "6.625 (6in. pipe)"),
    (8.0,    "8 (tube)"),
    (8.625,  "8.625 (8in. pipe)"),
    (10.75,  "10.75 (10in. pipe)"),
    (12.75,  "12.75 (12in. pipe)"),
]

MATCH_TOLERANCE = 0.001


class DiameterCatalog:
    """Ordered lookup over a fixed table of stock diameters."""

    def __init__(self, entries=None):
        self._entries = sorted(entries or STOCK_DIAMETERS, key=lambda e: e[0])

    def entries(self) -> list[tuple[float, str]]:
        return list(self._entries)

    def diameters(self) -> list[float]:
        return [d for d, _ in self._entries]

    def nearest(self, value: float) -> float:
        """Stock diameter closest to `value`.

        Ties go to the smaller diameter: min() keeps the first minimum it
        meets and the table is walked in ascending order.
        """
        return min(self.diameters(), key=lambda d: abs(d - value))

    def ceiling(self, value: float) -> float:
        """Smallest stock diameter >= `value`, or the largest one if none is.

        No match tolerance here: a size even slightly under `value` is too small.
        """
        for d in self.diameters():
            if d >= value:
                return d
        return self.diameters()[-1]

    def is_stock(self, value: float) -> bool:
        return any(abs(d - value) < MATCH_TOLERANCE for d in self.diameters())

    def label(self, value: float):
        """Human-readable label for a stock diameter, None for custom sizes."""
        for d, text in self._entries:
            if abs(d - value) < MATCH_TOLERANCE:
                return text
        return None


DEFAULT_CATALOG = DiameterCatalog()
