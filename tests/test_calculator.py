"""Unit tests for the diameter catalog and the derivation engine."""
import math
import pytest
from pydantic import ValidationError

from diameter_catalog import DEFAULT_CATALOG, STOCK_DIAMETERS, DiameterCatalog
from spiral_calculator import (
    MAX_RISER_HEIGHT,
    Direction,
    InfeasibleConfigurationError,
    StaircaseSpec,
    derive,
    mid_landing_rotation_per_tread,
    number_of_treads,
    requires_mid_landing,
    tread_clear_width,
    walkline_radius,
    walkline_width,
)


# ===========================================================================
# DIAMETER CATALOG
# ===========================================================================

class TestDiameterCatalog:
    def test_diameters_ascending(self):
        ds = DEFAULT_CATALOG.diameters()
        assert ds == sorted(ds)
        assert len(ds) == len(STOCK_DIAMETERS)

    def test_nearest_to_default_pole(self):
        """5.62 is not stock; 5.56 tube is the closest size."""
        assert DEFAULT_CATALOG.nearest(5.62) == 5.56

    def test_nearest_exact_match(self):
        assert DEFAULT_CATALOG.nearest(6.625) == 6.625

    def test_nearest_tie_prefers_smaller(self):
        """3.25 is equidistant from 3 and 3.5."""
        assert DEFAULT_CATALOG.nearest(3.25) == 3.0

    def test_nearest_outside_table(self):
        assert DEFAULT_CATALOG.nearest(0.5) == 3.0
        assert DEFAULT_CATALOG.nearest(40.0) == 12.75

    def test_ceiling(self):
        assert DEFAULT_CATALOG.ceiling(8.66) == 10.75
        assert DEFAULT_CATALOG.ceiling(6.0) == 6.0
        assert DEFAULT_CATALOG.ceiling(1.0) == 3.0

    def test_ceiling_never_rounds_down(self):
        """A minimum just over 10.75 needs the next size up."""
        assert DEFAULT_CATALOG.ceiling(10.7505) == 12.75
        assert DEFAULT_CATALOG.ceiling(10.75) == 10.75

    def test_ceiling_beyond_largest_returns_largest(self):
        assert DEFAULT_CATALOG.ceiling(100.0) == 12.75

    def test_labels(self):
        assert DEFAULT_CATALOG.label(6.625) == "6.625 (6in. pipe)"
        assert DEFAULT_CATALOG.label(5.62) is None
        assert DEFAULT_CATALOG.is_stock(8.625)
        assert not DEFAULT_CATALOG.is_stock(8.6)

    def test_custom_table_is_sorted(self):
        cat = DiameterCatalog([(4.0, "b"), (2.0, "a")])
        assert cat.diameters() == [2.0, 4.0]
        assert cat.nearest(2.9) == 2.0


# ===========================================================================
# SPEC MODEL
# ===========================================================================

class TestStaircaseSpec:
    def test_default_direction_is_clockwise(self, scenario_a_spec):
        assert scenario_a_spec.direction is Direction.CLOCKWISE

    def test_direction_sign(self):
        assert Direction.CLOCKWISE.sign == -1
        assert Direction.COUNTER_CLOCKWISE.sign == 1

    def test_frozen(self, scenario_a_spec):
        with pytest.raises(ValidationError):
            scenario_a_spec.overall_height = 100.0

    def test_with_value_returns_new_spec(self, scenario_a_spec):
        changed = scenario_a_spec.with_value("outside_diameter", 80.0)
        assert changed.outside_diameter == 80.0
        assert scenario_a_spec.outside_diameter == 72.0
        assert changed.direction is scenario_a_spec.direction

    @pytest.mark.parametrize("field", ["center_pole_diameter", "overall_height",
                                       "outside_diameter", "total_rotation"])
    def test_rejects_non_positive(self, scenario_a_spec, field):
        with pytest.raises(ValidationError):
            scenario_a_spec.with_value(field, 0.0)

    def test_rejects_nan(self, scenario_a_spec):
        with pytest.raises(ValidationError):
            scenario_a_spec.with_value("overall_height", float("nan"))


# ===========================================================================
# DERIVATIONS
# ===========================================================================

class TestDerivations:
    def test_scenario_a(self, scenario_a_spec):
        """5.62 / 144 / 72 / 450 clockwise."""
        d = derive(scenario_a_spec)
        assert d.number_of_treads == 19
        assert d.riser_height == pytest.approx(7.5789, abs=1e-4)
        assert d.tread_clear_width == pytest.approx(31.69)
        assert d.rotation_per_tread == pytest.approx(450 / 19)
        assert d.walkline_radius == pytest.approx(14.81)
        assert d.walkline_width == pytest.approx(6.122, abs=1e-3)
        assert not d.requires_mid_landing
        assert not d.has_mid_landing

    def test_scenario_c_clear_width(self, narrow_spec):
        assert derive(narrow_spec).tread_clear_width == pytest.approx(7.0)

    def test_tread_count_keeps_riser_in_bound(self):
        """For every height in range the count is the fewest legal treads."""
        h = 20.0
        while h <= 300.0:
            n = number_of_treads(h)
            assert n == max(2, math.ceil(h / MAX_RISER_HEIGHT))
            assert h / n <= MAX_RISER_HEIGHT + 1e-9
            if n > 2:
                assert h / (n - 1) > MAX_RISER_HEIGHT
            h += 0.25

    def test_minimum_two_treads(self):
        assert number_of_treads(5.0) == 2

    def test_clear_width_monotonic_in_outside_diameter(self):
        widths = [tread_clear_width(od, 5.62) for od in range(20, 121, 5)]
        assert widths == sorted(widths)
        assert len(set(widths)) == len(widths)

    def test_walkline_radius_offsets_from_pole_face(self):
        assert walkline_radius(10.75) == pytest.approx(17.375)

    def test_walkline_width_is_arc_length(self):
        assert walkline_width(12.0, 90.0) == pytest.approx(6 * math.pi)
        assert walkline_width(12.0, -90.0) == pytest.approx(6 * math.pi)

    def test_mid_landing_threshold(self):
        assert not requires_mid_landing(151.0)
        assert requires_mid_landing(151.01)
        assert requires_mid_landing(160.0)

    def test_mid_landing_rotation(self):
        """Landing takes 90 degrees and a slot; the rest spreads over n - 2."""
        assert mid_landing_rotation_per_tread(540.0, 21) == pytest.approx(450 / 19)

    def test_mid_landing_rotation_needs_three_treads(self):
        with pytest.raises(InfeasibleConfigurationError):
            mid_landing_rotation_per_tread(450.0, 2)

    def test_derive_with_landing(self, tall_spec):
        d = derive(tall_spec, mid_landing_index=10)
        assert d.number_of_treads == 21
        assert d.requires_mid_landing
        assert d.has_mid_landing
        assert d.rotation_per_tread == pytest.approx(450 / 19)

    def test_derive_is_pure(self, scenario_a_spec):
        assert derive(scenario_a_spec) == derive(scenario_a_spec)

    @pytest.mark.parametrize("index", [20, 30, -2])
    def test_landing_index_outside_tread_slots(self, tall_spec, index):
        """21 treads: index 20 is the top landing slot, 30 does not exist."""
        with pytest.raises(InfeasibleConfigurationError):
            derive(tall_spec, mid_landing_index=index)

    def test_last_landing_slot(self, tall_spec):
        assert derive(tall_spec, mid_landing_index=19).has_mid_landing
