"""Shared fixtures for the Spiral Staircase Studio test suite."""
import sys
import os
import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from spiral_calculator import StaircaseSpec
from staircase_spiral import DEFAULT_CONFIG


@pytest.fixture
def default_config():
    """Returns a copy of the default configuration (5.62 / 144 / 72 / 450 cw)."""
    return DEFAULT_CONFIG.copy()


@pytest.fixture
def scenario_a_spec():
    """Default inputs. Clear width passes, walkline width does not."""
    return StaircaseSpec(center_pole_diameter=5.62, overall_height=144.0,
                         outside_diameter=72.0, total_rotation=450.0)


@pytest.fixture
def clean_spec():
    """Passes every check: 10in. pipe pole, 144in rise, no landing needed."""
    return StaircaseSpec(center_pole_diameter=10.75, overall_height=144.0,
                         outside_diameter=72.0, total_rotation=450.0)


@pytest.fixture
def tall_spec():
    """Passes every clearance check but needs a mid landing (160in rise, 21 treads)."""
    return StaircaseSpec(center_pole_diameter=10.75, overall_height=160.0,
                         outside_diameter=72.0, total_rotation=540.0)


@pytest.fixture
def narrow_spec():
    """3in pole in a 20in stair: clear width 7in."""
    return StaircaseSpec(center_pole_diameter=3.0, overall_height=100.0,
                         outside_diameter=20.0, total_rotation=90.0)
