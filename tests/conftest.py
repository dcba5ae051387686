"""Pytest configuration and shared fixtures."""

import pytest
import sys
from pathlib import Path

# Add project root to path for imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from tests.fixtures.test_inputs import (
    get_flat_rent_inputs,
    get_refinance_inputs,
    get_second_lien_inputs,
    get_zero_rate_inputs,
    get_basic_defaults,
    get_advanced_defaults,
)


@pytest.fixture
def flat_rent_inputs():
    """Flat-rent end-to-end case with no growth and no expenses."""
    return get_flat_rent_inputs()


@pytest.fixture
def refinance_inputs():
    """Flat-rent case refinanced at year 5."""
    return get_refinance_inputs()


@pytest.fixture
def second_lien_inputs():
    """Flat-rent case with a second lien."""
    return get_second_lien_inputs()


@pytest.fixture
def zero_rate_inputs():
    """1,200 zero-rate loan over 24 months."""
    return get_zero_rate_inputs()


@pytest.fixture
def basic_inputs():
    """Calculator basic-mode defaults."""
    return get_basic_defaults()


@pytest.fixture
def advanced_inputs():
    """Calculator advanced-mode defaults."""
    return get_advanced_defaults()
