"""Pytest configuration and shared fixtures for the pagestruct test suite.

This module registers the Hypothesis profiles and test markers and exposes
the synthetic pages from :mod:`utils` as fixtures.
"""

import os

import pytest
from hypothesis import Phase, Verbosity, settings
from utils import end_to_end_page, homogeneous_page, two_column_page

from pagestruct.models import PositionedLine, Viewport

# Register custom Hypothesis profiles
settings.register_profile("ci", max_examples=100, verbosity=Verbosity.verbose)
settings.register_profile("dev", max_examples=20)
settings.register_profile(
    "debug", max_examples=10, verbosity=Verbosity.verbose, phases=[Phase.explicit, Phase.reuse, Phase.generate]
)

# Load profile from environment or use default
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "dev"))


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests - fast, isolated component tests")
    config.addinivalue_line("markers", "integration: Integration tests - component interaction tests")
    config.addinivalue_line("markers", "slow: Slow tests that may take several seconds")


@pytest.fixture
def end_to_end_lines() -> list[PositionedLine]:
    """Provide the five-line title/intro/conclusion page."""
    return end_to_end_page()


@pytest.fixture
def homogeneous_lines() -> list[PositionedLine]:
    """Provide twenty evenly spaced body lines."""
    return homogeneous_page()


@pytest.fixture
def two_column_lines() -> list[PositionedLine]:
    """Provide forty lines in two columns."""
    return two_column_page()


@pytest.fixture
def tall_viewport() -> Viewport:
    """Provide an 800x1000 page."""
    return Viewport(width=800, height=1000)
