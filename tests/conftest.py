"""Global pytest configuration for streamcloud.

Ensures the ``src`` tree is importable regardless of whether the package was
installed, and provides the fixtures shared by the model, solver and
controller tests.
"""

import itertools
import sys
from pathlib import Path

import pytest

# Add the src directory to the Python path so imports can work correctly
project_root = Path(__file__).parent.parent
src_dir = project_root / 'src'

if str(src_dir) not in sys.path:
    sys.path.insert(0, str(src_dir))

from streamcloud.model.frequency import WordFrequencyModel  # noqa: E402
from streamcloud.model.graph import create_root_node  # noqa: E402
from streamcloud.solvers.layout import Diagram  # noqa: E402


@pytest.fixture
def logical_clock():
    """A clock that ticks by one on every call, so every update has a distinct timestamp."""
    return itertools.count().__next__


@pytest.fixture
def diagram():
    return Diagram(deterministic=True)


@pytest.fixture
def root():
    return create_root_node()


@pytest.fixture
def make_model(diagram, root, logical_clock):
    """Factory for word models sharing the deterministic diagram and root."""

    def _make(**kwargs):
        kwargs.setdefault("clock", logical_clock)
        return WordFrequencyModel(diagram=diagram, root=root, **kwargs)

    return _make
