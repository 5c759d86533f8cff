"""
Shared test configuration.

Adds src/ to sys.path so flat modules (activity_engine, reconciler, ...)
and the analytics/pipeline/routes packages import by plain name, plus a
few builders for synthetic observations.
"""

import os
import sys
from datetime import date, timedelta

import pytest

_project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
_src_dir = os.path.join(_project_root, "src")

if _src_dir not in sys.path:
    sys.path.insert(0, _src_dir)


def make_series(entity, start, counts):
    """Observations for *entity* on consecutive days from *start*."""
    from schemas import Observation

    return [
        Observation(date=start + timedelta(days=i), entity=entity, count=c)
        for i, c in enumerate(counts)
    ]


@pytest.fixture
def series_builder():
    return make_series


@pytest.fixture
def jan_2024():
    return date(2024, 1, 1)
