from __future__ import annotations

from datetime import datetime

import pytest

from fakes import build_world


@pytest.fixture
def fixed_now() -> datetime:
    # a Monday morning, before the 09:00 leave cutoff
    return datetime(2026, 3, 2, 8, 0, 0)


@pytest.fixture
def world():
    return build_world()
