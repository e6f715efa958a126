import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from bfunct.config import Limits, reset_cache  # noqa: E402


@pytest.fixture(autouse=True)
def _fresh_limits():
    reset_cache()
    yield
    reset_cache()


@pytest.fixture
def small_limits():
    return Limits(tape_size=4, input_size=8, output_size=8, call_stack_size=8)
