import os

# plots are drawn without a display
os.environ.setdefault('MPLBACKEND', 'Agg')

import pytest

import calculator
from calculator import ProbabilityCache


@pytest.fixture
def cache() -> ProbabilityCache:
    return ProbabilityCache()


@pytest.fixture
def verbose():
    calculator.PRINT_CALCULATIONS[0] = True
    yield
    calculator.PRINT_CALCULATIONS[0] = False
