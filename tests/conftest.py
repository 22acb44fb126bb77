import sys
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

# Ensure package import for tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest

from wfqsim.scheduler import WFQScheduler


@pytest.fixture
def run_schedule():
    """Run the scheduler over input lines and return the formatted output."""

    def _run(lines, **kwargs):
        scheduler = WFQScheduler.from_lines(lines, **kwargs)
        return [d.format_line() for d in scheduler.run()]

    return _run
