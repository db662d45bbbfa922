import pytest

from vdfsgen.reporting import SilentReporter, set_reporter, set_verbosity


@pytest.fixture(autouse=True)
def _quiet_reporter():
    set_reporter(SilentReporter())
    set_verbosity(0)
    yield
    set_reporter(SilentReporter())
    set_verbosity(0)
