import itertools

import pytest

def pytest_addoption(parser):
    parser.addoption(
        "--runslow", action="store_true", default=False, help="run slow tests"
    )

def pytest_configure(config):
    config.addinivalue_line("markers", "slow: mark test as slow to run")

def pytest_collection_modifyitems(config, items):
    skip_slow = pytest.mark.skip(reason="need --runslow option to run")
    if not config.getoption("--runslow"):
        for item in items:
            if "slow" in item.keywords:
                item.add_marker(skip_slow)

@pytest.fixture
def trace_file(tmp_path):
    """Factory writing trace contents to a fresh file, returning its path."""
    counter = itertools.count()

    def _trace_file(content):
        path = tmp_path / f"trace{next(counter)}.txt"
        if isinstance(content, (list, tuple)):
            content = "".join(f"{line}\n" for line in content)
        path.write_text(content)
        return path

    return _trace_file
