"""Pytest configuration for the seqbind test suite."""

import json
import sys
from pathlib import Path

import pytest

# Add the repository root to path for seqbind imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from seqbind.backend.python import bind_callee, bind_caller  # noqa: E402
from seqbind.frontend import analyze  # noqa: E402
from seqbind.seq import DispatchTable, Loopback, ProxyCache, RefTable  # noqa: E402
from seqbind.serialize import package_from_dict  # noqa: E402

import testpkg_impl  # noqa: E402

TESTDATA_DIR = Path(__file__).parent / "testdata"


def load_model(name: str) -> dict:
    """Declaration model dict from testdata/<name>.json."""
    return json.loads((TESTDATA_DIR / (name + ".json")).read_text())


@pytest.fixture
def testpkg_dict() -> dict:
    return load_model("testpkg")


@pytest.fixture
def testpkg(testpkg_dict):
    return package_from_dict(testpkg_dict)


@pytest.fixture
def binding(testpkg):
    return analyze(testpkg)


@pytest.fixture
def impl():
    testpkg_impl.calls.clear()
    return testpkg_impl


class Live:
    """Both halves of testpkg wired over one Loopback."""

    def __init__(self, binding, impl) -> None:
        self.table = DispatchTable()
        self.refs = RefTable()
        self.proxies = ProxyCache()
        bind_callee(binding, impl, self.table, self.refs)
        self.transport = Loopback(self.table)
        self.api = bind_caller(binding, self.transport, self.proxies)


@pytest.fixture
def live(binding, impl) -> Live:
    return Live(binding, impl)
