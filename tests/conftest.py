import sys
from pathlib import Path

import pytest

project_root = Path(__file__).resolve().parents[1]
src_path = project_root / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

if "puzzlix" in sys.modules:
    for name in list(sys.modules):
        if name == "puzzlix" or name.startswith("puzzlix."):
            del sys.modules[name]


@pytest.fixture
def settings(tmp_path):
    from puzzlix.config import Settings

    return Settings(duckdb_path=tmp_path / "puzzlix.duckdb")


@pytest.fixture
def settings_provider(settings):
    def provide(**_: object):
        return settings

    return provide
