from pathlib import Path

import pytest

tomllib = pytest.importorskip("tomllib")

PYPROJECT = Path(__file__).resolve().parent.parent / "pyproject.toml"


def test_pymongo_declared_without_extras():
    with open(PYPROJECT, "rb") as f:
        dependencies = tomllib.load(f)["project"]["dependencies"]

    assert "pymongo" in dependencies
    assert not any(dep.startswith("pymongo[") for dep in dependencies)
