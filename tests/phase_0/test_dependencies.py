"""Keep requirements/*.txt and pyproject.toml declaring the same packages."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Dict, List

import pytest
import tomllib

REPO_ROOT = Path(__file__).resolve().parents[2]
REQUIREMENTS_DIR = REPO_ROOT / "requirements"
_INCLUDE_LINE = re.compile(r"^-r\s+(?P<target>\S+)$")


def _project_table() -> Dict[str, object]:
    with (REPO_ROOT / "pyproject.toml").open("rb") as handle:
        return tomllib.load(handle)["project"]


def _pins(name: str) -> List[str]:
    """Requirement specifiers declared directly in ``requirements/<name>``."""

    pins: List[str] = []
    for raw in (REQUIREMENTS_DIR / name).read_text(encoding="utf-8").splitlines():
        line = raw.split("#", 1)[0].strip()
        if line and not _INCLUDE_LINE.match(line):
            pins.append(line)
    return pins


def test_base_requirements_mirror_runtime_dependencies() -> None:
    assert sorted(_pins("base.txt")) == sorted(_project_table()["dependencies"])


def test_dev_requirements_extend_base_with_dev_extra() -> None:
    first_line = (REQUIREMENTS_DIR / "dev.txt").read_text(encoding="utf-8").splitlines()[0]
    match = _INCLUDE_LINE.match(first_line.strip())

    assert match is not None and match.group("target") == "base.txt"
    assert sorted(_pins("dev.txt")) == sorted(_project_table()["optional-dependencies"]["dev"])


@pytest.mark.parametrize("distribution", ["numpy", "pydantic", "PyYAML", "typing_extensions"])
def test_runtime_stack_is_declared(distribution: str) -> None:
    names = [re.split(r"[<>=!~\[;\s]", spec, maxsplit=1)[0] for spec in _project_table()["dependencies"]]
    assert distribution in names
