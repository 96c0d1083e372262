"""Shared test fixtures for pwrules."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path


@pytest.fixture()
def write_quirks(tmp_path: Path) -> Callable[[str, dict[str, str]], Path]:
    """Return a factory writing ``{site: {"password-rules": rule}}`` JSON files."""

    def _write(name: str, rules: dict[str, str]) -> Path:
        path = tmp_path / name
        data = {site: {"password-rules": rule} for site, rule in rules.items()}
        path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        return path

    return _write
