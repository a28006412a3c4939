"""Shared test fixtures."""

from pathlib import Path
from typing import Callable, Dict, Optional

import pytest


@pytest.fixture
def write_files(tmp_path: Path) -> Callable[..., Path]:
    """Create files below tmp_path (empty unless given contents), returns tmp_path."""

    def write(*paths: str, contents: Optional[Dict[str, str]] = None) -> Path:
        files = {path: "" for path in paths}
        files.update(contents or {})
        for path, content in files.items():
            full_path = tmp_path / path
            full_path.parent.mkdir(parents=True, exist_ok=True)
            full_path.write_text(content)
        return tmp_path

    return write
