import logging
from pathlib import Path
from typing import Dict, Union

import pytest


@pytest.fixture
def make_tree(tmp_path: Path):
    """Build a directory tree from ``{"rel/path": bytes | str}`` under tmp_path."""

    def _make(layout: Dict[str, Union[bytes, str]]) -> Path:
        for rel, content in layout.items():
            p = tmp_path / rel
            p.parent.mkdir(parents=True, exist_ok=True)
            if isinstance(content, str):
                content = content.encode("utf-8")
            p.write_bytes(content)
        return tmp_path

    return _make


@pytest.fixture(autouse=True)
def _reset_contextpack_logger():
    yield
    logger = logging.getLogger("contextpack")
    logger.handlers[:] = []
    logger.setLevel(logging.NOTSET)
