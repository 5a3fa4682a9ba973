import importlib
import warnings
from pathlib import Path

import pytest
from pydantic import ValidationError

from cord.schemas import Snapshot


def test_sources_compile_without_warnings():
    root = Path(importlib.import_module("cord").__file__).parent
    sources = sorted(root.rglob("*.py"))
    assert sources
    for path in sources:
        with warnings.catch_warnings():
            # invalid escape sequences in strings and docstrings
            warnings.simplefilter("error")
            compile(path.read_text(encoding="utf-8"), str(path), "exec")


def test_snapshot_is_immutable():
    shot = Snapshot.from_jpeg(b"\xff\xd8", 1, 1)
    with pytest.raises(ValidationError):
        shot.data = "data:image/jpeg;base64,AAAA"
    assert shot.jpeg_bytes() == b"\xff\xd8"
