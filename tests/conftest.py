import sys
from pathlib import Path

import pytest

# Ensure repo_root/src is available on sys.path before any tests import project modules
REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))


def write_file(base: Path, rel: str, content: str) -> Path:
    f = base / rel
    f.parent.mkdir(parents=True, exist_ok=True)
    f.write_text(content, encoding="utf-8")
    return f


@pytest.fixture
def w(tmp_path: Path):
    """Write ``content`` to ``tmp_path/rel`` and return the path."""

    def _w(rel: str, content: str) -> Path:
        return write_file(tmp_path, rel, content)

    return _w
