import io
import logging
import sys
from pathlib import Path

import pytest
from PIL import Image

PROJECT_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = PROJECT_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from notepack.model.options import StoreOptions  # noqa: E402
from notepack.store.assets import FileAssetStore  # noqa: E402
from notepack.store.documents import FileDocumentStore  # noqa: E402

DRAWIO_XML = b'<mxfile host="app.diagrams.net"><diagram id="d1">abc</diagram></mxfile>'
MINDMAP_JSON = b'{"nodeData": {"id": "root", "topic": "Root"}}'


def _png_bytes(color: tuple[int, int, int] = (255, 0, 0), size: tuple[int, int] = (4, 4)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def make_png():
    """Factory for small, real PNG payloads."""
    return _png_bytes


@pytest.fixture
def drawio_xml() -> bytes:
    return DRAWIO_XML


@pytest.fixture
def mindmap_json() -> bytes:
    return MINDMAP_JSON


@pytest.fixture
def isolate_logging():
    """Isolate logging configuration between tests to prevent CI issues.

    This fixture prevents logging StreamHandler issues that occur in CI environments
    where stderr/stdout streams may be closed during test cleanup.

    Use this fixture explicitly in tests that have logging issues in CI.
    """
    # Store original logging state
    original_handlers = logging.root.handlers[:]
    original_level = logging.root.level

    # Clear all handlers to prevent stream access issues
    logging.root.handlers.clear()

    # Add a null handler that won't cause stream issues
    null_handler = logging.NullHandler()
    logging.root.addHandler(null_handler)

    yield

    # Restore original logging state
    logging.root.handlers.clear()
    logging.root.handlers.extend(original_handlers)
    logging.root.setLevel(original_level)


@pytest.fixture
def uploads(tmp_path: Path) -> Path:
    path = tmp_path / "uploads"
    path.mkdir()
    return path


@pytest.fixture
def store(uploads: Path) -> FileAssetStore:
    return FileAssetStore(uploads)


@pytest.fixture
def options(uploads: Path) -> StoreOptions:
    return StoreOptions(uploads_path=uploads)


@pytest.fixture
def dest_uploads(tmp_path: Path) -> Path:
    path = tmp_path / "dest-uploads"
    path.mkdir()
    return path


@pytest.fixture
def dest_store(dest_uploads: Path) -> FileAssetStore:
    return FileAssetStore(dest_uploads)


@pytest.fixture
def documents(tmp_path: Path) -> FileDocumentStore:
    return FileDocumentStore(tmp_path / "notes")


@pytest.fixture
def scratch_root(tmp_path: Path) -> Path:
    path = tmp_path / "scratch"
    path.mkdir()
    return path
