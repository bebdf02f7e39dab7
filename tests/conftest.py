import io
import json
import sqlite3

import pytest
from PIL import Image

from photo_indexer.database.db import CatalogStore
from photo_indexer.database.ops import CatalogOps
from photo_indexer.database.schema import init_schema


@pytest.fixture
def conn():
    """Returns an in-memory SQLite connection with the schema initialized."""
    c = sqlite3.connect(":memory:", check_same_thread=False)
    init_schema(c)
    try:
        yield c
    finally:
        c.close()


@pytest.fixture
def ops(conn):
    """Returns CatalogOps attached to the in-memory DB."""
    return CatalogOps(conn)


@pytest.fixture
def store(conn):
    """Returns the lock-guarded CatalogStore attached to the in-memory DB."""
    return CatalogStore(conn)


@pytest.fixture
def make_jpeg():
    """
    Factory for JPEG bytes. Optionally writes them to `path` and embeds an
    EXIF DateTime (IFD0 tag 0x0132, read back by exifread as 'Image DateTime').
    """
    def _make(path=None, size=(64, 48), color="red", exif_datetime=None, noise=False):
        if noise:
            img = Image.effect_noise(size, 64).convert("RGB")
        else:
            img = Image.new("RGB", size, color=color)

        kwargs = {"quality": 95}
        if exif_datetime:
            exif = Image.Exif()
            exif[0x0132] = exif_datetime
            kwargs["exif"] = exif.tobytes()

        buf = io.BytesIO()
        img.save(buf, format="JPEG", **kwargs)
        data = buf.getvalue()

        if path is not None:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(data)
        return data
    return _make


@pytest.fixture
def make_tree(tmp_path):
    """Creates tmp_path/<name> with a marker file; returns the marker path."""
    def _make(name, marker_id=None):
        root = tmp_path / name
        root.mkdir(parents=True, exist_ok=True)
        marker = root / ".photo-marker.json"
        marker.write_text(json.dumps({"id": marker_id or name}), encoding="utf-8")
        return marker
    return _make
