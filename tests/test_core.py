import json
import re
from datetime import datetime

import pytest

from photo_indexer.config import ScanConfig
from photo_indexer.core import PhotoIndexerApp, scan
from photo_indexer.exceptions import CatalogError
from photo_indexer.models import DatePath
from photo_indexer.scanning.processor import ContentProcessor


class CountingProcessor(ContentProcessor):
    def __init__(self):
        self.seen = []

    def process(self, buf, relative_path, date_paths=()):
        self.seen.append(relative_path)
        return super().process(buf, relative_path, date_paths)


def test_scan_catalogs_every_image(store, make_tree, make_jpeg):
    marker = make_tree("disk1")
    root = marker.parent
    make_jpeg(root / "a.jpg", color="red")
    make_jpeg(root / "sub" / "b.JPEG", color="green")
    (root / "notes.txt").write_text("not an image")

    report = scan(store, ScanConfig(markers=[marker]))

    tree = report.trees[0]
    assert tree.status == "done"
    assert tree.marker == "disk1"
    assert tree.added == 2
    assert report.failures == []
    assert store.exists("disk1", "a.jpg")
    assert store.exists("disk1", "sub/b.JPEG")
    assert store.count() == 2


def test_second_scan_is_a_no_op(store, make_tree, make_jpeg):
    marker = make_tree("disk1")
    for i, color in enumerate(["red", "green", "blue"]):
        make_jpeg(marker.parent / f"{i}.jpg", color=color)

    first = CountingProcessor()
    scan(store, ScanConfig(markers=[marker]), processor=first)
    before = [(e.id, e.hash, e.date, e.thumb) for e in store.page(0, 10)]

    second = CountingProcessor()
    report = scan(store, ScanConfig(markers=[marker]), processor=second)

    assert len(first.seen) == 3
    assert second.seen == []
    assert report.added == 0
    assert report.known == 3
    assert [(e.id, e.hash, e.date, e.thumb) for e in store.page(0, 10)] == before


def test_known_files_are_not_read_again(monkeypatch, store, make_tree, make_jpeg):
    marker = make_tree("disk1")
    make_jpeg(marker.parent / "a.jpg")
    scan(store, ScanConfig(markers=[marker]))

    reads = []
    original = type(marker).read_bytes
    monkeypatch.setattr(type(marker), "read_bytes", lambda self: reads.append(self) or original(self))
    scan(store, ScanConfig(markers=[marker]))

    assert reads == []


def test_identical_content_at_two_paths_is_kept_twice(store, make_tree, make_jpeg):
    marker = make_tree("disk1")
    data = make_jpeg(marker.parent / "one.jpg")
    (marker.parent / "copy").mkdir()
    (marker.parent / "copy" / "two.jpg").write_bytes(data)

    processor = CountingProcessor()
    report = scan(store, ScanConfig(markers=[marker]), processor=processor)

    assert sorted(processor.seen) == ["copy/two.jpg", "one.jpg"]
    assert report.added == 2
    entry = store.get("disk1", "one.jpg")
    assert store.get("disk1", "copy/two.jpg").hash == entry.hash
    assert store.locations(entry.id) == [("disk1", "copy/two.jpg"), ("disk1", "one.jpg")]


def test_corrupt_image_is_skipped(store, make_tree, make_jpeg):
    marker = make_tree("disk1")
    root = marker.parent
    make_jpeg(root / "1.jpg", color="red")
    broken = make_jpeg(size=(256, 256), noise=True)
    (root / "2.jpg").write_bytes(broken[: len(broken) // 2])
    make_jpeg(root / "3.jpg", color="blue")

    report = scan(store, ScanConfig(markers=[marker]))

    tree = report.trees[0]
    assert tree.status == "done"
    assert tree.added == 2
    assert len(tree.failures_in("decode")) == 1
    assert tree.failures[0].path == root / "2.jpg"
    assert store.count() == 2
    assert not store.exists("disk1", "2.jpg")
    assert store.exists("disk1", "3.jpg")


def test_exif_date_wins_and_path_rule_fills_the_rest(store, make_tree, make_jpeg):
    marker = make_tree("disk1")
    root = marker.parent
    make_jpeg(root / "2005" / "exif.jpg", color="red", exif_datetime="2018:01:02 03:04:05")
    make_jpeg(root / "2005" / "plain.jpg", color="blue")
    make_jpeg(root / "misc" / "nodate.jpg", color="green")
    rules = {"disk1": [DatePath(re.compile(r"^(?P<year>\d{4})/"), "${year}-06-15")]}

    scan(store, ScanConfig(markers=[marker], date_paths=rules))

    assert store.get("disk1", "2005/exif.jpg").date == datetime(2018, 1, 2, 3, 4, 5)
    assert store.get("disk1", "2005/plain.jpg").date == datetime(2005, 6, 15)
    assert store.get("disk1", "misc/nodate.jpg").date is None


def test_date_rules_are_per_marker(store, make_tree, make_jpeg):
    marker = make_tree("disk1")
    make_jpeg(marker.parent / "2005" / "a.jpg")
    rules = {"other-disk": [DatePath(re.compile(r"^(?P<year>\d{4})/"), "$year")]}

    scan(store, ScanConfig(markers=[marker], date_paths=rules))

    assert store.get("disk1", "2005/a.jpg").date is None


def test_missing_and_broken_markers_do_not_stop_the_run(store, tmp_path, make_tree, make_jpeg):
    good = make_tree("good")
    make_jpeg(good.parent / "a.jpg")
    missing = tmp_path / "offline" / ".photo-marker.json"
    broken_root = tmp_path / "broken"
    broken_root.mkdir()
    broken = broken_root / ".photo-marker.json"
    broken.write_text(json.dumps({"name": "no id"}), encoding="utf-8")

    report = scan(store, ScanConfig(markers=[missing, broken, good]), max_workers=3)

    statuses = {t.marker_path: t.status for t in report.trees}
    assert statuses == {missing: "skipped", broken: "failed", good: "done"}
    assert "not found" in report.trees[0].error
    assert store.exists("good", "a.jpg")


def test_trees_are_scanned_independently(store, make_tree, make_jpeg):
    markers = []
    for n, color in enumerate(["red", "green", "blue", "white"]):
        marker = make_tree(f"disk{n}")
        make_jpeg(marker.parent / "same-name.jpg", color=color)
        markers.append(marker)

    report = scan(store, ScanConfig(markers=markers), max_workers=4)

    assert [t.status for t in report.trees] == ["done"] * 4
    assert report.added == 4
    for n in range(4):
        assert store.exists(f"disk{n}", "same-name.jpg")


class LockCheckingProcessor(ContentProcessor):
    """Records whether the store lock was free while each file was processed."""

    def __init__(self, store):
        self.store = store
        self.lock_free = []

    def process(self, buf, relative_path, date_paths=()):
        acquired = self.store._lock.acquire(blocking=False)
        if acquired:
            self.store._lock.release()
        self.lock_free.append(acquired)
        return super().process(buf, relative_path, date_paths)


def test_store_lock_is_not_held_while_processing(store, make_tree, make_jpeg):
    marker = make_tree("disk1")
    for i, color in enumerate(["red", "green", "blue"]):
        make_jpeg(marker.parent / f"{i}.jpg", color=color)

    processor = LockCheckingProcessor(store)
    report = scan(store, ScanConfig(markers=[marker]), max_workers=1, processor=processor)

    assert report.added == 3
    assert processor.lock_free == [True, True, True]


def test_unreadable_file_is_recorded(monkeypatch, store, make_tree, make_jpeg):
    marker = make_tree("disk1")
    make_jpeg(marker.parent / "ok.jpg", color="red")
    make_jpeg(marker.parent / "locked.jpg", color="blue")

    original = type(marker).read_bytes

    def fake_read_bytes(self):
        if self.name == "locked.jpg":
            raise PermissionError(13, "Permission denied", str(self))
        return original(self)

    monkeypatch.setattr(type(marker), "read_bytes", fake_read_bytes)

    report = scan(store, ScanConfig(markers=[marker]))

    assert report.added == 1
    assert [f.stage for f in report.failures] == ["read"]
    assert store.exists("disk1", "ok.jpg")


class BrokenStore:
    def exists(self, marker, relative_path):
        return False

    def upsert(self, marker, relative_path, info):
        raise CatalogError("disk full")


def test_catalog_failure_is_fatal(make_tree, make_jpeg):
    marker = make_tree("disk1")
    make_jpeg(marker.parent / "a.jpg")

    with pytest.raises(CatalogError, match="disk full"):
        scan(BrokenStore(), ScanConfig(markers=[marker]))


def test_app_scan_uses_file_catalog(tmp_path, make_tree, make_jpeg):
    marker = make_tree("disk1")
    make_jpeg(marker.parent / "a.jpg")
    db_path = tmp_path / "catalog.db"

    report = PhotoIndexerApp(db_path).scan(ScanConfig(markers=[marker]), max_workers=1)
    again = PhotoIndexerApp(db_path).scan(ScanConfig(markers=[marker]), max_workers=1)

    assert report.added == 1
    assert again.added == 0
    assert again.known == 1
    assert db_path.exists()
