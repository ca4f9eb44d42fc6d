"""Tests for cooperative zip extraction."""

import zipfile

import pytest
from conftest import make_zip
from overlay_installer import ArchiveExtractionError
from overlay_installer import extract_archive
from overlay_installer import extract_to


@pytest.mark.asyncio
async def test_progress_ticks(tmp_path):
    """First tick announces the total, then one tick per entry."""
    archive = make_zip(tmp_path / "a.zip", {"a/1.txt": "1", "a/2.txt": "2", "a/3.txt": "3"})

    extraction = extract_archive(archive, tmp_path / "out")
    ticks = [tuple(tick) async for tick in extraction]

    assert ticks == [(0, 3), (1, 3), (2, 3), (3, 3)]
    assert extraction.error is None
    assert extraction.finished
    assert (tmp_path / "out" / "a" / "2.txt").read_text() == "2"


@pytest.mark.asyncio
async def test_stream_is_single_use(tmp_path):
    archive = make_zip(tmp_path / "a.zip", {"f": "x"})
    extraction = extract_archive(archive, tmp_path / "out")
    async for _ in extraction:
        pass

    with pytest.raises(RuntimeError, match="already started"):
        async for _ in extraction:
            pass


@pytest.mark.asyncio
async def test_corrupt_archive_ends_stream_with_error(tmp_path):
    """Errors are recorded on the stream, not raised through it."""
    archive = tmp_path / "broken.zip"
    archive.write_bytes(b"this is not a zip file")

    extraction = extract_archive(archive, tmp_path / "out")
    ticks = [tick async for tick in extraction]

    assert ticks == []
    assert isinstance(extraction.error, ArchiveExtractionError)
    assert extraction.error.context["archive"] == str(archive)
    assert not extraction.finished


@pytest.mark.asyncio
async def test_entry_failure_stops_early(tmp_path, monkeypatch):
    archive = make_zip(tmp_path / "a.zip", {"1": "1", "2": "2", "3": "3"})
    real_extract = zipfile.ZipFile.extract

    def flaky_extract(self, member, path=None, pwd=None):
        if member.filename == "2":
            raise zipfile.BadZipFile("Bad CRC-32 for file '2'")
        return real_extract(self, member, path, pwd)

    monkeypatch.setattr(zipfile.ZipFile, "extract", flaky_extract)

    extraction = extract_archive(archive, tmp_path / "out")
    ticks = [tuple(tick) async for tick in extraction]

    assert ticks == [(0, 3), (1, 3)]
    assert extraction.completed == 1
    assert "Bad CRC-32" in extraction.error.message


@pytest.mark.asyncio
async def test_extract_to_forwards_progress(tmp_path):
    archive = make_zip(tmp_path / "a.zip", {"x": "1", "y": "2"})
    seen = []

    count = await extract_to(archive, tmp_path / "out", progress=lambda c, t, label: seen.append((c, t, label)), label="base")

    assert count == 2
    assert seen == [(0, 2, "base"), (1, 2, "base"), (2, 2, "base")]


@pytest.mark.asyncio
async def test_extract_to_clears_previous_content(tmp_path):
    dest = tmp_path / "out"
    dest.mkdir()
    (dest / "stale.txt").write_text("old")
    archive = make_zip(tmp_path / "a.zip", {"fresh.txt": "new"})

    await extract_to(archive, dest)

    assert not (dest / "stale.txt").exists()
    assert (dest / "fresh.txt").read_text() == "new"


@pytest.mark.asyncio
async def test_extract_to_raises_on_error(tmp_path):
    with pytest.raises(ArchiveExtractionError, match="Cannot open archive"):
        await extract_to(tmp_path / "missing.zip", tmp_path / "out")
