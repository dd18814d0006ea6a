"""
Tests for Input Sources
=======================
"""

import pytest

from kapub.exceptions import SourceReadError
from kapub.models import FileInput, InputKind
from kapub.pipeline.sources import DirectorySource


@pytest.fixture
def assets_dir(tmp_path):
    (tmp_path / "c.json").write_text("{}", encoding="utf-8")
    (tmp_path / "a.json").write_text("{}", encoding="utf-8")
    (tmp_path / "b.txt").write_text("text", encoding="utf-8")
    (tmp_path / "notes.md").write_text("ignored", encoding="utf-8")
    (tmp_path / "sub.json").mkdir()
    return tmp_path


class TestDirectorySource:

    @pytest.mark.asyncio
    async def test_sorted_by_name(self, assets_dir):
        items = await DirectorySource(assets_dir).collect()

        assert [i.identifier for i in items] == ["a.json", "b.txt", "c.json"]
        assert all(isinstance(i, FileInput) for i in items)
        assert items[1].kind == InputKind.FREE_TEXT

    @pytest.mark.asyncio
    async def test_extension_filter(self, assets_dir):
        items = await DirectorySource(assets_dir, extensions=[".TXT"]).collect()

        assert [i.identifier for i in items] == ["b.txt"]

    @pytest.mark.asyncio
    async def test_empty_directory(self, tmp_path):
        assert await DirectorySource(tmp_path).collect() == []

    @pytest.mark.asyncio
    async def test_missing_directory(self, tmp_path):
        source = DirectorySource(tmp_path / "missing")

        with pytest.raises(SourceReadError, match="Failed to read assets directory"):
            await source.collect()

    def test_repr(self, tmp_path):
        assert "DirectorySource" in repr(DirectorySource(tmp_path))
