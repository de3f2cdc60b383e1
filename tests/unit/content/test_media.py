"""Unit tests for content.media module."""

import base64

import pytest

from shanoom.content.codec import parse_text
from shanoom.content.errors import MediaNotFoundError
from shanoom.content.media import MediaRef, iter_media_refs, resolve_media


@pytest.fixture
def media_project(tmp_path):
    (tmp_path / "images").mkdir()
    (tmp_path / "images" / "hero.png").write_bytes(b"\x89PNG fake")
    (tmp_path / "images" / "a.jpg").write_bytes(b"jpg-a")
    return tmp_path


class TestIterMediaRefs:
    """Test cases for iter_media_refs."""

    def test_finds_nested_refs_with_dotted_keys(self):
        data = {
            "title": "Home",
            "hero": {"image": {"src": "images/hero.png", "alt": "Hero"}},
            "gallery": [{"src": "images/a.jpg"}, "plain", {"caption": "no media"}],
        }

        refs = list(iter_media_refs(data))

        assert refs == [
            MediaRef(key="hero.image", src="images/hero.png"),
            MediaRef(key="gallery.0", src="images/a.jpg"),
        ]

    def test_non_string_src_is_plain_data(self):
        assert list(iter_media_refs({"src": 42, "nested": {"src": None}})) == []

    def test_visits_mappings_under_non_string_src(self):
        data = {"hero": {"src": {"image": {"src": "a.png"}}}}

        assert list(iter_media_refs(data)) == [MediaRef(key="hero.src.image", src="a.png")]

    def test_top_level_ref(self):
        assert list(iter_media_refs({"src": "logo.svg"})) == [MediaRef(key="", src="logo.svg")]

    def test_remote_sources_are_not_local(self):
        assert MediaRef("a", "https://cdn.example.com/a.png").is_local_file is False
        assert MediaRef("a", "data:image/png;base64,AAAA").is_local_file is False
        assert MediaRef("a", "/images/a.png").is_local_file is True


class TestResolveMedia:
    """Test cases for resolve_media."""

    def test_inlines_media_without_touching_data(self, media_project):
        record = parse_text(
            "hero:\n  image:\n    src: images/hero.png\n", "pages/home.data.yaml"
        )
        original_hash = record.hash

        resolved = resolve_media(record, str(media_project))

        blob = resolved.media["hero.image"]
        assert base64.b64decode(blob.src) == b"\x89PNG fake"
        assert blob.ext == ".png"
        assert resolved.data == record.data
        assert resolved.hash == original_hash
        assert record.media == {}

    def test_leading_slash_means_project_root(self, media_project):
        record = parse_text("logo:\n  src: /images/a.jpg\n", "deep/dir/page.data.yaml")

        resolved = resolve_media(record, str(media_project))

        assert base64.b64decode(resolved.media["logo"].src) == b"jpg-a"

    def test_payload_carries_media(self, media_project):
        record = resolve_media(parse_text("logo:\n  src: images/a.jpg\n", "x.data.yaml"), str(media_project))

        payload = record.to_payload()

        assert payload["media"] == {"logo": {"src": base64.b64encode(b"jpg-a").decode(), "ext": ".jpg"}}
        assert payload["data"] == {"logo": {"src": "images/a.jpg"}}

    def test_missing_file_names_source_and_record(self, media_project):
        record = parse_text("logo:\n  src: images/missing.png\n", "pages/home.data.yaml")

        with pytest.raises(MediaNotFoundError) as exc_info:
            resolve_media(record, str(media_project))

        message = str(exc_info.value)
        assert "File not found: images/missing.png in the pages/home.data.yaml file" in message

    def test_refuses_paths_outside_project(self, media_project):
        record = parse_text("logo:\n  src: ../../etc/passwd\n", "x.data.yaml")

        with pytest.raises(MediaNotFoundError, match="outside the project"):
            resolve_media(record, str(media_project))

    def test_skips_remote_urls(self, media_project):
        record = parse_text("logo:\n  src: https://cdn.example.com/logo.png\n", "x.data.yaml")

        assert resolve_media(record, str(media_project)).media == {}

    def test_accepts_lists(self, media_project):
        records = [
            parse_text("a: 1\n", "a.data.yaml"),
            parse_text("logo:\n  src: images/a.jpg\n", "b.data.yaml"),
        ]

        resolved = resolve_media(records, str(media_project))

        assert [r.name for r in resolved] == ["a", "b"]
        assert list(resolved[1].media) == ["logo"]
