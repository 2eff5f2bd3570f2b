"""Tests for JSON, text and HTML exports."""

import base64
from datetime import datetime

import pytest
from pathlib import Path

from memoir.export import (
    NO_CONTENT_TEXT,
    SEPARATOR,
    download_filename,
    embed_images,
    export_html,
    export_json,
    export_text,
)


@pytest.fixture
def uploads_dir(tmp_path: Path) -> Path:
    d = tmp_path / "uploads"
    (d / "123").mkdir(parents=True)
    (d / "123" / "pic.png").write_bytes(b"\x89PNG fake")
    return d


class TestFilenames:
    def test_non_alphanumerics_replaced(self):
        assert download_filename("My Life!", "txt") == "My_Life_.txt"

    def test_missing_title(self):
        assert download_filename(None, "html") == "memoir.html"
        assert download_filename("", "txt") == "memoir.txt"


class TestJsonExport:
    def test_bundle_shape(self):
        project = {"id": "1", "title": "T"}
        data = export_json(project, [{"id": "m"}], [{"id": "c"}])
        assert set(data) == {"project", "memories", "chapters", "exportedAt"}
        assert data["project"] == project
        assert data["memories"] == [{"id": "m"}]
        datetime.fromisoformat(data["exportedAt"].replace("Z", "+00:00"))


class TestTextExport:
    def test_layout(self):
        text = export_text(
            {"title": "Roots", "author": "Ada"},
            [{"title": "One", "content": "First."}, {"title": "", "content": ""}],
        )
        assert text.startswith("Roots\nby Ada\n\n")
        assert f"{SEPARATOR}\nChapter 1: One\n{SEPARATOR}\n\nFirst.\n\n" in text
        assert f"Chapter 2: Untitled\n{SEPARATOR}\n\n{NO_CONTENT_TEXT}\n\n" in text

    def test_defaults(self):
        assert export_text({}, []) == "My Memoir\nby Anonymous\n\n"

    def test_html_content_kept_verbatim(self):
        text = export_text({"title": "T"}, [{"title": "C", "content": "<p>Hi</p>"}])
        assert "<p>Hi</p>" in text


class TestHtmlExport:
    def test_single_chapter_has_no_toc(self, uploads_dir: Path):
        doc = export_html({"title": "Roots"}, [{"title": "One", "content": "<p>x</p>"}], uploads_dir)
        assert "Table of Contents" not in doc
        assert '<div class="chapter" id="ch0">' in doc
        assert "<p>x</p>" in doc

    def test_toc_links_each_chapter(self, uploads_dir: Path):
        doc = export_html(
            {"title": "Roots", "author": "Ada"},
            [{"title": "One"}, {"title": "Two"}],
            uploads_dir,
        )
        assert "Table of Contents" in doc
        assert "<ol>" in doc
        assert '<a href="#ch0">One</a>' in doc
        assert '<a href="#ch1">Two</a>' in doc
        assert '<p class="author">by Ada</p>' in doc
        assert doc.count("<em>No content yet.</em>") == 2

    def test_escapes_title_and_author(self, uploads_dir: Path):
        doc = export_html(
            {"title": "<script>", "author": "A & B"},
            [{"title": "<b>x</b>"}],
            uploads_dir,
        )
        assert "<title>&lt;script&gt;</title>" in doc
        assert "by A &amp; B" in doc
        assert "&lt;b&gt;x&lt;/b&gt;" in doc

    def test_no_author_line_when_missing(self, uploads_dir: Path):
        doc = export_html({"title": "T"}, [], uploads_dir)
        assert 'class="author"' not in doc
        assert "<h1>T</h1>" in doc

    def test_images_inlined(self, uploads_dir: Path):
        content = '<p>Look</p><img alt="me" src="uploads/123/pic.png">'
        doc = export_html({"title": "T"}, [{"title": "C", "content": content}], uploads_dir)
        encoded = base64.b64encode(b"\x89PNG fake").decode("ascii")
        assert f'src="data:image/png;base64,{encoded}"' in doc
        assert 'alt="me"' in doc
        assert "uploads/123/pic.png" not in doc


class TestEmbedImages:
    def test_missing_file_left_alone(self, uploads_dir: Path):
        content = '<img src="uploads/123/gone.jpg">'
        assert embed_images(content, uploads_dir) == content

    def test_traversal_left_alone(self, uploads_dir: Path, tmp_path: Path):
        (tmp_path / "secret.png").write_bytes(b"secret")
        content = '<img src="uploads/../secret.png">'
        assert embed_images(content, uploads_dir) == content

    def test_external_images_untouched(self, uploads_dir: Path):
        content = '<img src="https://example.com/a.png">'
        assert embed_images(content, uploads_dir) == content
