"""Renderers that turn a stored project into downloadable documents."""

from __future__ import annotations

import base64
import html
import logging
import mimetypes
import re
from pathlib import Path

from memoir.store.jsonio import now_iso

logger = logging.getLogger(__name__)

SEPARATOR = "=" * 40
NO_CONTENT_TEXT = "(No content yet)"
NO_CONTENT_HTML = "<p><em>No content yet.</em></p>"

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9]")
_UPLOAD_IMG = re.compile(
    r"""<img\s([^>]*?)src=["'](uploads/[^"']+)["']([^>]*?)>""",
    re.IGNORECASE,
)

HTML_STYLE = """\
@import url('https://fonts.googleapis.com/css2?family=Lora:ital,wght@0,400;0,600;1,400&display=swap');
body{font-family:'Lora',serif;max-width:700px;margin:0 auto;padding:40px 20px;color:#2C2C2C;background:#FAF8F5;line-height:1.8}
h1{text-align:center;font-size:2.4em;margin-bottom:0.2em}
.author{text-align:center;font-size:1.2em;color:#666;margin-bottom:2em}
h2{font-size:1.6em;margin-top:2em;padding-top:1em;border-top:1px solid #ddd}
.toc{margin:2em 0;padding:1.5em;background:#f5f0eb;border-radius:8px}
.toc h3{margin-top:0}.toc ol{padding-left:1.4em}
.toc li{margin:0.5em 0}.toc a{color:#2D6A4F;text-decoration:none}
.chapter{margin-bottom:3em}
blockquote{border-left:3px solid #2D6A4F;margin-left:0;padding-left:1em;color:#555;font-style:italic}
img{max-width:100%;height:auto;border-radius:6px;margin:0.8em 0;display:block}
@media print{body{padding:0;background:white}.toc{page-break-after:always}}"""


def download_filename(title: str | None, ext: str) -> str:
    """``My Life!`` → ``My_Life_.txt``. Every non-alphanumeric char becomes ``_``."""
    return _UNSAFE_FILENAME_CHARS.sub("_", title or "memoir") + f".{ext}"


# ── JSON ──────────────────────────────────────────────────────


def export_json(project: dict, memories: list[dict], chapters: list[dict]) -> dict:
    return {
        "project": project,
        "memories": memories,
        "chapters": chapters,
        "exportedAt": now_iso(),
    }


# ── Plain text ────────────────────────────────────────────────


def export_text(project: dict, chapters: list[dict]) -> str:
    """Title/author header, then each chapter between ``=`` rules.

    Chapter content is written as stored (HTML is not stripped).
    """
    parts = [f"{project.get('title') or 'My Memoir'}\nby {project.get('author') or 'Anonymous'}\n\n"]
    for i, ch in enumerate(chapters, start=1):
        parts.append(
            f"{SEPARATOR}\nChapter {i}: {ch.get('title') or 'Untitled'}\n{SEPARATOR}\n\n"
            f"{ch.get('content') or NO_CONTENT_TEXT}\n\n"
        )
    return "".join(parts)


# ── HTML ──────────────────────────────────────────────────────


def embed_images(content: str, uploads_dir: Path) -> str:
    """Inline ``<img src="uploads/...">`` files as data URIs.

    References that are missing on disk or point outside ``uploads_dir`` are
    left untouched.
    """
    root = uploads_dir.resolve()

    def replace(m: re.Match) -> str:
        rel = m.group(2)[len("uploads/"):]
        path = (root / rel).resolve()
        if not path.is_relative_to(root) or not path.is_file():
            logger.debug("Leaving image reference as-is: %s", m.group(2))
            return m.group(0)
        mime = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
        data = base64.b64encode(path.read_bytes()).decode("ascii")
        return f'<img {m.group(1)}src="data:{mime};base64,{data}"{m.group(3)}>'

    return _UPLOAD_IMG.sub(replace, content)


def export_html(project: dict, chapters: list[dict], uploads_dir: Path) -> str:
    """Self-contained styled document; table of contents only for 2+ chapters."""
    title = html.escape(project.get("title") or "My Memoir")
    author = html.escape(project.get("author") or "")

    toc: list[str] = []
    body: list[str] = []
    for i, ch in enumerate(chapters):
        ch_title = html.escape(ch.get("title") or f"Chapter {i + 1}")
        content = embed_images(ch.get("content") or NO_CONTENT_HTML, uploads_dir)
        toc.append(f'<li><a href="#ch{i}">{ch_title}</a></li>')
        body.append(f'<div class="chapter" id="ch{i}"><h2>{ch_title}</h2><div>{content}</div></div>')

    author_line = f'<p class="author">by {author}</p>' if author else ""
    toc_section = (
        f'<div class="toc"><h3>Table of Contents</h3><ol>{"".join(toc)}</ol></div>'
        if len(chapters) > 1
        else ""
    )

    return (
        f'<!DOCTYPE html><html lang="en"><head><meta charset="UTF-8"><title>{title}</title>\n'
        f"<style>\n{HTML_STYLE}\n</style></head><body>\n"
        f"<h1>{title}</h1>\n"
        f"{author_line}\n"
        f"{toc_section}\n"
        f"{''.join(body)}\n"
        f"</body></html>"
    )
