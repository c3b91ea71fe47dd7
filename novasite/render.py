from __future__ import annotations

import html
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import markdown

from .paths import PathResolver
from .styles import PageStyles, StyleRegistry

TEMPLATES_DIR = Path(__file__).parent / "templates"
MARKDOWN_EXTENSIONS = ["fenced_code", "tables", "toc", "codehilite"]
MARKDOWN_CONFIGS = {"codehilite": {"guess_lang": False}}


@dataclass(frozen=True)
class Site:
    """Everything a page needs to know about the site it is rendered for."""

    paths: PathResolver
    styles: StyleRegistry
    name: str = "Nova"
    description: str = ""
    language: str = "en"
    repository: str = "trynova/nova"
    metrics_path: str = "tests/metrics.json"
    github_token: Optional[str] = None
    public_dir: Optional[Path] = None

    @property
    def content_root(self) -> Path:
        return Path(self.paths.content_root)

    @property
    def posts_dir(self) -> Path:
        return self.content_root / "blog" / "posts"

    def feed_path(self, suffix: str) -> Path:
        return self.content_root / "blog" / f"feed{suffix}"


def render_template(template: str, **context: str) -> str:
    output = template
    late_keys = ("styles", "content")
    for key, value in context.items():
        if key in late_keys:
            continue
        output = output.replace(f"{{{{{key}}}}}", value)
    for key in late_keys:
        if key in context:
            output = output.replace(f"{{{{{key}}}}}", context[key])
    return output


def read_template(name: str) -> str:
    return (TEMPLATES_DIR / name).read_text(encoding="utf-8")


def markdown_to_html(text: str) -> str:
    md = markdown.Markdown(extensions=MARKDOWN_EXTENSIONS, extension_configs=MARKDOWN_CONFIGS)
    return md.convert(text)


def document(
    body: str,
    styles: PageStyles,
    site: Site,
    title: str,
    description: Optional[str] = None,
    canonical: Optional[str] = None,
    authors: Sequence[str] = (),
    og_type: str = "website",
) -> str:
    """Wrap a rendered page body into a complete HTML document."""
    meta = []
    description = description if description is not None else site.description
    if description:
        escaped = html.escape(description)
        meta.append(f'<meta name="description" content="{escaped}" />')
        meta.append(f'<meta property="og:description" content="{escaped}" />')
    if authors:
        meta.append(f'<meta name="author" content="{html.escape(", ".join(authors))}" />')
    canonical_html = ""
    if canonical is not None:
        url = html.escape(site.paths.absolute_href(canonical))
        canonical_html = f'<link rel="canonical" href="{url}" />'
        meta.append(f'<meta property="og:url" content="{url}" />')
    return render_template(
        read_template("base.html"),
        language=html.escape(site.language),
        base_path=html.escape(site.paths.base_path),
        canonical=canonical_html,
        site_name=html.escape(site.name),
        feed_rss=html.escape(site.paths.file_href(site.feed_path(".rss"), absolute=True)),
        feed_atom=html.escape(site.paths.file_href(site.feed_path(".atom"), absolute=True)),
        feed_json=html.escape(site.paths.file_href(site.feed_path(".json"), absolute=True)),
        og_type=og_type,
        title=html.escape(title),
        meta="\n    ".join(meta),
        styles=styles.css(),
        content=body,
    )


def write_text(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")


def copy_static(static_dir: Path, output_dir: Path) -> list[Path]:
    copied = []
    output_dir.mkdir(parents=True, exist_ok=True)
    for item in static_dir.iterdir():
        dest = output_dir / item.name
        if item.is_dir():
            shutil.copytree(item, dest, dirs_exist_ok=True)
        else:
            shutil.copy2(item, dest)
        copied.append(dest)
    return copied
