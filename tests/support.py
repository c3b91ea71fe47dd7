"""Helpers shared by the test modules: throwaway content trees and sites."""

import argparse
from pathlib import Path
from typing import Optional

from novasite.paths import PathResolver
from novasite.render import Site
from novasite.styles import StyleRegistry

POST_TEMPLATE = """---
title: {title}
description: {description}
date: {date}
authors: {authors}
---
{body}
"""


def write_file(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def write_post(
    posts_dir: Path,
    name: str,
    title: str = "T",
    description: str = "D",
    date: str = '"2024-01-01"',
    authors: str = "[]",
    body: str = "Hello",
) -> Path:
    text = POST_TEMPLATE.format(title=title, description=description, date=date, authors=authors, body=body)
    return write_file(posts_dir / name, text)


def write_pages(content: Path) -> None:
    write_file(content / "index.md", "---\ntitle: Nova\ndescription: Home\n---\nWelcome to **Nova**.\n")
    write_file(content / "blog" / "index.md", "---\ntitle: Blog\n---\n")
    write_file(content / "test262.md", "---\ntitle: Test262\n---\nResults.\n")
    write_file(content / "contributing.md", "---\ntitle: Contributing\n---\n# Contributing\n\nSend patches.\n")
    write_file(
        content / "talks.md",
        "---\n"
        "title: Talks\n"
        "talks:\n"
        "  - title: Engine talk\n"
        "    description: About the engine.\n"
        "    speaker: {name: Aapo Alasuutari, url: 'https://github.com/aapoalas'}\n"
        "    event: {name: Meetup}\n"
        "    date: 2024-01-13\n"
        "    youtube: WKGo1k47eYQ\n"
        "---\n",
    )


def make_site(root: Path, base_path: str = "", origin: str = "https://example.org") -> Site:
    return Site(
        paths=PathResolver(root / "content", root / "build", base_path, origin),
        styles=StyleRegistry(),
        name="Nova",
        description="Nova website",
        public_dir=root / "public",
    )


def make_args(root: Path, page: Optional[list] = None, **overrides) -> argparse.Namespace:
    values = dict(
        content=str(root / "content"),
        public=str(root / "public"),
        output=str(root / "build"),
        base_path="",
        location="https://example.org",
        site_name="Nova",
        site_description="Nova website",
        language="en",
        repository="trynova/nova",
        metrics_path="tests/metrics.json",
        github_token="",
        build_workers=2,
        page=page,
        clean=False,
        write_nojekyll=True,
        custom_domain="",
    )
    values.update(overrides)
    return argparse.Namespace(**values)
