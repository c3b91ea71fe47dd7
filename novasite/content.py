from __future__ import annotations

import datetime as dt
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

import yaml

FRONT_MATTER_DELIMITER = "---"
MARKDOWN_SUFFIX = ".md"
REQUIRED_POST_FIELDS = ("title", "description", "date")


class PostError(ValueError):
    """Raised when a content file cannot be turned into a post or page."""

    def __init__(self, path: Path, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path


@dataclass(frozen=True)
class Author:
    name: str
    url: Optional[str] = None


@dataclass(frozen=True)
class PostMeta:
    title: str
    description: str
    date: dt.date
    authors: tuple[Author, ...] = ()


@dataclass(frozen=True)
class Post:
    file: Path
    body: str
    meta: PostMeta


@dataclass(frozen=True)
class Page:
    file: Path
    body: str
    meta: dict = field(default_factory=dict)

    @property
    def title(self) -> str:
        return str(self.meta.get("title") or "")

    @property
    def description(self) -> str:
        return str(self.meta.get("description") or "")


def walk(root: Path) -> Iterator[Path]:
    """Yield every file below ``root``, descending into directories as met."""
    with os.scandir(root) as entries:
        for entry in entries:
            path = Path(root) / entry.name
            if entry.is_file():
                yield path
            elif entry.is_dir():
                yield from walk(path)


def split_front_matter(text: str) -> tuple[Optional[str], str]:
    clean_text = text.lstrip("\ufeff")
    lines = clean_text.splitlines()
    if not lines or lines[0].strip() != FRONT_MATTER_DELIMITER:
        return None, clean_text

    for i in range(1, len(lines)):
        if lines[i].strip() == FRONT_MATTER_DELIMITER:
            block = "\n".join(lines[1:i])
            body = "\n".join(lines[i + 1 :])
            return block, body.lstrip("\n")
    return None, clean_text


def parse_front_matter(text: str, path: Path) -> tuple[dict, str]:
    block, body = split_front_matter(text)
    if block is None:
        return {}, body
    try:
        meta = yaml.safe_load(block)
    except yaml.YAMLError as exc:
        raise PostError(path, f"invalid front matter: {exc}") from exc
    if meta is None:
        return {}, body
    if not isinstance(meta, dict):
        raise PostError(path, "front matter must be a mapping")
    return meta, body


def coerce_date(value: object, path: Path) -> dt.date:
    # datetime is a date subclass, so it has to be checked first.
    if isinstance(value, dt.datetime):
        if value.tzinfo is not None:
            value = value.astimezone(dt.timezone.utc)
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return dt.date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return coerce_date(dt.datetime.fromisoformat(text.replace("Z", "+00:00")), path)
        except ValueError:
            pass
    raise PostError(path, f"invalid date {value!r}, expected YYYY-MM-DD")


def parse_authors(value: object, path: Path) -> tuple[Author, ...]:
    if value is None:
        return ()
    if not isinstance(value, list):
        raise PostError(path, "authors must be a list")
    authors = []
    for item in value:
        if isinstance(item, str) and item.strip():
            authors.append(Author(item.strip()))
            continue
        if not isinstance(item, dict) or not str(item.get("name") or "").strip():
            raise PostError(path, f"author entry without a name: {item!r}")
        url = item.get("url")
        authors.append(Author(str(item["name"]).strip(), str(url) if url else None))
    return tuple(authors)


def load_post(path: Path) -> Post:
    text = path.read_text(encoding="utf-8")
    meta, body = parse_front_matter(text, path)
    if not meta:
        raise PostError(path, "missing front matter")
    for key in REQUIRED_POST_FIELDS:
        if meta.get(key) in (None, ""):
            raise PostError(path, f"missing required field '{key}'")
    return Post(
        file=path,
        body=body,
        meta=PostMeta(
            title=str(meta["title"]),
            description=str(meta["description"]),
            date=coerce_date(meta["date"], path),
            authors=parse_authors(meta.get("authors"), path),
        ),
    )


def load_posts(root: Path) -> Iterator[Post]:
    for path in walk(root):
        if path.suffix == MARKDOWN_SUFFIX:
            yield load_post(path)


def all_posts(root: Path) -> tuple[Post, ...]:
    """Load every post once, newest first; same-day posts ordered by path."""
    posts = sorted(load_posts(root), key=lambda post: post.file.as_posix())
    posts.sort(key=lambda post: post.meta.date, reverse=True)
    return tuple(posts)


def load_page(path: Path) -> Page:
    meta, body = parse_front_matter(path.read_text(encoding="utf-8"), path)
    return Page(file=path, body=body, meta=meta)
