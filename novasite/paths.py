from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

EXTENSION_RE = re.compile(r"\.\w+$")
URL_PREFIXES = ("http://", "https://", "//")
PAGE_SUFFIXES = (".md",)

PathLike = Union[str, Path]


def is_url(value: PathLike) -> bool:
    return isinstance(value, str) and value.startswith(URL_PREFIXES)


def normalize_base_path(value: str) -> str:
    value = (value or "").strip().strip("/")
    return f"/{value}" if value else ""


@dataclass(frozen=True)
class PathResolver:
    """Projects logical content paths onto the build tree and the site's URLs.

    ``content_root`` holds the page sources, ``build_root`` receives the
    output. ``base_path`` prefixes every site-relative link; ``origin`` takes
    its place for absolute links and so must already include any subpath.
    """

    content_root: Path
    build_root: Path
    base_path: str = ""
    origin: str = ""

    def relative(self, path: PathLike) -> str:
        text = Path(path).as_posix() if isinstance(path, Path) else str(path)
        root = Path(self.content_root).as_posix().rstrip("/")
        if text == root:
            return ""
        if text.startswith(root + "/"):
            return text[len(root) :]
        return text

    def output(self, path: PathLike, suffix: Optional[str] = None) -> Path:
        rel = self.relative(path).lstrip("/")
        if suffix is not None:
            if EXTENSION_RE.search(rel):
                rel = EXTENSION_RE.sub(suffix, rel)
            else:
                rel = rel + suffix
        elif rel.endswith(PAGE_SUFFIXES):
            rel = EXTENSION_RE.sub(".html", rel)
        return Path(self.build_root) / rel

    def href(self, path: PathLike) -> str:
        if is_url(path):
            return str(path)
        return self.base_path + EXTENSION_RE.sub("", self.relative(path))

    def file_href(self, path: PathLike, absolute: bool = False) -> str:
        """Link to a generated file under its real name, extension included."""
        rel = "/" + self.relative(path).lstrip("/")
        prefix = self.origin.rstrip("/") if absolute else self.base_path
        return prefix + rel

    def absolute_href(self, path: PathLike) -> str:
        if is_url(path):
            return str(path)
        return self.origin.rstrip("/") + EXTENSION_RE.sub("", self.relative(path))
