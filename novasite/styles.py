from __future__ import annotations

import hashlib
import re
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import csscompressor

STYLES_DIR = Path(__file__).parent / "css"

COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
RULE_RE = re.compile(r"(?P<selector>[^{};]+)\{(?P<body>[^{}]*)\}")
# Attribute selectors and strings are matched whole so dots inside them stay untouched.
SELECTOR_TOKEN_RE = re.compile(
    r"\[(?:[^\]\"']|\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*')*\]"
    r"|\"(?:[^\"\\]|\\.)*\"|'(?:[^'\\]|\\.)*'"
    r"|\.(?P<name>-?[_a-zA-Z][\w-]*)"
)
COMPOSES_RE = re.compile(r"composes\s*:\s*(?P<names>[^;}]+);?")
IDENT_RE = re.compile(r"-?[_a-zA-Z][\w-]*$")


class StyleError(ValueError):
    """Raised when a style module uses CSS the transform cannot scope."""

    def __init__(self, module: str, message: str):
        super().__init__(f"{module}.css: {message}")
        self.module = module


@dataclass(frozen=True)
class StyleModule:
    name: str
    code: str
    classes: dict[str, str]


def class_name(module: str, name: str) -> str:
    digest = hashlib.sha256(f"{module}:{name}".encode("utf-8")).hexdigest()[:6]
    return f"{module}_{name}_{digest}"


def selector_classes(selector: str) -> list[str]:
    return [match.group("name") for match in SELECTOR_TOKEN_RE.finditer(selector) if match.group("name")]


def composed_names(module: str, value: str) -> list[str]:
    names = value.split()
    if "from" in names:
        raise StyleError(module, f"composes from another module is not supported: {value.strip()!r}")
    for name in names:
        if not IDENT_RE.match(name):
            raise StyleError(module, f"invalid class name in composes: {name!r}")
    return names


def transform(module: str, source: str) -> StyleModule:
    """Scope every class selector of a CSS module and minify the result.

    ``composes: a b;`` declarations are dropped from the output and the
    composed classes are appended to the exported name instead.
    """
    source = COMMENT_RE.sub("", source)
    generated: dict[str, str] = {}
    composed: dict[str, list[str]] = {}

    def rename(match: re.Match) -> str:
        name = match.group("name")
        if name is None:
            return match.group(0)
        generated.setdefault(name, class_name(module, name))
        return f".{generated[name]}"

    def rewrite_rule(match: re.Match) -> str:
        selector = match.group("selector")
        body = match.group("body")
        compose_match = COMPOSES_RE.search(body)
        if compose_match:
            names = composed_names(module, compose_match.group("names"))
            for target in selector_classes(selector):
                composed.setdefault(target, []).extend(names)
            body = COMPOSES_RE.sub("", body)
        return f"{SELECTOR_TOKEN_RE.sub(rename, selector)}{{{body}}}"

    code = RULE_RE.sub(rewrite_rule, source)
    for names in composed.values():
        for name in names:
            generated.setdefault(name, class_name(module, name))

    classes = {}
    for name, value in generated.items():
        extra = [generated[item] for item in composed.get(name, [])]
        classes[name] = " ".join([value, *extra])
    return StyleModule(module, csscompressor.compress(code), classes)


@dataclass
class StyleRegistry:
    """Build-wide cache of transformed style modules.

    A module is transformed at most once per registry; later registrations
    return the cached class map.
    """

    styles_dir: Path = STYLES_DIR
    modules: dict[str, StyleModule] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def register(self, name: str, source: Optional[str] = None, scoped: bool = True) -> dict[str, str]:
        with self._lock:
            module = self.modules.get(name)
            if module is None:
                if source is None:
                    source = (self.styles_dir / f"{name}.css").read_text(encoding="utf-8")
                if scoped:
                    module = transform(name, source)
                else:
                    module = StyleModule(name, csscompressor.compress(COMMENT_RE.sub("", source)), {})
                self.modules[name] = module
            return module.classes

    def css(self, names: Optional[list[str]] = None) -> str:
        with self._lock:
            if names is None:
                names = list(self.modules)
            return "\n".join(self.modules[name].code for name in self.modules if name in names)

    def page(self) -> PageStyles:
        return PageStyles(self)


@dataclass
class PageStyles:
    """The style modules one page touched while it was rendered."""

    registry: StyleRegistry
    used: list[str] = field(default_factory=list)

    def register(self, name: str, source: Optional[str] = None, scoped: bool = True) -> dict[str, str]:
        classes = self.registry.register(name, source, scoped)
        if name not in self.used:
            self.used.append(name)
        return classes

    def css(self) -> str:
        return self.registry.css(self.used)
