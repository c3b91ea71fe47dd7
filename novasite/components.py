from __future__ import annotations

import datetime as dt
import enum
import html
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence

from pygments.formatters import HtmlFormatter

from .content import Author, Post, PostError
from .paths import PathResolver
from .render import markdown_to_html
from .styles import PageStyles

PREVIEW_LIMIT = 5
CODE_STYLE = "default"
YOUTUBE_EMBED = "https://www.youtube-nocookie.com/embed/"
YOUTUBE_ALLOW = (
    "accelerometer; autoplay; clipboard-write; encrypted-media; gyroscope; picture-in-picture; web-share"
)
NAVIGATION = (
    ("Talks", "/talks"),
    ("Blog", "/blog"),
    ("Test262", "/test262"),
    ("Contribute", "/contributing"),
)
LOGO_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 32 32" width="32" height="32" aria-hidden="true">'
    '<path d="M16 3 30 28H2Z" fill="currentColor" /></svg>'
)


class VideoKind(enum.Enum):
    YOUTUBE = "youtube"
    LINK = "link"


@dataclass(frozen=True)
class Video:
    kind: VideoKind
    value: str


@dataclass(frozen=True)
class Person:
    name: str
    url: Optional[str] = None


@dataclass(frozen=True)
class Talk:
    title: str
    description: str
    speaker: Person
    video: Video
    event: Optional[Person] = None
    date: Optional[str] = None
    slides: tuple[Person, ...] = ()


def classes_of(classes: dict[str, str], *names: str) -> str:
    return " ".join(classes[name] for name in names if name in classes)


def name_link(name: str, url: Optional[str] = None) -> str:
    if url:
        return f'<a href="{html.escape(url)}">{html.escape(name)}</a>'
    return html.escape(name)


def join_names(items: Sequence[str]) -> str:
    return ", ".join(items)


def time_tag(value: dt.date, class_name: str = "") -> str:
    class_attr = f' class="{class_name}"' if class_name else ""
    return f'<time datetime="{value.isoformat()}"{class_attr}>{value.isoformat()}</time>'


def author_list(authors: Iterable[Author], linked: bool = True) -> str:
    items = []
    for author in authors:
        name = name_link(author.name, author.url) if linked else html.escape(author.name)
        items.append(f"<address>{name}</address>")
    return join_names(items)


def published(post: Post, linked: bool = True) -> str:
    text = f"Published {time_tag(post.meta.date)}"
    if post.meta.authors:
        text += f" by {author_list(post.meta.authors, linked)}"
    return text


def logo() -> str:
    return LOGO_SVG


def header(styles: PageStyles, paths: PathResolver) -> str:
    classes = styles.register("header")
    links = "".join(
        f'<a href="{html.escape(paths.base_path + href)}">{label}</a>' for label, href in NAVIGATION
    )
    return (
        f'<header class="{classes_of(classes, "header")}">'
        f'<a class="{classes_of(classes, "logo")}" href="{html.escape(paths.base_path)}/">'
        f"{logo()}<h1>Nova</h1></a>"
        f'<nav class="{classes_of(classes, "navigation")}">{links}</nav>'
        "</header>"
    )


def copyleft(styles: PageStyles) -> str:
    classes = styles.register("copyleft")
    return f'<span class="{classes_of(classes, "copyleft")}">&copy;</span>'


def footer(styles: PageStyles) -> str:
    classes = styles.register("footer")
    return (
        f'<footer class="{classes_of(classes, "footer")}">'
        '<a href="https://github.com/trynova">'
        f"{copyleft(styles)} {dt.date.today().year} The Nova Contributors"
        "</a></footer>"
    )


def layout(body: str, styles: PageStyles, paths: PathResolver, class_name: str = "") -> str:
    classes = styles.register("layout")
    main_class = " ".join(item for item in (classes_of(classes, "main"), class_name) if item)
    return f'{header(styles, paths)}<main class="{main_class}">{body}</main>{footer(styles)}'


def markdown_section(body: str, styles: PageStyles, class_name: str = "") -> str:
    """Render repository-controlled Markdown; the HTML is embedded unsanitized."""
    classes = styles.register("markdown")
    styles.register(
        "codehilite",
        source=HtmlFormatter(style=CODE_STYLE).get_style_defs(".codehilite"),
        scoped=False,
    )
    section_class = " ".join(item for item in (classes_of(classes, "markdown"), class_name) if item)
    return f'<section class="{section_class}">{markdown_to_html(body)}</section>'


def post_card(post: Post, styles: PageStyles, paths: PathResolver) -> str:
    classes = styles.register("blog_post_card")
    return (
        f'<li class="{classes_of(classes, "container")}">'
        f'<a class="{classes_of(classes, "link")}" href="{html.escape(paths.href(post.file))}">'
        "<header>"
        f'<h2 class="{classes_of(classes, "title")}">{html.escape(post.meta.title)}</h2>'
        f'<section class="{classes_of(classes, "meta")}">{published(post, linked=False)}</section>'
        "</header>"
        f"<p>{html.escape(post.meta.description)}</p>"
        "</a></li>"
    )


def blog_post(post: Post, styles: PageStyles) -> str:
    classes = styles.register("blog_post")
    return (
        f'<article class="{classes_of(classes, "container")}">'
        "<header>"
        f"<h1>{html.escape(post.meta.title)}</h1>"
        f'<section class="{classes_of(classes, "meta")}">{published(post)}</section>'
        "</header>"
        f"{markdown_section(post.body, styles)}"
        "</article>"
    )


def preview_list(posts: Sequence[Post], styles: PageStyles, paths: PathResolver, limit: int = PREVIEW_LIMIT) -> str:
    classes = styles.register("blog_preview_list")
    items = []
    for post in posts[:limit]:
        items.append(
            f'<li class="{classes_of(classes, "post")}">'
            f'<a href="{html.escape(paths.href(post.file))}">{html.escape(post.meta.title)}</a>'
            f'{time_tag(post.meta.date, classes_of(classes, "meta"))}'
            "</li>"
        )
    return (
        f'<ul class="{classes_of(classes, "list")}">{"".join(items)}</ul>'
        f'<a href="{html.escape(paths.base_path)}/blog">View all posts</a>'
    )


def parse_person(value: object, path: Path, field: str) -> Person:
    if isinstance(value, str) and value.strip():
        return Person(value.strip())
    if isinstance(value, dict) and str(value.get("name") or "").strip():
        url = value.get("url")
        return Person(str(value["name"]).strip(), str(url) if url else None)
    raise PostError(path, f"talk {field} needs a name: {value!r}")


def parse_video(item: dict, path: Path) -> Video:
    youtube = item.get("youtube")
    recording = item.get("recording")
    if youtube and recording:
        raise PostError(path, f"talk '{item.get('title')}' has both a YouTube id and a recording link")
    if youtube:
        return Video(VideoKind.YOUTUBE, str(youtube))
    if recording:
        return Video(VideoKind.LINK, str(recording))
    raise PostError(path, f"talk '{item.get('title')}' needs a YouTube id or a recording link")


def parse_talks(items: object, path: Path) -> list[Talk]:
    if not isinstance(items, list):
        raise PostError(path, "talks must be a list")
    talks = []
    for item in items:
        if not isinstance(item, dict) or not item.get("title"):
            raise PostError(path, f"talk without a title: {item!r}")
        event = item.get("event")
        date_value = item.get("date")
        if isinstance(date_value, dt.date):
            date_value = date_value.isoformat()
        elif date_value is not None and not isinstance(date_value, str):
            raise PostError(path, f"talk '{item['title']}' has an invalid date {date_value!r}, expected YYYY-MM-DD")
        slides = item.get("slides") or []
        if not isinstance(slides, list):
            raise PostError(path, f"slides of talk '{item['title']}' must be a list")
        talks.append(
            Talk(
                title=str(item["title"]),
                description=str(item.get("description") or ""),
                speaker=parse_person(item.get("speaker"), path, "speaker"),
                video=parse_video(item, path),
                event=parse_person(event, path, "event") if event else None,
                date=date_value,
                slides=tuple(parse_person(slide, path, "slide") for slide in slides),
            )
        )
    return talks


def video_embed(video: Video, classes: dict[str, str]) -> str:
    if video.kind is VideoKind.YOUTUBE:
        return (
            f'<iframe class="{classes_of(classes, "video")}" '
            f'src="{YOUTUBE_EMBED}{html.escape(video.value)}" title="YouTube video player" '
            f'frameborder="0" allow="{YOUTUBE_ALLOW}" '
            'referrerpolicy="strict-origin-when-cross-origin" allowfullscreen></iframe>'
        )
    if video.kind is VideoKind.LINK:
        return (
            f'<a class="{classes_of(classes, "video", "recording")}" href="{html.escape(video.value)}">'
            "Watch the recording</a>"
        )
    raise ValueError(f"Unknown video kind: {video.kind}")


def talk(item: Talk, styles: PageStyles) -> str:
    classes = styles.register("talk")
    metadata = f"<address>{name_link(item.speaker.name, item.speaker.url)}</address>"
    if item.event:
        metadata += f" @ {name_link(item.event.name, item.event.url)}"
    if item.date:
        escaped_date = html.escape(item.date)
        metadata += f' @ <time datetime="{escaped_date}">{escaped_date}</time>'
    slides = ""
    if item.slides:
        rows = "".join(f"<li>{name_link(slide.name, slide.url)}</li>" for slide in item.slides)
        slides = f'<ul class="{classes_of(classes, "slides")}">{rows}</ul>'
    paragraphs = "".join(
        f"<p>{html.escape(part.strip())}</p>" for part in item.description.split("\n\n") if part.strip()
    )
    return (
        f'<article class="{classes_of(classes, "talk")}">'
        f"{video_embed(item.video, classes)}"
        f'<section class="{classes_of(classes, "info")}">'
        f'<h2 class="{classes_of(classes, "title")}">{html.escape(item.title)}</h2>'
        f'<section class="{classes_of(classes, "metadata")}">{metadata}</section>'
        f"{slides}"
        f'<div class="{classes_of(classes, "description")}">{paragraphs}</div>'
        "</section></article>"
    )
