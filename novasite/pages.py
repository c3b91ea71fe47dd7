from __future__ import annotations

import contextlib
import html
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence

import requests

from .chart import dataset_label, render_chart
from .components import (
    blog_post,
    classes_of,
    layout,
    markdown_section,
    parse_talks,
    post_card,
    preview_list,
    talk,
)
from .content import Post, load_page
from .feeds import build_feeds
from .github import GitHubClient, GitHubError, fetch_text
from .metrics import RESULTS, Commit, fetch_metrics, history
from .render import Site, copy_static, document, write_text

TEST262_URL = "https://github.com/tc39/test262"
TEST262_FYI_URL = "https://test262.fyi/#|nova"
SITEMAP_PAGES = ("", "/talks", "/test262", "/contributing", "/blog/")


def page_title(title: str, site: Site, separator: str = "·") -> str:
    if not title or title == site.name:
        return site.name
    return f"{title} {separator} {site.name}"


def build_home(site: Site, posts: Sequence[Post]) -> list[Path]:
    page = load_page(site.content_root / "index.md")
    styles = site.styles.page()
    body = (
        f"{markdown_section(page.body, styles)}"
        "<h2>Latest posts</h2>"
        f"{preview_list(posts, styles, site.paths)}"
    )
    html_doc = document(
        layout(body, styles, site.paths),
        styles,
        site,
        title=page_title(page.title, site),
        description=page.description or None,
        canonical="/",
    )
    output = site.paths.output(page.file)
    write_text(output, html_doc)
    return [output]


def build_talks(site: Site, posts: Sequence[Post]) -> list[Path]:
    page = load_page(site.content_root / "talks.md")
    talks = parse_talks(page.meta.get("talks") or [], page.file)
    styles = site.styles.page()
    classes = styles.register("talks")
    body = (
        f"<h1>{html.escape(page.title or 'Talks')}</h1>"
        f"{markdown_section(page.body, styles) if page.body.strip() else ''}"
        f'<section class="{classes_of(classes, "talks")}">'
        f'{"".join(talk(item, styles) for item in talks)}'
        "</section>"
    )
    html_doc = document(
        layout(body, styles, site.paths),
        styles,
        site,
        title=page_title(page.title or "Talks", site),
        description=page.description or None,
        canonical=page.file,
    )
    output = site.paths.output(page.file)
    write_text(output, html_doc)
    return [output]


def build_contributing(
    site: Site, posts: Sequence[Post], session: Optional[requests.Session] = None
) -> list[Path]:
    page = load_page(site.content_root / "contributing.md")
    source = page.meta.get("source")
    guide = fetch_text(str(source), session) if source else page.body
    styles = site.styles.page()
    html_doc = document(
        layout(markdown_section(guide, styles), styles, site.paths),
        styles,
        site,
        title=page_title(page.title or "Contributing", site),
        description=page.description or None,
        canonical=page.file,
    )
    output = site.paths.output(page.file)
    write_text(output, html_doc)
    return [output]


def results_table(latest: Commit, repository: str, classes: dict[str, str]) -> str:
    headings = "".join(f"<th>{dataset_label(result)}</th>" for result in RESULTS)
    cells = "".join(
        f"<td>{latest.metrics.results[result]} ({latest.metrics.percent(result):.1f}%)</td>"
        for result in RESULTS
    )
    sha = html.escape(latest.sha)
    commit_url = f"https://github.com/{html.escape(repository)}/commit/{sha}"
    return (
        f'<table class="{classes_of(classes, "table")}">'
        "<caption>"
        f"<code>{html.escape(latest.message)}</code><br />"
        f'At {latest.date.strftime("%Y-%m-%d %H:%M:%S")} commit <a href="{commit_url}">{sha}</a>'
        "</caption>"
        f"<tr>{headings}</tr>"
        f"<tr>{cells}</tr>"
        "</table>"
    )


def build_test262(
    site: Site,
    posts: Sequence[Post],
    client: Optional[GitHubClient] = None,
    commits: Optional[list[Commit]] = None,
) -> list[Path]:
    page = load_page(site.content_root / "test262.md")
    if commits is None:
        owner = contextlib.nullcontext(client) if client is not None else GitHubClient(site.github_token)
        with owner as github:
            commits = history(fetch_metrics(github, site.repository, site.metrics_path))
    if not commits:
        raise GitHubError(f"No metrics found for {site.repository}:{site.metrics_path}")
    styles = site.styles.page()
    classes = styles.register("test262")
    intro = page.body if page.body.strip() else (
        f"[Test262]({TEST262_URL}) is the official test suite of the ECMAScript specification."
    )
    body = (
        f"<h1>{html.escape(page.title or 'Test262')}</h1>"
        f"{markdown_section(intro, styles)}"
        f"{render_chart(commits, classes_of(classes, 'chart'))}"
        f"{results_table(commits[-1], site.repository, classes)}"
        "<p>A more detailed breakdown of the current test results can be viewed on "
        f'<a href="{TEST262_FYI_URL}">test262.fyi</a>.</p>'
    )
    html_doc = document(
        layout(body, styles, site.paths),
        styles,
        site,
        title=page_title(page.title or "Test262", site),
        description=page.description or None,
        canonical=page.file,
    )
    output = site.paths.output(page.file)
    write_text(output, html_doc)
    return [output]


def build_blog_index(site: Site, posts: Sequence[Post]) -> list[Path]:
    page = load_page(site.content_root / "blog" / "index.md")
    styles = site.styles.page()
    classes = styles.register("blog_index")
    cards = "".join(post_card(post, styles, site.paths) for post in posts)
    body = (
        f"<h1>{html.escape(page.title or 'Blog')}</h1>"
        f'<ul class="{classes_of(classes, "list")}">{cards}</ul>'
    )
    html_doc = document(
        layout(body, styles, site.paths),
        styles,
        site,
        title=page_title(page.title or "Blog", site, separator="▲"),
        description=page.description or None,
        canonical=page.file,
    )
    output = site.paths.output(page.file)
    write_text(output, html_doc)
    return [output, *build_feeds(site, posts)]


def build_posts(site: Site, posts: Sequence[Post]) -> list[Path]:
    outputs = []
    for post in posts:
        styles = site.styles.page()
        html_doc = document(
            layout(blog_post(post, styles), styles, site.paths),
            styles,
            site,
            title=page_title(post.meta.title, site),
            description=post.meta.description,
            canonical=post.file,
            authors=[author.name for author in post.meta.authors],
            og_type="article",
        )
        output = site.paths.output(post.file)
        write_text(output, html_doc)
        outputs.append(output)
    return outputs


def build_sitemap(site: Site, posts: Sequence[Post]) -> list[Path]:
    items = [f"  <url><loc>{html.escape(site.paths.absolute_href(path))}</loc></url>" for path in SITEMAP_PAGES]
    for post in posts:
        items.append(
            "\n".join(
                [
                    "  <url>",
                    f"    <loc>{html.escape(site.paths.absolute_href(post.file))}</loc>",
                    f"    <lastmod>{post.meta.date.isoformat()}</lastmod>",
                    "  </url>",
                ]
            )
        )
    sitemap = "\n".join(
        [
            '<?xml version="1.0" encoding="UTF-8"?>',
            '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
            *items,
            "</urlset>",
        ]
    )
    output = site.paths.output(site.content_root / "sitemap", ".xml")
    write_text(output, sitemap)
    return [output]


def build_public(site: Site, posts: Sequence[Post]) -> list[Path]:
    if site.public_dir is None or not site.public_dir.exists():
        return []
    return copy_static(site.public_dir, Path(site.paths.build_root))


@dataclass(frozen=True)
class PageTask:
    name: str
    build: Callable[[Site, Sequence[Post]], list[Path]]
    needs_posts: bool = True


PAGES = (
    PageTask("index", build_home),
    PageTask("talks", build_talks, needs_posts=False),
    PageTask("contributing", build_contributing, needs_posts=False),
    PageTask("test262", build_test262, needs_posts=False),
    PageTask("blog", build_blog_index),
    PageTask("posts", build_posts),
    PageTask("sitemap", build_sitemap),
    PageTask("public", build_public, needs_posts=False),
)
