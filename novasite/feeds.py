from __future__ import annotations

import datetime as dt
import json
from pathlib import Path
from typing import Sequence

from feedgen.feed import FeedGenerator

from .content import Post
from .render import Site, markdown_to_html, write_text

JSON_FEED_VERSION = "https://jsonfeed.org/version/1.1"


def post_datetime(post: Post) -> dt.datetime:
    return dt.datetime.combine(post.meta.date, dt.time(), tzinfo=dt.timezone.utc)


def feed_title(site: Site) -> str:
    return f"{site.name} Blog"


def copyright_notice(site: Site) -> str:
    return f"Copyleft {dt.date.today().year} The {site.name} Contributors"


def build_feed_generator(site: Site, posts: Sequence[Post]) -> FeedGenerator:
    blog_url = site.paths.absolute_href("/blog")
    fg = FeedGenerator()
    fg.id(blog_url)
    fg.title(feed_title(site))
    fg.description(site.description or feed_title(site))
    fg.link(href=blog_url, rel="alternate")
    fg.language(site.language)
    fg.icon(site.paths.file_href("/favicon.svg", absolute=True))
    fg.rights(copyright_notice(site))
    if posts:
        fg.updated(post_datetime(posts[0]))

    for post in posts:
        link = site.paths.absolute_href(post.file)
        fe = fg.add_entry(order="append")
        fe.id(link)
        fe.guid(link, permalink=True)
        fe.title(post.meta.title)
        fe.link(href=link)
        fe.description(post.meta.description)
        fe.content(markdown_to_html(post.body), type="html")
        for author in post.meta.authors:
            entry = {"name": author.name}
            if author.url:
                entry["uri"] = author.url
            fe.author(entry)
        fe.published(post_datetime(post))
        fe.updated(post_datetime(post))
    return fg


def json_feed(site: Site, posts: Sequence[Post]) -> str:
    items = []
    for post in posts:
        link = site.paths.absolute_href(post.file)
        item = {
            "id": link,
            "url": link,
            "title": post.meta.title,
            "summary": post.meta.description,
            "content_html": markdown_to_html(post.body),
            "date_published": post_datetime(post).isoformat(),
        }
        if post.meta.authors:
            item["authors"] = [
                {"name": author.name, **({"url": author.url} if author.url else {})}
                for author in post.meta.authors
            ]
        items.append(item)
    feed = {
        "version": JSON_FEED_VERSION,
        "title": feed_title(site),
        "home_page_url": site.paths.absolute_href("/blog"),
        "feed_url": site.paths.file_href(site.feed_path(".json"), absolute=True),
        "description": site.description or feed_title(site),
        "favicon": site.paths.file_href("/favicon.svg", absolute=True),
        "language": site.language,
        "items": items,
    }
    return json.dumps(feed, indent=2, ensure_ascii=False)


def build_feeds(site: Site, posts: Sequence[Post]) -> list[Path]:
    fg = build_feed_generator(site, posts)
    outputs = {
        site.paths.output(site.feed_path(".rss")): fg.rss_str(pretty=True).decode("utf-8"),
        site.paths.output(site.feed_path(".atom")): fg.atom_str(pretty=True).decode("utf-8"),
        site.paths.output(site.feed_path(".json")): json_feed(site, posts),
    }
    for path, text in outputs.items():
        write_text(path, text)
    return list(outputs)
