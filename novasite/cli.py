from __future__ import annotations

import argparse
import functools
import os
import posixpath
import sys
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Optional, Sequence

from .config import apply_environment, load_config
from .content import Post, PostError, all_posts
from .pages import PAGES, PageTask
from .paths import PathResolver, normalize_base_path
from .render import Site
from .styles import StyleRegistry
from .utils import clean_output_dir, parse_bool, parse_int, write_cname, write_nojekyll

DEFAULT_LOCATION = "https://trynova.dev"
DEFAULT_DESCRIPTION = "Nova is a JavaScript and WebAssembly engine written in Rust."


def select_pages(names: Optional[Sequence[str]]) -> list[PageTask]:
    if not names:
        return list(PAGES)
    wanted = set(names)
    return [task for task in PAGES if task.name in wanted]


def make_site(args: argparse.Namespace) -> Site:
    return Site(
        paths=PathResolver(
            content_root=Path(args.content),
            build_root=Path(args.output),
            base_path=normalize_base_path(args.base_path),
            origin=(args.location or "").rstrip("/"),
        ),
        styles=StyleRegistry(),
        name=args.site_name,
        description=args.site_description,
        language=args.language,
        repository=args.repository,
        metrics_path=args.metrics_path,
        github_token=args.github_token or None,
        public_dir=Path(args.public),
    )


def build_site(args: argparse.Namespace) -> list[tuple[str, BaseException]]:
    """Build the selected pages and return the ones that failed with their errors."""
    content_dir = Path(args.content)
    public_dir = Path(args.public)
    output_dir = Path(args.output)
    project_root = Path.cwd()

    if not content_dir.exists():
        print(f"Content directory not found: {content_dir}", file=sys.stderr)
        sys.exit(1)

    build_workers = int(getattr(args, "build_workers", 0) or 0)
    if build_workers <= 0:
        build_workers = os.cpu_count() or 1
    build_workers = max(1, min(build_workers, 32))

    tasks = select_pages(args.page)
    if args.clean and not args.page:
        clean_output_dir(output_dir, project_root, protected=[content_dir, public_dir])
    output_dir.mkdir(parents=True, exist_ok=True)

    site = make_site(args)
    failures: list[tuple[str, BaseException]] = []

    posts: tuple[Post, ...] = ()
    posts_error: Optional[BaseException] = None
    if any(task.needs_posts for task in tasks):
        try:
            posts = all_posts(site.posts_dir)
        except (PostError, OSError) as exc:
            posts_error = exc
            print(f"Failed to load posts: {exc}", file=sys.stderr)

    runnable = []
    for task in tasks:
        if task.needs_posts and posts_error is not None:
            failures.append((task.name, posts_error))
            print(f"Failed: {task.name}: posts could not be loaded", file=sys.stderr)
        else:
            runnable.append(task)

    workers = min(build_workers, len(runnable)) if runnable else 1
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(task.build, site, posts): task for task in runnable}
        for future in as_completed(futures):
            task = futures[future]
            try:
                written = future.result()
            except Exception as exc:  # reported below; other pages keep building
                failures.append((task.name, exc))
                print(f"Failed: {task.name}: {exc}", file=sys.stderr)
                continue
            for path in written:
                print(f"Built: {path}")

    custom_domain = (args.custom_domain or "").strip()
    if custom_domain:
        write_cname(output_dir, custom_domain)
    if args.write_nojekyll:
        write_nojekyll(output_dir)
    return failures


class PageRequestHandler(SimpleHTTPRequestHandler):
    """Serves ``/talks`` from ``talks.html`` the way the deployed site does."""

    def rewrite_path(self) -> None:
        path, _, query = self.path.partition("?")
        if path.endswith("/") or posixpath.splitext(path)[1]:
            return
        # Directories such as /blog fall through to their index.html.
        if os.path.isfile(self.translate_path(f"{path}.html")):
            self.path = f"{path}.html" + (f"?{query}" if query else "")

    def do_GET(self) -> None:
        self.rewrite_path()
        super().do_GET()

    def do_HEAD(self) -> None:
        self.rewrite_path()
        super().do_HEAD()


def serve(output_dir: Path, port: int) -> None:
    handler = functools.partial(PageRequestHandler, directory=str(output_dir))
    with ThreadingHTTPServer(("", port), handler) as server:
        print(f"Serving {output_dir} at http://localhost:{port}/")
        try:
            server.serve_forever()
        except KeyboardInterrupt:
            print("Stopped.")


def main(argv: Optional[Sequence[str]] = None) -> None:
    pre_parser = argparse.ArgumentParser(add_help=False)
    pre_parser.add_argument(
        "--config",
        default="site.toml",
        help="Path to site config file (TOML/YAML/JSON).",
    )
    pre_args, _ = pre_parser.parse_known_args(argv)
    config = apply_environment(load_config(Path(pre_args.config)))

    def cfg_value(key: str, default: object) -> object:
        value = config.get(key)
        return default if value is None else value

    def cfg_str(key: str, default: str) -> str:
        return str(cfg_value(key, default))

    def cfg_bool(key: str, default: bool) -> bool:
        return parse_bool(cfg_value(key, default))

    def cfg_int(key: str, default: int) -> int:
        return parse_int(cfg_value(key, default), default)

    parser = argparse.ArgumentParser(description="Static site generator for the Nova website.")
    parser.add_argument("--config", default=pre_args.config, help="Path to site config file (TOML/YAML/JSON).")
    parser.add_argument("--content", default=cfg_str("content", "content"), help="Directory containing page sources.")
    parser.add_argument("--public", default=cfg_str("public", "public"), help="Directory of static assets.")
    parser.add_argument("--output", default=cfg_str("output", "build"), help="Output directory for the site.")
    parser.add_argument(
        "--base-path",
        default=cfg_str("base_path", ""),
        help="URL prefix the site is served under (env BASE_PATH).",
    )
    parser.add_argument(
        "--location",
        default=cfg_str("location", DEFAULT_LOCATION),
        help="Origin used for absolute links, feeds and the sitemap (env LOCATION).",
    )
    parser.add_argument("--site-name", default=cfg_str("site_name", "Nova"), help="Site title.")
    parser.add_argument(
        "--site-description",
        default=cfg_str("site_description", DEFAULT_DESCRIPTION),
        help="Site description.",
    )
    parser.add_argument("--language", default=cfg_str("language", "en"), help="Document and feed language.")
    parser.add_argument(
        "--repository",
        default=cfg_str("repository", "trynova/nova"),
        help="GitHub repository whose test262 metrics are charted.",
    )
    parser.add_argument(
        "--metrics-path",
        default=cfg_str("metrics_path", "tests/metrics.json"),
        help="Path of the metrics document inside the repository.",
    )
    parser.add_argument(
        "--github-token",
        default=cfg_str("github_token", ""),
        help="GitHub API token (env GITHUB_TOKEN).",
    )
    parser.add_argument(
        "--build-workers",
        default=cfg_int("build_workers", 0),
        type=int,
        help="Number of worker threads for page builds (0 = auto).",
    )
    parser.add_argument(
        "--page",
        action="append",
        choices=[task.name for task in PAGES],
        help="Build only this page (repeatable).",
    )
    parser.add_argument(
        "--clean",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("clean", True),
        help="Clean output directory before a full build.",
    )
    parser.add_argument(
        "--write-nojekyll",
        action=argparse.BooleanOptionalAction,
        default=cfg_bool("write_nojekyll", True),
        help="Write .nojekyll in the output directory.",
    )
    parser.add_argument(
        "--custom-domain",
        default=cfg_str("custom_domain", ""),
        help="Custom domain to write into CNAME.",
    )
    parser.add_argument("--serve", action="store_true", help="Serve the output directory after building.")
    parser.add_argument("--port", default=cfg_int("port", 8000), type=int, help="Port for --serve.")
    args = parser.parse_args(argv)

    start = time.perf_counter()
    failures = build_site(args)
    elapsed = time.perf_counter() - start
    if failures:
        names = ", ".join(name for name, _ in failures)
        print(f"Build failed after {elapsed:.2f}s: {names}", file=sys.stderr)
        sys.exit(1)
    print(f"Build completed in {elapsed:.2f}s.")
    print(f"Site generated in: {args.output}")
    if args.serve:
        serve(Path(args.output), args.port)
