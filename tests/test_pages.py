import contextlib
import datetime as dt
import io
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from novasite.cli import build_site, select_pages
from novasite.content import PostError, all_posts
from novasite.github import GitHubError
from novasite.metrics import RESULTS, Commit, Metrics
from novasite.pages import (
    build_blog_index,
    build_contributing,
    build_home,
    build_posts,
    build_sitemap,
    build_talks,
    build_test262,
    page_title,
)

from support import make_args, make_site, write_file, write_pages, write_post


def make_commit(sha, day, passed):
    results = {result: 0 for result in RESULTS}
    results["pass"] = passed
    results["fail"] = 100 - passed
    return Commit(sha, f"Commit {sha}", dt.datetime(2024, 1, day, tzinfo=dt.timezone.utc), Metrics(results, 100))


class PageTestCase(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)
        self.site = make_site(self.root)
        write_pages(self.site.content_root)

    def tearDown(self):
        self.tmp.cleanup()

    def read(self, path):
        return path.read_text(encoding="utf-8")


class TestPages(PageTestCase):
    def test_page_title(self):
        self.assertEqual(page_title("Talks", self.site), "Talks · Nova")
        self.assertEqual(page_title("Nova", self.site), "Nova")
        self.assertEqual(page_title("Blog", self.site, separator="▲"), "Blog ▲ Nova")

    def test_blog_index_lists_posts_and_writes_feeds(self):
        write_post(self.site.posts_dir, "t.md")
        outputs = build_blog_index(self.site, all_posts(self.site.posts_dir))
        index = self.root / "build" / "blog" / "index.html"
        self.assertEqual(outputs[0], index)
        page = self.read(index)
        self.assertIn("<title>Blog ▲ Nova</title>", page)
        self.assertIn("T", page)
        self.assertIn('datetime="2024-01-01"', page)
        self.assertIn('href="/blog/posts/t"', page)
        self.assertTrue((self.root / "build" / "blog" / "feed.rss").exists())

    def test_page_only_inlines_styles_it_used(self):
        write_post(self.site.posts_dir, "t.md")
        posts = all_posts(self.site.posts_dir)
        build_talks(self.site, posts)
        build_blog_index(self.site, posts)
        talks_classes = self.site.styles.register("talk")
        card_classes = self.site.styles.register("blog_post_card")
        blog = self.read(self.root / "build" / "blog" / "index.html")
        talks = self.read(self.root / "build" / "talks.html")
        self.assertIn(card_classes["container"], blog)
        self.assertNotIn(talks_classes["talk"], blog)
        self.assertIn(talks_classes["talk"], talks)

    def test_home_previews_latest_posts(self):
        write_post(self.site.posts_dir, "a.md", title="Alpha", date='"2024-02-01"')
        write_post(self.site.posts_dir, "b.md", title="Beta", date='"2024-03-01"')
        build_home(self.site, all_posts(self.site.posts_dir))
        page = self.read(self.root / "build" / "index.html")
        self.assertIn("<strong>Nova</strong>", page)
        self.assertLess(page.index("Beta"), page.index("Alpha"))
        self.assertIn('<link rel="canonical" href="https://example.org/" />', page)

    def test_posts_are_rendered_at_their_output_paths(self):
        write_post(
            self.site.posts_dir,
            "2024/deep.md",
            title="Deep",
            authors="[{name: A, url: 'https://example.org/a'}]",
            body="```js\nlet x = 1;\n```\n",
        )
        outputs = build_posts(self.site, all_posts(self.site.posts_dir))
        expected = self.root / "build" / "blog" / "posts" / "2024" / "deep.html"
        self.assertEqual(outputs, [expected])
        page = self.read(expected)
        self.assertIn('<meta property="og:type" content="article" />', page)
        self.assertIn('<meta name="author" content="A" />', page)
        self.assertIn('class="codehilite"', page)
        self.assertIn("https://example.org/blog/posts/2024/deep", page)

    def test_talks_page(self):
        build_talks(self.site, ())
        page = self.read(self.root / "build" / "talks.html")
        self.assertIn("Engine talk", page)
        self.assertIn("youtube-nocookie.com/embed/WKGo1k47eYQ", page)
        self.assertIn("@ Meetup", page)

    def test_sitemap(self):
        write_post(self.site.posts_dir, "t.md", date='"2024-05-06"')
        outputs = build_sitemap(self.site, all_posts(self.site.posts_dir))
        self.assertEqual(outputs, [self.root / "build" / "sitemap.xml"])
        sitemap = self.read(outputs[0])
        self.assertIn("<loc>https://example.org/talks</loc>", sitemap)
        self.assertIn("<loc>https://example.org/blog/posts/t</loc>", sitemap)
        self.assertIn("<lastmod>2024-05-06</lastmod>", sitemap)

    def test_contributing_fetches_the_guide(self):
        write_file(
            self.site.content_root / "contributing.md",
            "---\ntitle: Contributing\nsource: https://example.org/CONTRIBUTING.md\n---\n",
        )
        session = mock.Mock()
        session.get.return_value = mock.Mock(status_code=200, text="# Guide\n\nOpen a PR.")
        build_contributing(self.site, (), session=session)
        session.get.assert_called_once()
        self.assertEqual(session.get.call_args[0][0], "https://example.org/CONTRIBUTING.md")
        page = self.read(self.root / "build" / "contributing.html")
        self.assertIn("Open a PR.", page)

    def test_contributing_falls_back_to_page_body(self):
        build_contributing(self.site, ())
        self.assertIn("Send patches.", self.read(self.root / "build" / "contributing.html"))

    def test_test262_page(self):
        commits = [make_commit("a" * 40, 1, 40), make_commit("b" * 40, 2, 55)]
        build_test262(self.site, (), commits=commits)
        page = self.read(self.root / "build" / "test262.html")
        self.assertIn("<svg", page)
        self.assertIn('data-result="pass"', page)
        self.assertIn("55 (55.0%)", page)
        self.assertIn("https://github.com/trynova/nova/commit/" + "b" * 40, page)

    def test_test262_fetches_with_a_closed_client(self):
        commits = [make_commit("c" * 40, 3, 70)]
        with mock.patch("novasite.pages.GitHubClient") as client_class, mock.patch(
            "novasite.pages.fetch_metrics", return_value=iter(commits)
        ) as fetch:
            client = client_class.return_value
            client.__enter__.return_value = client
            build_test262(self.site, ())
        client_class.assert_called_once_with(None)
        fetch.assert_called_once_with(client, "trynova/nova", "tests/metrics.json")
        client.__exit__.assert_called_once()
        self.assertIn("70 (70.0%)", self.read(self.root / "build" / "test262.html"))

    def test_test262_without_commits_fails(self):
        with self.assertRaises(GitHubError):
            build_test262(self.site, (), commits=[])

    def test_base_path_prefixes_links(self):
        site = make_site(self.root, base_path="/nova", origin="https://example.org/nova")
        write_post(site.posts_dir, "t.md")
        build_blog_index(site, all_posts(site.posts_dir))
        page = self.read(self.root / "build" / "blog" / "index.html")
        self.assertIn('href="/nova/blog/posts/t"', page)
        self.assertIn('href="/nova/index.css"', page)
        self.assertIn("https://example.org/nova/blog/feed.rss", page)


class TestBuildSite(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)
        write_pages(self.root / "content")
        write_file(self.root / "public" / "index.css", ":root { color: black; }")
        self.build = self.root / "build"

    def tearDown(self):
        self.tmp.cleanup()

    def run_build(self, args):
        stdout, stderr = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
            failures = build_site(args)
        return failures, stdout.getvalue(), stderr.getvalue()

    def test_select_pages(self):
        self.assertEqual(len(select_pages(None)), 8)
        self.assertEqual([task.name for task in select_pages(["blog", "talks"])], ["talks", "blog"])

    def test_full_build(self):
        write_post(self.root / "content" / "blog" / "posts", "t.md")
        commits = [make_commit("a" * 40, 1, 40)]
        with mock.patch("novasite.pages.fetch_metrics", return_value=iter(commits)):
            failures, stdout, _ = self.run_build(make_args(self.root, custom_domain="trynova.dev"))
        self.assertEqual(failures, [])
        for rel in (
            "index.html",
            "talks.html",
            "contributing.html",
            "test262.html",
            "blog/index.html",
            "blog/posts/t.html",
            "blog/feed.atom",
            "sitemap.xml",
            "index.css",
            ".nojekyll",
        ):
            self.assertTrue((self.build / rel).exists(), rel)
        self.assertEqual((self.build / "CNAME").read_text(encoding="utf-8"), "trynova.dev\n")
        self.assertIn("Built: ", stdout)

    def test_broken_post_does_not_stop_other_pages(self):
        posts_dir = self.root / "content" / "blog" / "posts"
        write_post(posts_dir, "good.md")
        write_file(posts_dir / "broken.md", "---\ndescription: D\ndate: 2024-01-01\n---\nHello\n")
        failures, _, stderr = self.run_build(make_args(self.root, page=["talks", "blog"]))
        self.assertEqual([name for name, _ in failures], ["blog"])
        error = failures[0][1]
        self.assertIsInstance(error, PostError)
        self.assertIn("broken.md", str(error))
        self.assertIn("broken.md", stderr)
        self.assertTrue((self.build / "talks.html").exists())
        self.assertFalse((self.build / "blog" / "index.html").exists())

    def test_metrics_failure_does_not_stop_other_pages(self):
        with mock.patch("novasite.pages.fetch_metrics", side_effect=GitHubError("rate limited")):
            failures, _, stderr = self.run_build(make_args(self.root, page=["talks", "test262"]))
        self.assertEqual([name for name, _ in failures], ["test262"])
        self.assertIn("Failed: test262: rate limited", stderr)
        self.assertTrue((self.build / "talks.html").exists())
        self.assertFalse((self.build / "test262.html").exists())

    def test_missing_content_dir_exits(self):
        args = make_args(self.root, content=str(self.root / "missing"))
        with self.assertRaises(SystemExit) as cm:
            self.run_build(args)
        self.assertEqual(cm.exception.code, 1)


if __name__ == "__main__":
    unittest.main()
