import unittest
from pathlib import Path

from novasite.paths import PathResolver, is_url, normalize_base_path

CONTENT = Path("/site/content")
BUILD = Path("/site/build")


class TestPathResolver(unittest.TestCase):
    def setUp(self):
        self.paths = PathResolver(CONTENT, BUILD, "/nova", "https://example.org/nova")

    def test_output_replaces_root_and_extension(self):
        post = CONTENT / "blog" / "posts" / "hello.md"
        self.assertEqual(self.paths.output(post), BUILD / "blog" / "posts" / "hello.html")

    def test_output_keeps_non_page_extensions(self):
        self.assertEqual(self.paths.output(CONTENT / "blog" / "feed.rss"), BUILD / "blog" / "feed.rss")

    def test_output_with_explicit_suffix(self):
        self.assertEqual(self.paths.output(CONTENT / "sitemap", ".xml"), BUILD / "sitemap.xml")
        self.assertEqual(self.paths.output(CONTENT / "sitemap.md", ".xml"), BUILD / "sitemap.xml")

    def test_output_round_trips_to_the_content_path(self):
        for rel in ("index.md", "talks.md", "blog/index.md", "blog/posts/2024/a.b.md"):
            source = CONTENT / rel
            output = self.paths.output(source)
            self.assertEqual(output.suffix, ".html")
            restored = CONTENT / output.relative_to(BUILD).with_suffix(".md")
            self.assertEqual(restored, source)

    def test_href_strips_root_and_extension(self):
        post = CONTENT / "blog" / "posts" / "hello.md"
        self.assertEqual(self.paths.href(post), "/nova/blog/posts/hello")
        self.assertEqual(self.paths.absolute_href(post), "https://example.org/nova/blog/posts/hello")

    def test_href_of_site_relative_path(self):
        self.assertEqual(self.paths.href("/talks"), "/nova/talks")
        self.assertEqual(self.paths.href("/blog/"), "/nova/blog/")
        self.assertEqual(self.paths.absolute_href(""), "https://example.org/nova")

    def test_href_without_base_path(self):
        paths = PathResolver(CONTENT, BUILD)
        self.assertEqual(paths.href(CONTENT / "talks.md"), "/talks")

    def test_urls_are_left_alone(self):
        url = "https://github.com/trynova/nova/blob/main/README.md"
        self.assertEqual(self.paths.href(url), url)
        self.assertEqual(self.paths.absolute_href(url), url)
        self.assertTrue(is_url("//cdn.example.org/x.css"))
        self.assertFalse(is_url(Path("/site/content/a.md")))

    def test_file_href_keeps_extension(self):
        feed = CONTENT / "blog" / "feed.rss"
        self.assertEqual(self.paths.file_href(feed), "/nova/blog/feed.rss")
        self.assertEqual(self.paths.file_href(feed, absolute=True), "https://example.org/nova/blog/feed.rss")


class TestNormalizeBasePath(unittest.TestCase):
    def test_normalize(self):
        self.assertEqual(normalize_base_path(""), "")
        self.assertEqual(normalize_base_path("/"), "")
        self.assertEqual(normalize_base_path("nova/"), "/nova")
        self.assertEqual(normalize_base_path("/docs/nova"), "/docs/nova")


if __name__ == "__main__":
    unittest.main()
