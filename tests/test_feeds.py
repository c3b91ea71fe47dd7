import datetime as dt
import json
import tempfile
import unittest
from pathlib import Path

from novasite.content import all_posts
from novasite.feeds import build_feeds, copyright_notice, json_feed, post_datetime

from support import make_site, write_post


class TestFeeds(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)
        self.site = make_site(self.root, base_path="/nova", origin="https://example.org/nova")
        write_post(
            self.site.posts_dir,
            "older.md",
            title="Older",
            date='"2024-01-01"',
            authors="[{name: A, url: 'https://example.org/a'}, {name: B}]",
            body="First *post*.",
        )
        write_post(self.site.posts_dir, "newer.md", title="Newer", date='"2024-03-01"')
        self.posts = all_posts(self.site.posts_dir)

    def tearDown(self):
        self.tmp.cleanup()

    def test_writes_three_feeds(self):
        outputs = build_feeds(self.site, self.posts)
        build = self.root / "build" / "blog"
        self.assertEqual(outputs, [build / "feed.rss", build / "feed.atom", build / "feed.json"])
        for path in outputs:
            self.assertTrue(path.exists())

    def test_rss_and_atom_contain_entries_newest_first(self):
        build_feeds(self.site, self.posts)
        build = self.root / "build" / "blog"
        for name in ("feed.rss", "feed.atom"):
            text = (build / name).read_text(encoding="utf-8")
            self.assertIn("<title>Older</title>", text)
            self.assertIn("<title>Newer</title>", text)
            self.assertLess(text.index("<title>Newer</title>"), text.index("<title>Older</title>"))
            self.assertIn("https://example.org/nova/blog/posts/older", text)
        atom = (build / "feed.atom").read_text(encoding="utf-8")
        self.assertIn("<name>A</name>", atom)
        self.assertIn("<uri>https://example.org/a</uri>", atom)

    def test_json_feed(self):
        feed = json.loads(json_feed(self.site, self.posts))
        self.assertEqual(feed["version"], "https://jsonfeed.org/version/1.1")
        self.assertEqual(feed["home_page_url"], "https://example.org/nova/blog")
        self.assertEqual(feed["feed_url"], "https://example.org/nova/blog/feed.json")
        self.assertEqual([item["title"] for item in feed["items"]], ["Newer", "Older"])
        older = feed["items"][1]
        self.assertEqual(older["date_published"], "2024-01-01T00:00:00+00:00")
        self.assertIn("<em>post</em>", older["content_html"])
        self.assertEqual(older["authors"], [{"name": "A", "url": "https://example.org/a"}, {"name": "B"}])
        self.assertNotIn("authors", feed["items"][0])

    def test_empty_blog(self):
        feed = json.loads(json_feed(self.site, ()))
        self.assertEqual(feed["items"], [])
        build_feeds(self.site, ())
        self.assertTrue((self.root / "build" / "blog" / "feed.rss").exists())


class TestHelpers(unittest.TestCase):
    def test_post_datetime_is_utc_midnight(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = write_post(Path(tmp), "p.md", date='"2024-09-14"')
            post = all_posts(Path(tmp))[0]
        self.assertEqual(post.file, path)
        self.assertEqual(post_datetime(post), dt.datetime(2024, 9, 14, tzinfo=dt.timezone.utc))

    def test_copyright_notice(self):
        with tempfile.TemporaryDirectory() as tmp:
            site = make_site(Path(tmp))
        self.assertEqual(copyright_notice(site), f"Copyleft {dt.date.today().year} The Nova Contributors")


if __name__ == "__main__":
    unittest.main()
