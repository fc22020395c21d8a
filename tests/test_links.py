"""Tests for origin normalization and same-origin link discovery."""

import pytest

from pipelines.links import extract_links, normalize_url, origin_of

BASE = "https://docs.example.com/guide/start"


class TestOriginOf:
    @pytest.mark.parametrize("url,expected", [
        ("https://docs.example.com/a/b?c=1#d", "https://docs.example.com"),
        ("HTTPS://Docs.Example.COM", "https://docs.example.com"),
        ("https://docs.example.com:443/", "https://docs.example.com"),
        ("http://docs.example.com:80/", "http://docs.example.com"),
        ("http://docs.example.com:8080/x", "http://docs.example.com:8080"),
        ("http://[::1]:8000/", "http://[::1]:8000"),
    ])
    def test_normalizes(self, url, expected):
        assert origin_of(url) == expected

    @pytest.mark.parametrize("url", [
        "/relative/path",
        "docs.example.com",
        "ftp://docs.example.com/",
        "mailto:someone@example.com",
        "https://",
        "http://example.com:notaport/",
    ])
    def test_rejects(self, url):
        assert origin_of(url) is None


class TestNormalizeUrl:
    def test_drops_fragment(self):
        assert normalize_url("https://a.com/page#section") == "https://a.com/page"

    def test_empty_path_becomes_root(self):
        assert normalize_url("https://a.com") == "https://a.com/"
        assert normalize_url("https://a.com#top") == "https://a.com/"

    def test_keeps_query(self):
        assert normalize_url("https://a.com/p?x=1#y") == "https://a.com/p?x=1"

    def test_canonical_host_and_port(self):
        """Host case and default ports do not create distinct spellings."""
        for url in ("https://DOCS.Example.com/a", "HTTPS://docs.example.com:443/a", "https://docs.example.com/a"):
            assert normalize_url(url) == "https://docs.example.com/a"
        assert normalize_url("http://a.com:8080/x") == "http://a.com:8080/x"

    def test_path_case_is_kept(self):
        assert normalize_url("https://a.com/Docs/Intro") == "https://a.com/Docs/Intro"

    def test_rejects_non_http(self):
        assert normalize_url("mailto:a@b.c") is None
        assert normalize_url("/relative") is None


class TestExtractLinks:
    def test_resolves_relative_links(self):
        html = '<a href="next">n</a><a href="/root">r</a><a href="../up">u</a>'
        links = extract_links(html, BASE, depth=0)
        assert [l.href for l in links] == [
            "https://docs.example.com/guide/next",
            "https://docs.example.com/root",
            "https://docs.example.com/up",
        ]
        assert all(l.depth == 1 for l in links)

    def test_depth_is_incremented(self):
        links = extract_links('<a href="/x">x</a>', BASE, depth=1)
        assert links[0].depth == 2

    def test_only_same_origin(self):
        html = ('<a href="https://other.example.com/">o</a>'
                '<a href="http://docs.example.com/">scheme differs</a>'
                '<a href="https://docs.example.com:8443/">port differs</a>'
                '<a href="https://docs.example.com/ok">ok</a>')
        links = extract_links(html, BASE, depth=0)
        assert [l.href for l in links] == ["https://docs.example.com/ok"]

    def test_skips_mailto_and_javascript(self):
        html = ('<a href="mailto:a@b.c">m</a>'
                '<a href="JavaScript:void(0)">j</a>'
                '<a href="/real">r</a>')
        links = extract_links(html, BASE, depth=0)
        assert [l.href for l in links] == ["https://docs.example.com/real"]

    def test_fragments_collapse_to_one_link(self):
        html = '<a href="/p#a">a</a><a href="/p#b">b</a><a href="/p">c</a><a href="#top">t</a>'
        links = extract_links(html, BASE, depth=0)
        assert [l.href for l in links] == [
            "https://docs.example.com/p",
            "https://docs.example.com/guide/start",
        ]

    def test_anchors_without_href_are_ignored(self):
        assert extract_links('<a name="x">no href</a>', BASE, depth=0) == []

    def test_malformed_href_is_skipped(self):
        html = '<a href="http://[invalid">bad</a><a href="/good">g</a>'
        links = extract_links(html, BASE, depth=0)
        assert [l.href for l in links] == ["https://docs.example.com/good"]

    def test_host_case_and_default_port_collapse(self):
        """Differently spelled links to one resource yield one queue item."""
        html = ('<a href="/a">a</a>'
                '<a href="https://DOCS.example.com/a">upper</a>'
                '<a href="https://docs.example.com:443/a">port</a>'
                '<a href="https://Docs.Example.com">root</a>')
        links = extract_links(html, BASE, depth=0)
        assert [l.href for l in links] == [
            "https://docs.example.com/a",
            "https://docs.example.com/",
        ]
