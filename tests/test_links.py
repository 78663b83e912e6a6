from __future__ import annotations

from linkscope.core.links import extract_links, is_valid_link


def test_plain_text_has_no_links() -> None:
    assert extract_links("") == []
    assert extract_links("nothing to see here, move along.") == []
    assert extract_links("ftp://example.com/file and mailto:someone@example.com") == []


def test_trailing_period_and_paren_are_dropped() -> None:
    assert extract_links("check this https://example.com/page.") == ["https://example.com/page"]
    assert extract_links("(see https://example.com/a)") == ["https://example.com/a"]
    assert extract_links("really? https://example.com/b)!") == ["https://example.com/b"]


def test_balanced_parens_stay_in_url() -> None:
    text = "https://en.wikipedia.org/wiki/Python_(programming_language)."
    assert extract_links(text) == ["https://en.wikipedia.org/wiki/Python_(programming_language)"]


def test_links_inside_delimiters() -> None:
    text = 'wrapped <https://example.com/x> and "http://example.org/y" here'
    assert extract_links(text) == ["https://example.com/x", "http://example.org/y"]


def test_duplicates_removed_in_first_seen_order() -> None:
    text = "https://b.example https://a.example https://b.example https://a.example."
    assert extract_links(text) == ["https://b.example", "https://a.example"]


def test_unsafe_and_hostless_candidates_rejected() -> None:
    assert extract_links("https://example.com/{id}") == []
    assert extract_links("https:// nothing") == []
    assert extract_links("http://example.com:99999/") == []


def test_is_valid_link() -> None:
    assert is_valid_link("https://example.com")
    assert is_valid_link("HTTP://EXAMPLE.COM/path?q=1")
    assert not is_valid_link("example.com")
    assert not is_valid_link("javascript:alert(1)")
