from __future__ import annotations

from raindrop_sync.core.text_utils import title_sort_key


def test_title_sort_key_ignores_case():
    titles = ["beta", "Alpha", "GAMMA", "alpha"]

    ordered = sorted(titles, key=title_sort_key)

    assert [t.casefold() for t in ordered] == ["alpha", "alpha", "beta", "gamma"]
    assert title_sort_key("Straße") == title_sort_key("STRASSE")


def test_title_sort_key_tolerates_nul():
    assert title_sort_key("a\x00b") == title_sort_key("ab")
