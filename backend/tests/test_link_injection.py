"""Tests for LinkInjector and the keyword link rewrite.

Tests cover:
- First match in the first eligible block is linked, original casing kept
- Hero block protected for non-default content types only
- Longest keyword wins; whole-word matching with Unicode letters
- Numerics that are not letters (superscripts, fractions) act as boundaries
- Blocks that already contain a link are skipped
- Destinations already on the page (tree, comments, embeds) not re-added
- At most one link per destination; second pass is a no-op
- Self-links never inserted
- Headings, lists, tables, FAQ, template embeds and scripts never linked
- Non-breaking spaces preserved in anchor text
- Matches spanning inline markup link only the starting text node
- Output escaping; markup returned untouched when nothing is inserted
"""

import pytest
from bs4 import BeautifulSoup

from link_manager.schemas.link_mapping import LinkMapping, PageMeta
from link_manager.services.link_injection import (
    LinkInjector,
    TextRun,
    collect_text_nodes,
    compile_keyword_pattern,
    rewrite,
    search_keyword,
)

DOGS = [LinkMapping(keywords=["dogs"], url="https://x.com/dogs")]
DOGS_LINK = '<a href="https://x.com/dogs">dogs</a>'


@pytest.fixture
def injector(site_url: str) -> LinkInjector:
    return LinkInjector(site_url)


# ---------------------------------------------------------------------------
# Basic insertion and the hero block
# ---------------------------------------------------------------------------


class TestBasicInsertion:
    def test_link_inserted_in_matching_block(
        self, injector: LinkInjector, post_meta: PageMeta
    ) -> None:
        html = "<p>First intro paragraph about cats.</p><p>Second paragraph about dogs.</p>"
        result = injector.rewrite(html, DOGS, post_meta)

        assert result.html == (
            "<p>First intro paragraph about cats.</p>"
            f"<p>Second paragraph about {DOGS_LINK}.</p>"
        )
        assert len(result.inserted) == 1
        link = result.inserted[0]
        assert link.url == "https://x.com/dogs"
        assert link.anchor_text == "dogs"
        assert link.keyword == "dogs"
        assert link.block_index == 1
        assert result.unmatched == []

    def test_case_insensitive_match_keeps_casing(
        self, injector: LinkInjector, post_meta: PageMeta
    ) -> None:
        result = injector.rewrite("<p>Dogs are loyal.</p>", DOGS, post_meta)
        assert result.html == '<p><a href="https://x.com/dogs">Dogs</a> are loyal.</p>'

    def test_default_type_links_first_paragraph(
        self, injector: LinkInjector, post_meta: PageMeta
    ) -> None:
        html = "<p>Our dogs are friendly.</p><p>We train dogs daily.</p>"
        result = injector.rewrite(html, DOGS, post_meta)

        assert result.html == (
            f"<p>Our {DOGS_LINK} are friendly.</p><p>We train dogs daily.</p>"
        )

    def test_non_default_type_protects_first_paragraph(
        self, injector: LinkInjector, page_meta: PageMeta
    ) -> None:
        html = "<p>Our dogs are friendly.</p><p>We train dogs daily.</p>"
        result = injector.rewrite(html, DOGS, page_meta)

        assert result.html == (
            f"<p>Our dogs are friendly.</p><p>We train {DOGS_LINK} daily.</p>"
        )
        assert result.inserted[0].block_index == 1

    def test_match_only_in_hero_block(
        self, injector: LinkInjector, page_meta: PageMeta
    ) -> None:
        html = "<p>Our dogs are friendly.</p><p>Nothing else.</p>"
        result = injector.rewrite(html, DOGS, page_meta)

        assert result.html == html
        assert result.inserted == []
        assert result.unmatched == ["https://x.com/dogs"]

    def test_hero_text_protected_inside_wrapper_block(
        self, injector: LinkInjector, page_meta: PageMeta
    ) -> None:
        html = "<div><p>Our dogs are friendly.</p></div><p>Nothing else.</p>"
        result = injector.rewrite(html, DOGS, page_meta)

        assert result.html == html
        assert result.unmatched == ["https://x.com/dogs"]

    def test_hero_fallback_protected_in_full_document(
        self, injector: LinkInjector, page_meta: PageMeta
    ) -> None:
        html = (
            "<html><body>"
            "<ul><li><p>in list</p></li></ul>"
            "<div>dogs lead</div><div>dogs again</div>"
            "</body></html>"
        )
        result = injector.rewrite(html, DOGS, page_meta)

        assert result.html == (
            "<html><body>"
            "<ul><li><p>in list</p></li></ul>"
            f"<div>dogs lead</div><div>{DOGS_LINK} again</div>"
            "</body></html>"
        )
        assert result.inserted[0].block_index == 2

    def test_module_rewrite_function(self, site_url: str, post_meta: PageMeta) -> None:
        html = "<p>Dogs everywhere.</p>"
        assert rewrite(html, DOGS, post_meta, site_url=site_url) == (
            '<p><a href="https://x.com/dogs">Dogs</a> everywhere.</p>'
        )


# ---------------------------------------------------------------------------
# Keyword matching
# ---------------------------------------------------------------------------


class TestKeywordMatching:
    def test_longest_keyword_wins(
        self, injector: LinkInjector, post_meta: PageMeta
    ) -> None:
        mappings = [LinkMapping(keywords=["car", "red car"], url="/cars")]
        result = injector.rewrite("<p>A red car is parked.</p>", mappings, post_meta)

        assert result.html == '<p>A <a href="/cars">red car</a> is parked.</p>'
        assert result.inserted[0].keyword == "red car"

    def test_whole_word_only(self, injector: LinkInjector, post_meta: PageMeta) -> None:
        mappings = [LinkMapping(keywords=["cat"], url="/cat")]
        html = "<p>Browse the category list.</p><p>The cat sat.</p>"
        result = injector.rewrite(html, mappings, post_meta)

        assert result.html == (
            '<p>Browse the category list.</p><p>The <a href="/cat">cat</a> sat.</p>'
        )

    def test_digit_is_not_a_letter(
        self, injector: LinkInjector, post_meta: PageMeta
    ) -> None:
        mappings = [LinkMapping(keywords=["cat"], url="/cat")]
        result = injector.rewrite("<p>Model cat5 cable</p>", mappings, post_meta)
        assert result.html == '<p>Model <a href="/cat">cat</a>5 cable</p>'

    @pytest.mark.parametrize(
        "html",
        ["<p>Le écat noir.</p>", "<p>Deux catś.</p>", "<p>Ωcat</p>"],
    )
    def test_unicode_letters_block_match(
        self, injector: LinkInjector, post_meta: PageMeta, html: str
    ) -> None:
        mappings = [LinkMapping(keywords=["cat"], url="/cat")]
        result = injector.rewrite(html, mappings, post_meta)

        assert result.html == html
        assert result.unmatched == ["/cat"]

    @pytest.mark.parametrize(
        ("html", "expected"),
        [
            ("<p>x²dogs</p>", f"<p>x²{DOGS_LINK}</p>"),
            ("<p>½dogs</p>", f"<p>½{DOGS_LINK}</p>"),
            ("<p>dogsⅫ</p>", f"<p>{DOGS_LINK}Ⅻ</p>"),
        ],
    )
    def test_non_decimal_numerics_are_boundaries(
        self, injector: LinkInjector, post_meta: PageMeta, html: str, expected: str
    ) -> None:
        assert injector.rewrite(html, DOGS, post_meta).html == expected

    def test_later_match_used_when_first_touches_letter(
        self, injector: LinkInjector, post_meta: PageMeta
    ) -> None:
        mappings = [LinkMapping(keywords=["cat"], url="/cat")]
        result = injector.rewrite("<p>Category and cat.</p>", mappings, post_meta)
        assert result.html == '<p>Category and <a href="/cat">cat</a>.</p>'

    def test_search_keyword_skips_letter_neighbours(self) -> None:
        pattern = compile_keyword_pattern("cat")
        assert pattern is not None

        match = search_keyword(pattern, "écat, cats, cat²")

        assert match is not None
        assert match.start() == 12

    def test_non_ascii_keyword(
        self, injector: LinkInjector, post_meta: PageMeta
    ) -> None:
        mappings = [LinkMapping(keywords=["Café"], url="/cafe")]
        result = injector.rewrite("<p>Un café noir.</p>", mappings, post_meta)
        assert result.html == '<p>Un <a href="/cafe">café</a> noir.</p>'

    def test_regex_characters_literal(
        self, injector: LinkInjector, post_meta: PageMeta
    ) -> None:
        mappings = [LinkMapping(keywords=["c++"], url="/cpp")]
        result = injector.rewrite("<p>I write C++ daily.</p>", mappings, post_meta)
        assert result.html == '<p>I write <a href="/cpp">C++</a> daily.</p>'

    def test_blank_keyword_has_no_pattern(self) -> None:
        assert compile_keyword_pattern("   ") is None


# ---------------------------------------------------------------------------
# Existing links and uniqueness
# ---------------------------------------------------------------------------


class TestExistingLinks:
    def test_block_with_link_skipped(
        self, injector: LinkInjector, post_meta: PageMeta
    ) -> None:
        html = '<p>See <a href="/x">this</a> about dogs.</p><p>More dogs here.</p>'
        result = injector.rewrite(html, DOGS, post_meta)

        assert result.html == (
            f'<p>See <a href="/x">this</a> about dogs.</p><p>More {DOGS_LINK} here.</p>'
        )

    def test_block_linked_earlier_in_pass_skipped(
        self, injector: LinkInjector, post_meta: PageMeta
    ) -> None:
        mappings = [
            LinkMapping(keywords=["cats"], url="/cats"),
            LinkMapping(keywords=["dogs"], url="/dogs"),
        ]
        html = "<p>Cats and dogs.</p><p>Only dogs here.</p>"
        result = injector.rewrite(html, mappings, post_meta)

        assert result.html == (
            '<p><a href="/cats">Cats</a> and dogs.</p>'
            '<p>Only <a href="/dogs">dogs</a> here.</p>'
        )
        assert [link.block_index for link in result.inserted] == [0, 1]

    @pytest.mark.parametrize(
        "existing",
        [
            '<p>Read <a href="https://www.x.com/dogs/">our guide</a>.</p>',
            '<div class="elementor-widget-template"><p><a href="https://x.com/dogs">Guide</a></p></div>',
            '<!-- <a href="https://x.com/dogs">old</a> -->',
            """<div data-settings='{"url":"https://x.com/dogs?ref=1"}'></div>""",
        ],
    )
    def test_destination_already_on_page(
        self, injector: LinkInjector, post_meta: PageMeta, existing: str
    ) -> None:
        html = existing + "<p>Dogs are loyal.</p>"
        result = injector.rewrite(html, DOGS, post_meta)

        assert result.html == html
        assert result.already_present == ["https://x.com/dogs"]
        assert result.inserted == []

    def test_one_link_per_destination(
        self, injector: LinkInjector, post_meta: PageMeta
    ) -> None:
        mappings = [
            LinkMapping(keywords=["dogs"], url="https://x.com/dogs"),
            LinkMapping(keywords=["puppies"], url="https://www.x.com/dogs/"),
        ]
        html = "<p>Puppies are young.</p><p>Dogs are loyal.</p>"
        result = injector.rewrite(html, mappings, post_meta)

        assert result.html.count("<a ") == 1
        assert result.inserted[0].anchor_text == "Puppies"
        assert result.inserted[0].url == "https://x.com/dogs"

    def test_second_pass_is_noop(
        self, injector: LinkInjector, post_meta: PageMeta
    ) -> None:
        mappings = [
            LinkMapping(keywords=["dogs"], url="/dogs"),
            LinkMapping(keywords=["cats"], url="/cats"),
        ]
        html = "<p>Dogs bark.</p><p>Cats purr.</p><p>Dogs and cats.</p>"
        first = injector.rewrite(html, mappings, post_meta)
        second = injector.rewrite(first.html, mappings, post_meta)

        assert len(first.inserted) == 2
        assert second.html == first.html
        assert second.inserted == []
        assert second.already_present == ["/dogs", "/cats"]

    def test_self_link_never_inserted(
        self, injector: LinkInjector, post_meta: PageMeta
    ) -> None:
        mappings = [
            LinkMapping(keywords=["pet care"], url="https://www.example.com/blog/pet-care")
        ]
        html = "<p>Basic pet care tips.</p>"
        result = injector.rewrite(html, mappings, post_meta)

        assert result.html == html
        assert result.inserted == []
        assert result.unmatched == []


# ---------------------------------------------------------------------------
# Protected zones
# ---------------------------------------------------------------------------


class TestProtectedZones:
    def test_only_body_paragraph_linked(
        self, injector: LinkInjector, post_meta: PageMeta
    ) -> None:
        html = (
            "<h2>Dogs</h2>"
            "<ul><li>Dogs</li></ul>"
            '<div class="faq"><p>Dogs?</p></div>'
            "<table><tr><td><p>Dogs</p></td></tr></table>"
            '<div class="wpb_wrapper"><p>Dogs</p></div>'
            "<aside><p>Dogs</p></aside>"
            '<div role="navigation"><p>Dogs</p></div>'
            "<p>Our dogs.</p>"
        )
        result = injector.rewrite(html, DOGS, post_meta)

        assert result.html.count("<a ") == 1
        assert result.html.endswith(f"<p>Our {DOGS_LINK}.</p>")

    def test_script_text_ignored(
        self, injector: LinkInjector, post_meta: PageMeta
    ) -> None:
        html = "<div><script>var dogs = 1;</script></div><p>Dogs here.</p>"
        result = injector.rewrite(html, DOGS, post_meta)

        assert "<script>var dogs = 1;</script>" in result.html
        assert result.inserted[0].block_index == 1

    def test_no_blocks(self, injector: LinkInjector, post_meta: PageMeta) -> None:
        html = "<h1>Dogs</h1><span>dogs</span>"
        result = injector.rewrite(html, DOGS, post_meta)
        assert result.html == html


# ---------------------------------------------------------------------------
# Text runs and splicing
# ---------------------------------------------------------------------------


class TestTextRuns:
    def test_nbsp_preserved_in_anchor(
        self, injector: LinkInjector, post_meta: PageMeta
    ) -> None:
        mappings = [LinkMapping(keywords=["the red car"], url="/cars")]
        html = "<p>Try the\xa0red car today.</p>"
        result = injector.rewrite(html, mappings, post_meta)

        assert result.html == '<p>Try <a href="/cars">the\xa0red car</a> today.</p>'
        assert result.inserted[0].anchor_text == "the\xa0red car"

    def test_match_across_inline_markup_links_start_node(
        self, injector: LinkInjector, post_meta: PageMeta
    ) -> None:
        mappings = [LinkMapping(keywords=["red car"], url="/cars")]
        html = "<p>Buy a <em>red</em> car today.</p>"
        result = injector.rewrite(html, mappings, post_meta)

        assert result.html == '<p>Buy a <em><a href="/cars">red</a></em> car today.</p>'
        assert result.inserted[0].anchor_text == "red"

    def test_match_across_inline_markup_keeps_prefix(
        self, injector: LinkInjector, post_meta: PageMeta
    ) -> None:
        mappings = [LinkMapping(keywords=["bright red"], url="/red")]
        html = "<p>Get a bright <strong>red</strong> car.</p>"
        result = injector.rewrite(html, mappings, post_meta)

        assert result.html == (
            '<p>Get a <a href="/red">bright </a><strong>red</strong> car.</p>'
        )

    def test_output_escaped(self, injector: LinkInjector, post_meta: PageMeta) -> None:
        mappings = [LinkMapping(keywords=["Tom & Jerry"], url="/search?a=1&b=2")]
        html = "<p>Tom &amp; Jerry rocks.</p>"
        result = injector.rewrite(html, mappings, post_meta)

        assert result.html == (
            '<p><a href="/search?a=1&amp;b=2">Tom &amp; Jerry</a> rocks.</p>'
        )

    def test_collect_text_nodes_skips_blank_and_comments(self) -> None:
        soup = BeautifulSoup("<div>\n  <p>a<!-- dogs -->b</p>\n</div>", "html.parser")
        nodes = collect_text_nodes(soup.find("div"))
        assert [str(n) for n in nodes] == ["a", "b"]

    def test_locate_offsets(self) -> None:
        run = TextRun(nodes=[], text="Buy red car today", lengths=[4, 3, 10])

        assert run.locate_start(0) == (0, 0)
        assert run.locate_start(4) == (1, 0)
        assert run.locate_end(4) == (0, 4)
        assert run.locate_end(7) == (1, 3)
        assert run.locate_end(8) == (2, 1)
        assert run.locate_start(17) is None


# ---------------------------------------------------------------------------
# Unchanged output
# ---------------------------------------------------------------------------


class TestUnchangedOutput:
    def test_no_match_returns_markup_verbatim(
        self, injector: LinkInjector, post_meta: PageMeta
    ) -> None:
        html = "<p class='lead'>Hello&nbsp;world<br></p>"
        result = injector.rewrite(html, DOGS, post_meta)
        assert result.html is html

    def test_empty_markup(self, injector: LinkInjector, post_meta: PageMeta) -> None:
        assert injector.rewrite("", DOGS, post_meta).html == ""

    def test_empty_mapping_table(
        self, injector: LinkInjector, post_meta: PageMeta
    ) -> None:
        html = "<p>Dogs.</p>"
        assert injector.rewrite(html, [], post_meta).html is html
