"""
Unit tests for the strict and lenient sanitization policies.
"""

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from articlescope.dom import parse_html
from articlescope.extractor.sanitizer import Sanitizer, unwrap_node_preserving_children
from articlescope.protocols import PolicyKind, SanitizationPolicy

STRICT = Sanitizer(SanitizationPolicy.strict())
LENIENT = Sanitizer(SanitizationPolicy.lenient())

WORDS = ["council", "budget", "subscribe", "read more", "vote", "Sign up", "donate", "report", "city", "."]
CONTAINERS = ["div", "p", "span", "a", "section", "ul", "li", "figure", "figcaption", "em", "picture"]
CLASSES = ["", "story", "share", "caption", "promo-box", "body", "credit"]


def _render(tag, css_class, children):
    attrs = f' class="{css_class}"' if css_class else ""
    return f"<{tag}{attrs}>{''.join(children)}</{tag}>"


def _element(children):
    return st.builds(_render, st.sampled_from(CONTAINERS), st.sampled_from(CLASSES), children)


LEAVES = st.one_of(
    st.lists(st.sampled_from(WORDS), min_size=1, max_size=6).map(" ".join),
    st.just('<img src="a.jpg" alt="">'),
    st.just("<br>"),
    st.just("<script>var x = 1;</script>"),
    st.just('<a href="/next">Next story</a>'),
)
FRAGMENTS = st.recursive(LEAVES, lambda children: _element(st.lists(children, max_size=4)), max_leaves=20)
DOCUMENTS = st.lists(FRAGMENTS, min_size=1, max_size=5).map("".join)


@pytest.mark.unit
class TestStrictPolicy:
    """Strict removal of non-text content and boilerplate."""

    def test_removes_scripts_navigation_and_cta(self):
        html = (
            "<p>Real reporting text here that goes on.</p>"
            "<p>Subscribe to our newsletter today!</p>"
            "<nav><a href='/'>Home</a></nav><script>track()</script><style>p{}</style>"
        )

        assert STRICT.sanitize(html) == "<p>Real reporting text here that goes on.</p>"

    def test_removes_link_dominated_lists(self):
        html = (
            "<p>Body paragraph.</p>"
            '<ul><li><a href="/a">Story one</a></li><li><a href="/b">Story two</a></li></ul>'
        )

        assert STRICT.sanitize(html) == "<p>Body paragraph.</p>"

    def test_removes_boilerplate_attributes(self):
        html = '<div class="share-tools">Share this</div><div id="ad-slot">Advert</div><p>Kept.</p>'

        assert STRICT.sanitize(html) == "<p>Kept.</p>"

    def test_long_paragraph_with_cta_word_survives(self):
        """Only short blocks are treated as calls to action."""
        text = "Readers who subscribe to the council minutes will notice the change. " * 8
        out = STRICT.sanitize(f"<p>{text}</p>")

        assert "subscribe" in out

    def test_strips_images_and_empty_wrappers(self):
        out = STRICT.sanitize('<p>Text <img src="a.jpg"> more</p><figure><img src="b.jpg"></figure>')

        assert "img" not in out
        assert "figure" not in out
        assert "Text" in out and "more" in out

    def test_keeps_line_breaks(self):
        assert STRICT.sanitize("<p>One<br>Two</p>") == "<p>One<br/>Two</p>"

    def test_strict_rejects_image_options(self):
        with pytest.raises(ValueError):
            SanitizationPolicy(PolicyKind.STRICT, preserve_images=True)


@pytest.mark.unit
class TestLenientPolicy:
    """Image-preserving variant."""

    def test_keeps_image_drops_caption_and_unwraps_link(self):
        html = (
            '<figure><a href="/big.jpg"><img src="a.jpg" alt="A"></a><figcaption>Photo: Agency</figcaption></figure>'
            "<p>Body text stays here.</p>"
        )

        out = LENIENT.sanitize(html)

        assert 'src="a.jpg"' in out
        assert "figcaption" not in out
        assert "Agency" not in out
        assert "<a" not in out
        assert "<p>Body text stays here.</p>" in out

    def test_collapses_single_image_wrappers(self):
        html = '<div><picture><source srcset="a.webp"><img src="a.jpg"></picture></div>'

        assert LENIENT.sanitize(html) == '<img src="a.jpg"/>'

    def test_caption_class_removed(self):
        html = '<div><img src="a.jpg"><span class="image-credit">Getty</span></div><p>Words.</p>'

        out = LENIENT.sanitize(html)

        assert "Getty" not in out
        assert 'src="a.jpg"' in out

    def test_preserve_disabled_behaves_like_strict_for_images(self):
        sanitizer = Sanitizer(SanitizationPolicy.lenient(preserve_images=False))

        assert "img" not in sanitizer.sanitize('<p>Text <img src="a.jpg"></p>')

    def test_unwrap_disabled_keeps_image_link(self):
        sanitizer = Sanitizer(SanitizationPolicy.lenient(unwrap_images=False))

        out = sanitizer.sanitize('<p>Caption-less</p><a href="/big.jpg"><img src="a.jpg"></a>')

        assert '<a href="/big.jpg"><img src="a.jpg"/></a>' in out


@pytest.mark.unit
class TestUnwrap:
    """Unwrapping keeps order and word boundaries."""

    def test_inserts_space_between_joined_words(self):
        soup = parse_html("<p>foo<span>bar</span>baz</p>")

        unwrap_node_preserving_children(soup.span)

        assert soup.p.get_text() == "foo bar baz"

    def test_existing_whitespace_is_left_alone(self):
        soup = parse_html("<p>foo <span>bar</span> baz</p>")

        unwrap_node_preserving_children(soup.span)

        assert soup.p.get_text() == "foo bar baz"

    def test_punctuation_neighbours_get_no_space(self):
        soup = parse_html("<p>(<em>quoted</em>).</p>")

        unwrap_node_preserving_children(soup.em)

        assert soup.p.get_text() == "(quoted)."

    def test_children_keep_order(self):
        soup = parse_html("<div><a><b>one</b> <i>two</i></a></div>")

        unwrap_node_preserving_children(soup.a)

        assert str(soup.div) == "<div><b>one</b> <i>two</i></div>"

    def test_image_link_between_words_keeps_a_boundary(self):
        soup = parse_html('<p>before<a href="/big.jpg"><img src="/a.jpg"/></a>after</p>')

        unwrap_node_preserving_children(soup.a)

        assert str(soup.p) == '<p>before <img src="/a.jpg"/>after</p>'

    def test_empty_node_is_simply_removed(self):
        soup = parse_html("<p>before<span></span>after</p>")

        unwrap_node_preserving_children(soup.span)

        assert soup.p.get_text() == "beforeafter"


@pytest.mark.unit
class TestIdempotence:
    """Re-applying a policy to its own output changes nothing."""

    @settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow], deadline=None)
    @given(DOCUMENTS)
    def test_strict_is_idempotent(self, html):
        once = STRICT.sanitize(html)

        assert STRICT.sanitize(once) == once

    @settings(max_examples=200, suppress_health_check=[HealthCheck.too_slow], deadline=None)
    @given(DOCUMENTS)
    def test_lenient_is_idempotent(self, html):
        once = LENIENT.sanitize(html)

        assert LENIENT.sanitize(once) == once
