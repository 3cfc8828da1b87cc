"""
Integration tests: full page in, sanitized article out.
"""

import pytest

from articlescope import ArticleExtractor, Config
from articlescope.dom import parse_html
from tests.helpers import json_ld, make_prose, page

PROSE = make_prose(600)

NEWS_PAGE = page(
    '<nav><a href="/">Home</a><a href="/news">News</a></nav>'
    "<article>"
    "<h1>Council approves budget</h1>"
    f"<p>{PROSE}</p>"
    '<div class="share">Share on Twitter</div>'
    "<p>Sign up for our newsletter.</p>"
    '<figure><a href="/full.jpg"><img src="/p.jpg" alt="Council chamber"></a><figcaption>Photo: Staff</figcaption></figure>'
    "</article>"
    '<aside class="related"><a href="/x">Other story</a></aside>'
    "<footer>Copyright 2024</footer>",
    head="<title>Council approves budget | Daily</title>"
    + json_ld({"@context": "https://schema.org", "@type": "NewsArticle", "headline": "Council approves budget"}),
)


@pytest.mark.integration
class TestArticleExtractor:
    """End-to-end extraction under both sanitization policies."""

    def test_strict_extraction(self):
        result = ArticleExtractor().extract(NEWS_PAGE, url="https://daily.example/budget")

        assert result.headline == "Council approves budget"
        assert result.source == "candidate"
        assert result.xpath == "/HTML/BODY[1]/ARTICLE[1]"
        assert PROSE in result.html
        assert "<h1>Council approves budget</h1>" in result.html
        assert "Sign up" not in result.html
        assert "Share on Twitter" not in result.html
        assert "img" not in result.html
        assert "Photo: Staff" in result.html
        assert "Other story" not in result.html
        assert result.structured.articles[0]["@type"] == "NewsArticle"

    def test_lenient_extraction_keeps_images(self):
        config = Config.model_validate({"sanitizer": {"policy": "lenient"}})

        result = ArticleExtractor(config).extract(NEWS_PAGE)

        assert '<figure><img src="/p.jpg" alt="Council chamber"/></figure>' in result.html
        assert "Photo: Staff" not in result.html
        assert 'href="/full.jpg"' not in result.html
        assert "Sign up" not in result.html
        assert PROSE in result.html

    def test_lenient_unwrap_keeps_words_apart(self):
        """Unwrapping an inline image link never glues the words around it."""
        before, after = make_prose(300), make_prose(300)
        config = Config.model_validate({"sanitizer": {"policy": "lenient"}})
        html = page(f'<article><p>{before}<a href="/big.jpg"><img src="/a.jpg"></a>{after}</p></article>')

        result = ArticleExtractor(config).extract(html)

        assert f'{before} <img src="/a.jpg"/>{after}' in result.html
        assert "/big.jpg" not in result.html

    def test_structured_body_is_returned_unsanitized(self):
        body = make_prose(800)
        html = page(
            "<article><p>Teaser only.</p></article>",
            head=json_ld({"@type": "Article", "headline": "Full story", "articleBody": body}),
        )

        result = ArticleExtractor().extract(html)

        assert result.source == "structured_data"
        assert result.html == body
        assert result.headline == "Full story"
        assert result.structured.article_body == body

    def test_live_tree_is_left_intact(self):
        tree = parse_html(NEWS_PAGE)

        ArticleExtractor().extract(tree)

        assert tree.select_one(".share") is not None
        assert tree.find("figcaption") is not None
        assert tree.find("nav") is not None

    def test_page_without_article(self):
        result = ArticleExtractor().extract(page("<div><p>Cookie settings</p></div>"))

        assert result.html is None
        assert result.headline is None
        assert result.to_dict()["structured"]["articles"] == []

    def test_body_markup_is_collected(self):
        html = page(
            f"<article><p>{PROSE}</p>"
            "<table><tr><th>Item</th><th>Cost</th></tr><tr><td>Roads</td><td>4m</td></tr></table>"
            "<dl><dt>Levy</dt><dd>A local tax.</dd></dl></article>"
        )

        result = ArticleExtractor().extract(html)

        body = result.to_dict()["structured"]["body"]
        assert body["tables"] == [{"caption": None, "headers": ["Item", "Cost"], "rows": [["Roads", "4m"]]}]
        assert body["definitionLists"] == [{"items": [{"term": "Levy", "description": "A local tax."}]}]
        assert "Roads" in result.html

    def test_dataset_dump_through_extractor(self, tmp_path):
        dump = tmp_path / "rows.csv"
        config = Config.model_validate(
            {"content_detection": {"debug_dump": {"path": str(dump), "top_n": 5, "add_url": True}}}
        )

        ArticleExtractor(config).extract(NEWS_PAGE, url="https://daily.example/budget")
        ArticleExtractor(config).extract(NEWS_PAGE, url="https://daily.example/budget")

        lines = dump.read_text().splitlines()
        assert lines[0] == "url,xpath,len,punct,ld,pc,sem,boiler,label"
        assert len(lines) == 3
        assert all(line.startswith("https://daily.example/budget,/HTML/BODY[1]/ARTICLE[1],") for line in lines[1:])


@pytest.mark.integration
class TestLiveBlogExtraction:
    def test_extract_live_blog(self):
        updates = "".join(
            f'<li><time datetime="2024-05-01T1{i}:00">1{i}:00</time><h3>Minister speaks at rally {i}</h3>'
            f"<p>{make_prose(90)}</p></li>"
            for i in range(4)
        )

        digest = ArticleExtractor().extract_live_blog(page(f"<ul>{updates}</ul>"), url="https://daily.example/live")

        assert digest.ok is True
        assert digest.count == 4
        assert digest.chars == 360
        assert digest.html.count('<div class="time">') == 4
