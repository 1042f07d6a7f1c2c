import pytest

from url_clipper.config import ExtractMode
from url_clipper.content import extract, extract_auto, parse_document

URL = "https://example.com/post"


def _doc(body, head="<title> Page title </title>"):
    return parse_document(f"<html><head>{head}</head><body>{body}</body></html>", URL)


def test_title_is_trimmed():
    assert _doc("<p>x</p>").title == "Page title"
    assert _doc("<p>x</p>", head="").title == ""


def test_article_wins_over_larger_text_blocks():
    doc = _doc(
        "<div>" + "lots of text " * 200 + "</div>"
        "<article><p>short</p></article>"
        "<article><p>second article</p></article>"
    )
    root = extract(doc, ExtractMode.AUTO)
    assert root.name == "article"
    assert root.get_text() == "short"


def test_main_used_when_no_article():
    doc = _doc("<div>" + "words " * 100 + "</div><main><p>main body</p></main>")
    root = extract(doc, "auto")
    assert root.name == "main"


def test_body_is_a_candidate_and_wins_ties_in_document_order():
    doc = _doc('<div class="wrapper"><p>only content</p></div>')
    assert extract(doc, ExtractMode.AUTO).name == "body"


def test_largest_text_block_when_body_is_page_chrome():
    doc = _doc(
        '<div class="nav">' + "navigation link " * 50 + "</div>"
        '<div class="post">short text</div>'
        "<section><p>this is the longest remaining block</p></section>"
        "<div>medium length</div>",
    )
    doc.soup.body["class"] = ["menu-open"]

    root = extract_auto(doc.soup)
    assert root.name == "section"


def test_ties_go_to_first_candidate():
    doc = _doc('<div id="first">abcdef</div><div id="second">ghijkl</div>')
    doc.soup.body["class"] = ["has-sidebar"]

    assert extract_auto(doc.soup)["id"] == "first"


@pytest.mark.parametrize("css_class", ["NAV-bar", "MainMenu", "SideBar", "page-footer", "Header"])
def test_chrome_classes_are_never_selected(css_class):
    doc = _doc(
        f'<div class="{css_class}">' + "boilerplate " * 100 + "</div>"
        '<div class="content">the real text</div>'
    )
    doc.soup.body["class"] = ["header-fixed"]

    root = extract_auto(doc.soup)
    assert root["class"] == ["content"]


def test_trimmed_text_length_is_compared():
    doc = _doc('<div id="padded">   ab   </div><div id="plain">abc</div>')
    doc.soup.body["class"] = ["nav-open"]

    assert extract_auto(doc.soup)["id"] == "plain"


def test_auto_returns_none_without_candidates():
    doc = _doc('<div class="menu">x</div><section class="footer">y</section>')
    doc.soup.body["class"] = ["navigation"]

    assert extract(doc, ExtractMode.AUTO) is None


def test_css_mode_uses_selector():
    doc = _doc('<div class="a"><p>one</p></div><div class="b"><p>two</p></div>')
    root = extract(doc, ExtractMode.CSS, "  div.b  ")
    assert root.get_text() == "two"


def test_xpath_mode_uses_expression():
    doc = _doc('<div class="a"><p>one</p></div><div class="b"><p>two</p></div>')
    root = extract(doc, ExtractMode.XPATH, "/html[1]/body[1]/div[2]")
    assert root["class"] == ["b"]


@pytest.mark.parametrize(
    "mode, path",
    [
        (ExtractMode.CSS, ""),
        (ExtractMode.CSS, "div[["),
        (ExtractMode.CSS, "table"),
        (ExtractMode.XPATH, ""),
        (ExtractMode.XPATH, "//div[[["),
        (ExtractMode.XPATH, "//table"),
    ],
)
def test_selector_modes_return_none_when_nothing_matches(mode, path):
    doc = _doc("<div><p>x</p></div>")
    assert extract(doc, mode, path) is None


def test_unknown_mode_is_rejected():
    with pytest.raises(ValueError):
        extract(_doc("<p>x</p>"), "readability")
