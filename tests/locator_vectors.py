"""Fixture documents with the CSS path / XPath expected for the ``data-t`` element.

Used by both the Python locator tests and the browser test of the injected
picker script, so the two implementations stay in step.
"""

DEEP_DIVS = 14

LOCATOR_VECTORS = [
    (
        "classes_and_same_tag_siblings",
        "<html><head><title>t</title></head><body>"
        '<div class="content main extra"><p>a</p><p data-t="1">b</p></div>'
        "</body></html>",
        "body > div.content.main > p:nth-of-type(2)",
        "/html[1]/body[1]/div[1]/p[2]",
    ),
    (
        "stops_at_ancestor_id",
        "<html><head></head><body>"
        '<div id="main"><section><h2>x</h2><ul><li>1</li><li data-t="1">2</li></ul></section></div>'
        "</body></html>",
        "#main > section > ul > li:nth-of-type(2)",
        "/html[1]/body[1]/div[1]/section[1]/ul[1]/li[2]",
    ),
    (
        "element_with_id",
        '<html><head></head><body><div><p id="intro" data-t="1">hello</p></div></body></html>',
        "#intro",
        '//*[@id="intro"]',
    ),
    (
        "index_counts_same_tag_only",
        "<html><head></head><body>"
        "<div>a</div><span>s</span><div><span>x</span><span data-t=\"1\">y</span></div>"
        "</body></html>",
        "body > div:nth-of-type(2) > span:nth-of-type(2)",
        "/html[1]/body[1]/div[2]/span[2]",
    ),
    (
        "escaped_class_token",
        '<html><head></head><body><div class="a:b c d" data-t="1">z</div></body></html>',
        "body > div.a\\:b.c",
        "/html[1]/body[1]/div[1]",
    ),
    (
        "prefixed_tag_name",
        "<html><head></head><body>"
        '<section><o:p>a</o:p><o:p data-t="1">b</o:p></section>'
        "</body></html>",
        "body > section > o\\:p:nth-of-type(2)",
        '/html[1]/body[1]/section[1]/*[name()="o:p"][2]',
    ),
    (
        "inside_prefixed_tag",
        "<html><head></head><body>"
        '<section><o:p>word <i data-t="1">it</i></o:p></section>'
        "</body></html>",
        "body > section > o\\:p > i",
        '/html[1]/body[1]/section[1]/*[name()="o:p"][1]/i[1]',
    ),
    (
        "depth_caps",
        "<html><head></head><body>"
        + "<div>" * (DEEP_DIVS - 1)
        + '<div data-t="1">deep</div>'
        + "</div>" * (DEEP_DIVS - 1)
        + "</body></html>",
        " > ".join(["div"] * 8),
        "/" + "/div[1]" * 12,
    ),
]
