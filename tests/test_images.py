import asyncio
import datetime as dt
import re

import pytest
from bs4 import BeautifulSoup

from fakes import PDF_BYTES, PNG_BYTES, FakeDestination, FakeTransport, image_response
from url_clipper.errors import TransportError
from url_clipper.images import localize_images, resolve_image_url
from url_clipper.transport import IMAGE_REQUEST_HEADERS
from url_clipper.utils import guess_image_extension, image_filename, timestamp_now

PAGE_URL = "https://example.com/blog/post.html"
NAME_PATTERN = re.compile(r"^attachments/\d{8}-\d{6}-\d{3}( \d+)?\.(png|jpg|gif|webp|svg)$")


def _root(html):
    return BeautifulSoup(f"<html><body><article>{html}</article></body></html>", "lxml").article


def _localize(root, transport, destination, prefix=""):
    return asyncio.run(localize_images(root, PAGE_URL, destination, transport, prefix=prefix))


def test_timestamp_format():
    moment = dt.datetime(2024, 1, 2, 3, 4, 5, 678900)
    assert timestamp_now(moment) == "20240102-030405-678"


@pytest.mark.parametrize(
    "url, expected",
    [
        ("https://x.test/a.PNG", "png"),
        ("https://x.test/a.jpeg", "jpg"),
        ("https://x.test/a.JPG?w=200", "jpg"),
        ("https://x.test/anim.gif", "gif"),
        ("https://x.test/pic.webp", "webp"),
        ("https://x.test/logo.svg", "svg"),
        ("https://x.test/img.php?id=3", "png"),
        ("https://x.test/photo", "png"),
        ("https://x.test/a.tiff", "png"),
    ],
)
def test_extension_from_url_path(url, expected):
    assert guess_image_extension(url) == expected


def test_filename_prefix_is_trimmed_and_joined_with_dash():
    moment = dt.datetime(2024, 1, 2, 3, 4, 5, 6000)
    assert image_filename("  blog ", "png", moment) == "blog-20240102-030405-006.png"
    assert image_filename("", "svg", moment) == "20240102-030405-006.svg"


@pytest.mark.parametrize(
    "src, expected",
    [
        ("/img/a.png", "https://example.com/img/a.png"),
        ("b.png#frag", "https://example.com/blog/b.png"),
        ("//cdn.example.net/c.gif", "https://cdn.example.net/c.gif"),
        ("data:image/png;base64,AAAA", None),
        ("DATA:image/png;base64,AAAA", None),
        ("blob:https://example.com/123", None),
        ("javascript:void(0)", None),
        ("http://[::1", None),
    ],
)
def test_resolve_image_url(src, expected):
    assert resolve_image_url(src, PAGE_URL) == expected


def test_successful_image_is_stored_and_rewritten():
    root = _root('<p>x</p><img src="/img/photo.jpeg" alt="photo">')
    transport = FakeTransport({"https://example.com/img/photo.jpeg": image_response("u")})
    destination = FakeDestination()

    localized = _localize(root, transport, destination)

    assert len(localized) == 1
    local_path = localized[0].local_path
    assert NAME_PATTERN.match(local_path)
    assert local_path.endswith(".jpg")
    assert root.img["src"] == local_path
    assert destination.files[local_path] == PNG_BYTES
    assert destination.containers == ["attachments"]
    assert transport.headers == [IMAGE_REQUEST_HEADERS]


def test_prefix_is_used_in_file_name():
    root = _root('<img src="a.png">')
    transport = FakeTransport({"https://example.com/blog/a.png": image_response("u")})
    destination = FakeDestination()

    localized = _localize(root, transport, destination, prefix="csdn")

    assert localized[0].local_path.startswith("attachments/csdn-")


def test_data_and_blob_sources_are_never_fetched_or_rewritten():
    root = _root(
        '<img src="data:image/png;base64,iVBORw0KGgo=">'
        '<img src="blob:https://example.com/5f0c">'
        '<img src="">'
        "<img>"
    )
    transport = FakeTransport()
    destination = FakeDestination()

    assert _localize(root, transport, destination) == []
    assert transport.calls == []
    sources = [img.get("src") for img in root.find_all("img")]
    assert sources == [
        "data:image/png;base64,iVBORw0KGgo=",
        "blob:https://example.com/5f0c",
        "",
        None,
    ]


def test_http_error_keeps_remote_reference_and_continues():
    root = _root('<img src="missing.png"><img src="ok.gif">')
    transport = FakeTransport({"https://example.com/blog/ok.gif": image_response("u")})
    destination = FakeDestination()

    localized = _localize(root, transport, destination)

    first, second = root.find_all("img")
    assert first["src"] == "missing.png"
    assert second["src"] == localized[0].local_path
    assert transport.calls == [
        "https://example.com/blog/missing.png",
        "https://example.com/blog/ok.gif",
    ]
    assert list(destination.files) == [localized[0].local_path]


def test_transport_error_keeps_remote_reference():
    root = _root('<img src="https://img.example.org/a.png">')
    transport = FakeTransport({"https://img.example.org/a.png": TransportError("timed out")})
    destination = FakeDestination()

    assert _localize(root, transport, destination) == []
    assert root.img["src"] == "https://img.example.org/a.png"
    assert destination.files == {}


def test_non_image_payload_is_rejected():
    root = _root('<img src="/doc.png">')
    transport = FakeTransport({"https://example.com/doc.png": image_response("u", data=PDF_BYTES)})
    destination = FakeDestination()

    assert _localize(root, transport, destination) == []
    assert root.img["src"] == "/doc.png"


def test_repeated_url_is_downloaded_once():
    root = _root('<img src="/a.png"><p>text</p><img src="https://example.com/a.png#x">')
    transport = FakeTransport({"https://example.com/a.png": image_response("u")})
    destination = FakeDestination()

    localized = _localize(root, transport, destination)

    assert transport.calls == ["https://example.com/a.png"]
    assert [item.local_path for item in localized] == [localized[0].local_path] * 2
    assert {img["src"] for img in root.find_all("img")} == {localized[0].local_path}


def test_images_in_same_millisecond_get_distinct_paths(monkeypatch):
    monkeypatch.setattr(
        "url_clipper.utils.timestamp_now", lambda now=None: "20240102-030405-006"
    )
    root = _root('<img src="/a.png"><img src="/b.png"><img src="/c.png">')
    transport = FakeTransport(
        {
            "https://example.com/a.png": image_response("a"),
            "https://example.com/b.png": image_response("b"),
            "https://example.com/c.png": image_response("c"),
        }
    )
    destination = FakeDestination()

    localized = _localize(root, transport, destination)

    assert [item.local_path for item in localized] == [
        "attachments/20240102-030405-006.png",
        "attachments/20240102-030405-006 1.png",
        "attachments/20240102-030405-006 2.png",
    ]
    assert [img["src"] for img in root.find_all("img")] == [item.local_path for item in localized]
