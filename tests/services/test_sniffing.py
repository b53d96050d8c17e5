import gzip

import pytest

from shredbox.services.sniffing import detect, extension_for


def test_detects_plain_text():
    assert detect(b"just some words in a text file\n") == ("text/plain", ".txt")


def test_detects_png_from_magic_bytes():
    png = bytes.fromhex("89504e470d0a1a0a0000000d49484452") + bytes(16)
    mime, ext = detect(png)
    assert mime == "image/png"
    assert ext == ".png"


def test_detects_gzip():
    mime, ext = detect(gzip.compress(b"payload" * 10))
    assert mime in ("application/gzip", "application/x-gzip")
    assert ext in (".gz", "")


@pytest.mark.parametrize(
    "mime, ext",
    [
        ("text/plain", ".txt"),
        ("image/jpeg", ".jpg"),
        ("application/pdf", ".pdf"),
        ("application/gzip", ".gz"),
        ("application/octet-stream", ""),
        ("application/x-empty", ""),
        ("application/x-made-up", ""),
    ],
)
def test_extension_for(mime, ext):
    assert extension_for(mime) == ext
