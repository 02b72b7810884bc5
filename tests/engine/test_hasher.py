import hashlib

from pyctrlz.engine.hasher import EMPTY_CONTENT_HASH, hash_content


def test_hash_is_sha256_hex_of_utf8():
    assert hash_content("ABC") == hashlib.sha256(b"ABC").hexdigest()
    assert len(hash_content("ABC")) == 64


def test_empty_content_hash():
    assert EMPTY_CONTENT_HASH == "e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855"


def test_hash_distinguishes_whitespace():
    assert hash_content("a") != hash_content("a ")
    assert hash_content("a\n") != hash_content("a\r\n")


def test_non_ascii_and_lone_surrogates_are_hashable():
    assert hash_content("你好") == hashlib.sha256("你好".encode("utf-8")).hexdigest()
    assert len(hash_content("\ud800")) == 64
