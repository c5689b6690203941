from __future__ import annotations

import re

import pytest

from linkpage.domain.slugs import (
    RESERVED_SLUGS,
    SLUG_LENGTH_MESSAGE,
    SLUG_REQUIRED_MESSAGE,
    SLUG_RESERVED_MESSAGE,
    check_slug,
    classify_slug,
    is_valid_slug,
    sanitize_slug,
    sanitize_slug_input,
)

CANONICAL = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")

SAMPLES = [
    "Ana Silva",
    "  --Hello__World!! ",
    "ÁRVORE azul",
    "a---b",
    "!!!",
    "",
    "joão.maria@site",
    "-leading-and-trailing-",
    "MiXeD123_CaSe",
    "tab\tand\nnewline",
    "日本語",
]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Ana Silva", "ana-silva"),
        ("  --Hello__World!! ", "hello-world"),
        ("a---b", "a-b"),
        ("joão.maria", "jo-o-maria"),
        ("!!!", ""),
        (None, ""),
        ("LOGIN", "login"),
    ],
)
def test_sanitize_slug_examples(raw, expected):
    assert sanitize_slug(raw) == expected


@pytest.mark.parametrize("raw", SAMPLES)
def test_sanitize_is_idempotent_and_canonical(raw):
    once = sanitize_slug(raw)
    assert sanitize_slug(once) == once
    assert once == "" or CANONICAL.match(once)


def test_classify_rejections_in_order():
    assert classify_slug("") == SLUG_REQUIRED_MESSAGE
    assert classify_slug("jo") == SLUG_LENGTH_MESSAGE
    assert classify_slug("a" * 41) == SLUG_LENGTH_MESSAGE
    assert classify_slug("api") == SLUG_RESERVED_MESSAGE
    assert classify_slug("abc") is None
    assert classify_slug("a" * 40) is None


@pytest.mark.parametrize("word", sorted(RESERVED_SLUGS))
def test_reserved_words_rejected_in_any_case(word):
    result = check_slug(word.upper())
    assert result.slug == word
    assert not result.eligible
    assert result.error == SLUG_RESERVED_MESSAGE


def test_check_slug_canonicalizes_before_length_check():
    # "a b" is three characters raw but canonicalizes to "a-b"
    assert check_slug("a b").eligible
    assert check_slug("!a!").error == SLUG_LENGTH_MESSAGE


def test_sanitize_slug_input_truncates_to_40():
    assert sanitize_slug_input("x" * 55) == "x" * 40
    # a cut right after a hyphen must not leave it dangling
    assert sanitize_slug_input("a" * 39 + "-bc") == "a" * 39


def test_is_valid_slug_requires_canonical_form():
    assert is_valid_slug("ana-silva")
    assert not is_valid_slug("Ana")
    assert not is_valid_slug("ana-")
    assert not is_valid_slug("login")
    assert not is_valid_slug(None)
