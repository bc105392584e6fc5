#!/usr/bin/env python3
"""
SOPS-SHELL REWRITER SUITE
-------------------------
The rewriter must never alter bytes outside the patched value spans.
"""

import difflib

import pytest
from sopsshell.core.models import LineSpan
from sopsshell.surgery.lines import LineModel
from sopsshell.surgery.rewriter import Rewriter

DOCUMENT = (
    "# Database credentials\r\n"
    "db:\r\n"
    "  # shell: pass show db\r\n"
    "  password: \"old\"   \r\n"
    "\r\n"
    "  user: admin\r\n"
    "api_key: abc"
)


def test_empty_patch_list_is_identity():
    model = LineModel.load(DOCUMENT)
    assert Rewriter().apply(model, []) == DOCUMENT


def test_single_patch_is_localized():
    model = LineModel.load(DOCUMENT)
    rewritten = Rewriter().apply(model, [(LineSpan(3, 12, 17), "new-secret")])

    assert rewritten == DOCUMENT.replace('"old"', "new-secret")
    changed = [
        line for line in difflib.ndiff(DOCUMENT.splitlines(True), rewritten.splitlines(True))
        if line.startswith(("-", "+"))
    ]
    assert changed == ['-   password: "old"   \r\n', "+   password: new-secret   \r\n"]


def test_patches_apply_in_position_order():
    model = LineModel.load("a: 1\nb: 2\nc: 3")
    patches = [(LineSpan(2, 3, 4), "30"), (LineSpan(0, 3, 4), "10")]
    assert Rewriter().apply(model, patches) == "a: 10\nb: 2\nc: 30"


def test_zero_width_span_inserts():
    model = LineModel.load("KEY=\nOTHER=x\n")
    assert Rewriter().apply(model, [(LineSpan(0, 4, 4), "filled")]) == "KEY=filled\nOTHER=x\n"


def test_overlapping_patches_rejected():
    model = LineModel.load("foo: value\n")
    with pytest.raises(ValueError):
        Rewriter().apply(model, [(LineSpan(0, 5, 10), "a"), (LineSpan(0, 7, 9), "b")])


def test_line_break_in_patch_rejected():
    model = LineModel.load("foo: value\n")
    with pytest.raises(ValueError):
        Rewriter().apply(model, [(LineSpan(0, 5, 10), "multi\nline")])
