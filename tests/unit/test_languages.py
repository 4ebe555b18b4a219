from __future__ import annotations

import base64

import pytest

from common.languages import (
    default_commit_message,
    destination_path,
    encode_content,
    extension_for,
    sanitize_title,
)
from state.models import Submission


def test_sanitize_replaces_every_unsafe_character():
    assert sanitize_title('a/b\\c?d%e*f:g|h"i<j>k') == "a-b-c-d-e-f-g-h-i-j-k"
    assert sanitize_title("Two Sum") == "Two Sum"


@pytest.mark.parametrize(
    "language,ext",
    [("python", "py"), ("Python3", "py"), ("CPP", "c++"), ("C#", "cs"), ("rust", "rs"), ("haskell", "txt"), ("", "txt")],
)
def test_extension_lookup_is_case_insensitive_with_txt_default(language, ext):
    assert extension_for(language) == ext


def test_destination_path_and_commit_message():
    sub = Submission(problem_title="Pow(x, n) / easy?", language="java", code="")
    assert destination_path(sub) == "Pow(x, n) - easy-.java"
    assert default_commit_message(sub) == "Pow(x, n) - easy- Solved"


def test_encode_content_roundtrips_unicode():
    code = "print('héllo ✓')\n"
    assert base64.b64decode(encode_content(code)).decode("utf-8") == code
