from __future__ import annotations

import base64
import re
from typing import Dict

from state.models import Submission


DEFAULT_EXTENSION = "txt"

EXTENSIONS: Dict[str, str] = {
    "python": "py",
    "python3": "py",
    "javascript": "js",
    "typescript": "ts",
    "cpp": "c++",
    "c#": "cs",
    "csharp": "cs",
    "java": "java",
    "c": "c",
    "go": "go",
    "rust": "rs",
    "ruby": "rb",
    "swift": "swift",
    "kotlin": "kt",
    "scala": "scala",
    "php": "php",
}

_UNSAFE_CHARS_RE = re.compile(r'[/\\?%*:|"<>]')


def sanitize_title(title: str) -> str:
    """Replace characters that are unsafe in a repository path with '-'."""
    return _UNSAFE_CHARS_RE.sub("-", title)


def extension_for(language: str) -> str:
    return EXTENSIONS.get((language or "").strip().lower(), DEFAULT_EXTENSION)


def destination_path(submission: Submission) -> str:
    """e.g. Submission("Two Sum", "python", ...) -> "Two Sum.py"."""
    return f"{sanitize_title(submission.problem_title)}.{extension_for(submission.language)}"


def default_commit_message(submission: Submission) -> str:
    return f"{sanitize_title(submission.problem_title)} Solved"


def encode_content(code: str) -> str:
    return base64.b64encode(code.encode("utf-8")).decode("ascii")


__all__ = [
    "DEFAULT_EXTENSION",
    "EXTENSIONS",
    "default_commit_message",
    "destination_path",
    "encode_content",
    "extension_for",
    "sanitize_title",
]
