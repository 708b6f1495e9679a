# backend/deepl_wrapper/core/log_utils.py
"""Helpers for logging caller- and provider-controlled text safely.

File names come from the uploading client and error bodies come from DeepL;
both end up in line-oriented logs, so they are neutralized first:
- ANSI escape sequences are removed
- newlines and tabs are escaped, other control characters dropped
- bidirectional overrides and zero-width characters are stripped
- long values are truncated

API keys are never logged in full, see `mask_secret`.

WARNING: This does NOT prevent format-string injection.
Always use: logger.info("%s", value) or an f-string, NOT logger.info(value)
"""

from __future__ import annotations

import re
from typing import Any

# Complete ANSI escape handling: CSI, OSC, and single-char ESC sequences
_ANSI_RE = re.compile(
    r"""
    \x1B
    (?:
        [@-Z\\-_]                          # 7-bit C1 control (Fe)
      | \[ [0-?]* [ -/]* [@-~]             # CSI ... Cmd (ECMA-48)
      | \] (?: [^\x07\x1B]* (?:\x07|\x1B\\))  # OSC ... BEL or ST
    )
    """,
    re.VERBOSE,
)

# Control characters except \t, \n, \r (those are escaped instead)
_UNSAFE_CTRL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")

# Bidirectional control characters ("Trojan Source" visual tricks)
_BIDI_RE = re.compile(r"[\u202A-\u202E\u2066-\u2069\u200E\u200F]")

# Zero-width characters and soft hyphen
_INVISIBLE_RE = re.compile(r"[\u200B-\u200D\u2060\u00AD]")

_TRUNCATED_SUFFIX = "...[truncated]"


def sanitize_for_log(value: Any, max_length: int | None = 500) -> str:
    """Return a single-line, printable rendering of `value` for log messages.

    Examples:
        >>> sanitize_for_log("report\\n.docx")
        'report\\\\n.docx'
        >>> sanitize_for_log(None)
        '<None>'
    """
    if value is None:
        return "<None>"

    try:
        text = str(value)
    except Exception:
        return f"<Error converting to string: {type(value).__name__}>"

    text = _ANSI_RE.sub("", text)

    # Order matters: escape backslashes first to avoid double-escaping
    text = (
        text.replace("\\", "\\\\")
        .replace("\r", "\\r")
        .replace("\n", "\\n")
        .replace("\t", "\\t")
        .replace("\u2028", "\\u2028")
        .replace("\u2029", "\\u2029")
    )

    text = _UNSAFE_CTRL_RE.sub("", text)
    text = _BIDI_RE.sub("", text)
    text = _INVISIBLE_RE.sub("", text)

    if max_length is not None and len(text) > max_length:
        keep = max(0, max_length - len(_TRUNCATED_SUFFIX))
        text = text[:keep] + _TRUNCATED_SUFFIX

    return text


def mask_secret(secret: str | None, visible: int = 4) -> str:
    """Mask an API key for logs, keeping only its last `visible` characters."""
    if not secret:
        return "<none>"
    if len(secret) <= visible * 2:
        return "***"
    return f"...{secret[-visible:]}"
