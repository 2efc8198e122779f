"""
Line normalization for logical MT940 fields.

A logical field (for example an :86: remittance text) is wrapped over several
physical lines on the wire. The line breaks carry no meaning and must be gone
before any delimiter matching runs.
"""

import re

_LINE_BREAKS = re.compile(r"\r\n|\r|\n")


def normalize(text: str) -> str:
    """Remove all CRLF, CR and LF sequences from ``text``."""
    if not text:
        return ""
    return _LINE_BREAKS.sub("", text)
