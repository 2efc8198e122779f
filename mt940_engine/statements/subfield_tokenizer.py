"""
Remittance Subfield Tokenizer

Splits one logical :86: remittance line into named subfields such as
``/EREF/.../REMI/...`` (Dutch banks) or ``?20EREF+...?21SVWZ+...`` (German
banks). The identifier vocabulary is supplied by the caller because every
bank uses its own.

Content handling:
- physical line breaks are removed before matching
- continuation markers (``?20`` .. ``?29``) are removed from the content
- one trailing terminator character is trimmed, since not every bank emits it;
  padding on either side of it is removed
- a repeated identifier overwrites the earlier occurrence
- an identifier directly followed by another identifier maps to ``""``
- a trailing identifier with no content after it is discarded
"""

import re
from functools import lru_cache
from typing import AbstractSet, Iterable, Iterator, List, Optional, Tuple

from mt940_engine.statements.line_normalizer import normalize
from mt940_engine.statements.mt940_codes import CONTINUATION_MARKER_PATTERN
from mt940_engine.statements.mt940_message import SubfieldMap

# ``{identifiers}`` is replaced by an alternation of the escaped identifiers
SLASH_DELIMITER = r"/({identifiers})/"
GERMAN_DELIMITER = r"\?2[0-9]({identifiers})\+"


@lru_cache(maxsize=64)
def _compile_delimiter(template: str, identifiers: Tuple[str, ...]) -> "re.Pattern[str]":
    # Longest first so that an identifier never shadows a longer one
    alternation = "|".join(re.escape(i) for i in sorted(identifiers, key=lambda i: (-len(i), i)))
    return re.compile(template.format(identifiers=alternation))


def _pairs(pieces: List[str]) -> Iterator[Tuple[str, str]]:
    """Yield (identifier, content) pairs from a delimiter-captured split.

    ``pieces[0]`` is the text before the first identifier and is not part of
    any subfield. An identifier closing the line without any content is
    dropped; an identifier directly followed by another one keeps ``""``.
    """
    pairs = list(zip(pieces[1::2], pieces[2::2]))
    if pairs and not pairs[-1][1].strip():
        pairs.pop()
    return iter(pairs)


class SubfieldTokenizer:
    """
    Tokenizer for identifier-delimited remittance subfields.

    Args:
        delimiter: regex template containing ``{identifiers}`` inside one
            capturing group
        terminator: trailing character trimmed once from each content, or
            None to keep content as is
        continuation_marker: regex for wrap markers removed from content
    """

    def __init__(
        self,
        delimiter: str = SLASH_DELIMITER,
        terminator: Optional[str] = "/",
        continuation_marker: str = CONTINUATION_MARKER_PATTERN,
    ):
        self.delimiter = delimiter
        self.terminator = terminator
        self._marker = re.compile(continuation_marker)

    def split(self, line: str, identifiers: Iterable[str]) -> List[str]:
        """Split ``line`` on known identifiers, keeping the identifiers."""
        identifiers = tuple(sorted(set(identifiers)))
        payload = normalize(line)
        if not identifiers or not payload:
            return [payload]
        return _compile_delimiter(self.delimiter, identifiers).split(payload)

    def tokenize(self, line: str, identifiers: AbstractSet[str]) -> SubfieldMap:
        """Return the identifier -> content mapping for ``line``."""
        subfields: SubfieldMap = {}
        for identifier, content in _pairs(self.split(line, identifiers)):
            subfields[identifier] = self._clean(content)
        return subfields

    def _clean(self, content: str) -> str:
        content = self._marker.sub("", content).strip()
        # Padding may follow the terminator
        if self.terminator and content.endswith(self.terminator):
            content = content[: -len(self.terminator)]
        return content.strip()


_default_tokenizer = SubfieldTokenizer()


def tokenize(line: str, identifiers: AbstractSet[str]) -> SubfieldMap:
    """Tokenize ``/IDENTIFIER/content`` subfields of a remittance line."""
    return _default_tokenizer.tokenize(line, identifiers)


def serialize(subfields: SubfieldMap) -> str:
    """Render a subfield mapping back into ``/ID/content/`` form."""
    return "".join(f"/{identifier}/{content}/" for identifier, content in subfields.items())
