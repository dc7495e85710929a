"""Heuristic code detection.

``CodeDetector`` scores how likely a piece of text is source code by combining
five weighted signals: braces, language keywords, indentation hierarchy,
special syntax and line endings. Prose transforms use it to leave code alone.
"""

from __future__ import annotations

from dataclasses import dataclass
import re

_CODE_KEYWORDS = (
    "function", "func", "def", "async", "await",
    "class", "interface", "struct", "enum", "trait", "protocol",
    "const", "var", "val", "mut", "let",
    "public", "private", "protected", "static",
    "import", "export", "require", "include",
    "catch", "throw", "throws", "finally", "except",
    "fn", "impl", "pub", "mod", "crate",
    "fun", "suspend", "companion",
    "guard", "defer", "extension",
    "elif", "lambda", "yield",
    "chan",
    "nullptr", "sizeof", "typedef",
    "instanceof", "typeof",
)  # fmt: skip

_KEYWORD_PATTERNS = tuple(
    re.compile(rf"\b{re.escape(word)}\b", re.IGNORECASE) for word in _CODE_KEYWORDS
)

_SYNTAX_PATTERNS = (
    "=>", "->", "::",
    "===", "!==",
    "&&", "||",
    "#{", "$(", "${",
    "#include", "#define", "#import", "#if", "#endif",
    "///", "/**",
    "@objc", "@main", "@Published", "@Override", "@Test",
)  # fmt: skip

_CODE_LINE_ENDINGS = (";", "{", "}", ",", ":", "(", ")", "\\")

_FENCE_START = re.compile(r"```[a-zA-Z]*\s*\n")

_SIGNAL_WEIGHTS = (0.3, 0.3, 0.15, 0.15, 0.1)


def indent_width(line: str) -> int:
    """Leading whitespace width, counting a tab as four columns."""
    width = 0
    for char in line:
        if char == " ":
            width += 1
        elif char == "\t":
            width += 4
        else:
            break
    return width


def _non_blank(lines: list[str]) -> list[str]:
    return [line for line in lines if line.strip(" \t")]


@dataclass(frozen=True)
class CodeDetector:
    """Score text for code likeness in ``[0.0, 1.0]``."""

    skip_threshold: float = 0.7
    conservative_threshold: float = 0.4
    preserve_fenced_blocks: bool = True

    def confidence(self, text: str) -> float:
        if not text:
            return 0.0
        if self.preserve_fenced_blocks and self.has_fenced_block(text):
            return 1.0
        scores = (
            self.braces_score(text),
            self.keywords_score(text),
            self.indentation_score(text),
            self.syntax_score(text),
            self.line_endings_score(text),
        )
        weighted = sum(s * w for s, w in zip(scores, _SIGNAL_WEIGHTS, strict=True))
        return min(max(weighted, 0.0), 1.0)

    def should_skip(self, text: str) -> bool:
        """True when the text is confidently code and should not be rewritten."""
        return self.confidence(text) > self.skip_threshold

    def should_be_conservative(self, text: str) -> bool:
        score = self.confidence(text)
        return self.conservative_threshold < score <= self.skip_threshold

    def has_fenced_block(self, text: str) -> bool:
        return _FENCE_START.search(text) is not None

    # Individual signals

    def braces_score(self, text: str) -> float:
        count = sum(text.count(c) for c in "{}[]")
        if count >= 4:
            return 1.0
        if count >= 2:
            return 0.7
        if count >= 1:
            return 0.3
        return 0.0

    def keywords_score(self, text: str) -> float:
        matches = sum(1 for pattern in _KEYWORD_PATTERNS if pattern.search(text))
        if matches >= 5:
            return 1.0
        if matches >= 3:
            return 0.7
        if matches >= 1:
            return 0.4
        return 0.0

    def indentation_score(self, text: str) -> float:
        levels = {indent_width(line) for line in _non_blank(text.split("\n"))}
        if len(levels) >= 3:
            return 1.0
        if len(levels) >= 2:
            return 0.6
        return 0.0

    def syntax_score(self, text: str) -> float:
        matches = sum(1 for pattern in _SYNTAX_PATTERNS if pattern in text)
        if matches >= 3:
            return 1.0
        if matches >= 2:
            return 0.6
        if matches >= 1:
            return 0.3
        return 0.0

    def line_endings_score(self, text: str) -> float:
        lines = _non_blank(text.split("\n"))
        if not lines:
            return 0.0
        ending = sum(1 for line in lines if line.strip(" \t").endswith(_CODE_LINE_ENDINGS))
        return min(ending / len(lines) * 2, 1.0)
