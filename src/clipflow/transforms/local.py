"""Local, algorithmic transformations.

These run entirely in-process, so pipelines built only from them use the
short algorithmic timeout.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from clipflow.transforms.base import require_text
from clipflow.transforms.detection import CodeDetector, indent_width

_CODE_INDICATORS = (
    "func ", "def ", "class ", "struct ", "enum ",
    "import ", "from ", "require ", "#include",
    "if (", "for (", "while (", "switch ", "case ",
    "return ", "throw ", "try {", "catch ",
    "=>", "->", "//", "/*", "*/",
    "public ", "private ", "protected ", "static ",
    "const ", "let ", "var ",
)  # fmt: skip

_DEFAULT_PRESERVE_PREFIXES = (
    "-", "*", ">", "•",
    "1.", "2.", "3.", "4.", "5.", "6.", "7.", "8.", "9.",
)  # fmt: skip


@dataclass(frozen=True)
class IdentityTransformation:
    """Return the input unchanged. Useful as a pipeline placeholder."""

    id: str = "identity"
    display_name: str = "Identity"

    async def transform(self, text: str) -> str:
        return require_text(text)


@dataclass(frozen=True)
class WhitespaceStripConfig:
    maximum_strip: int = 8
    strip_trailing: bool = True
    normalize_line_endings: bool = True


@dataclass(frozen=True)
class WhitespaceStripTransformation:
    """Remove the indentation shared by every non-blank line.

    Relative indentation survives: text indented 4 and 8 columns comes back
    at 0 and 4. Tabs count as four columns and at most
    ``config.maximum_strip`` columns are removed.
    """

    config: WhitespaceStripConfig = field(default_factory=WhitespaceStripConfig)
    id: str = "whitespace-strip"
    display_name: str = "Strip Whitespace"

    async def transform(self, text: str) -> str:
        require_text(text)
        result = text
        if self.config.normalize_line_endings:
            result = result.replace("\r\n", "\n")
        result = self._strip_common_indent(result)
        if self.config.strip_trailing:
            result = "\n".join(line.rstrip(" \t") for line in result.split("\n"))
        return result

    def _strip_common_indent(self, text: str) -> str:
        lines = text.split("\n")
        widths = [indent_width(line) for line in lines if line.strip()]
        if not widths:
            return text
        amount = min(min(widths), self.config.maximum_strip)
        if amount <= 0:
            return text
        return "\n".join(_strip_columns(line, amount) for line in lines)


def _strip_columns(line: str, amount: int) -> str:
    remaining = amount
    index = 0
    while remaining > 0 and index < len(line):
        char = line[index]
        if char == " ":
            remaining -= 1
        elif char == "\t":
            remaining -= min(4, remaining)
        else:
            break
        index += 1
    return line[index:]


@dataclass(frozen=True)
class SmartUnwrapConfig:
    """Thresholds for recognising hard-wrapped paragraphs."""

    min_consecutive_lines: int = 3
    length_tolerance: int = 5
    wrap_range_lower: int = 65
    wrap_range_upper: int = 85
    consistency_threshold: float = 0.7
    preserve_code_blocks: bool = True
    preserve_prefixes: tuple[str, ...] = _DEFAULT_PRESERVE_PREFIXES


@dataclass(frozen=True)
class SmartUnwrapTransformation:
    """Join hard-wrapped prose paragraphs into single lines.

    Text from mail clients, terminals and commit messages is often wrapped at
    a fixed column. A block (lines between blank lines) is unwrapped only when
    its line lengths cluster tightly around a typical wrap width. Blank lines,
    lists, quotes, indented continuations and code are left as they are.
    """

    config: SmartUnwrapConfig = field(default_factory=SmartUnwrapConfig)
    detector: CodeDetector = field(default_factory=CodeDetector)
    id: str = "smart-unwrap"
    display_name: str = "Smart Unwrap"

    async def transform(self, text: str) -> str:
        require_text(text)
        if self.config.preserve_code_blocks and self.detector.should_skip(text):
            return text

        out: list[str] = []
        for block in _split_blocks(text):
            if block is None:
                out.append("")
            elif self.should_unwrap(block):
                out.append(" ".join(line.strip(" \t") for line in block))
            else:
                out.extend(block)
        return "\n".join(out)

    def should_unwrap(self, lines: list[str]) -> bool:
        cfg = self.config
        if len(lines) < cfg.min_consecutive_lines:
            return False
        if cfg.preserve_code_blocks and any(_looks_like_code(line) for line in lines):
            return False
        if any(
            line.strip(" \t").startswith(prefix)
            for prefix in cfg.preserve_prefixes
            for line in lines
        ):
            return False
        if _has_indented_continuation(lines):
            return False
        return self.is_hard_wrapped(lines)

    def is_hard_wrapped(self, lines: list[str]) -> bool:
        # The last line of a paragraph is usually short; leave it out.
        lengths = [len(line) for line in (lines[:-1] if len(lines) > 1 else lines)]
        if not lengths:
            return False
        median = sorted(lengths)[len(lengths) // 2]
        cfg = self.config
        if not cfg.wrap_range_lower <= median <= cfg.wrap_range_upper:
            return False
        consistent = sum(1 for n in lengths if abs(n - median) <= cfg.length_tolerance)
        return consistent / len(lengths) >= cfg.consistency_threshold


def _split_blocks(text: str) -> list[list[str] | None]:
    """Group lines into blocks; ``None`` marks a blank separator line."""
    blocks: list[list[str] | None] = []
    current: list[str] = []
    for line in text.split("\n"):
        if line.strip(" \t"):
            current.append(line)
            continue
        if current:
            blocks.append(current)
            current = []
        blocks.append(None)
    if current:
        blocks.append(current)
    return blocks


def _looks_like_code(line: str) -> bool:
    if any(indicator in line for indicator in _CODE_INDICATORS):
        return True
    if "{" in line or "}" in line:
        return True
    if line.startswith(("    ", "\t")):
        return True
    return line.strip(" \t").endswith((";", "{", "}"))


def _has_indented_continuation(lines: list[str]) -> bool:
    first = indent_width(lines[0])
    return any(indent_width(line) > first and indent_width(line) > 0 for line in lines[1:])
