"""Inline markup for form titles, descriptions and options.

Text may contain inline math written as ``\\( ... \\)`` and the style tags
``<b>``, ``<i>`` and ``<u>``. Everything else is literal text and is escaped.
Rendering is a single left-to-right scan into tokens, then a render pass
that keeps the emitted HTML well formed.
"""
import logging
import re
from typing import Iterator, NamedTuple, Optional

from latex2mathml.converter import convert
from markupsafe import Markup, escape
from pydantic import BaseModel

from formapi.exceptions import MarkupRenderError

logger = logging.getLogger(__name__)

MATH_OPEN = "\\("
MATH_CLOSE = "\\)"
MATH_PLACEHOLDER = "[math]"
STYLE_TAGS = {"b": "strong", "i": "em", "u": "u"}
STYLE_TAG_RE = re.compile(r"<(/?)([biu])>", re.IGNORECASE)

TEXT, MATH, OPEN, CLOSE = "text", "math", "open", "close"


class Token(NamedTuple):
    kind: str
    value: str
    raw: str


class RenderedText(BaseModel):
    html: str
    text: str


def tokenize(text: str) -> Iterator[Token]:
    pos = 0
    literal_start = 0
    length = len(text)
    while pos < length:
        token = None
        end = pos
        if text.startswith(MATH_OPEN, pos):
            close = text.find(MATH_CLOSE, pos + len(MATH_OPEN))
            if close != -1:
                end = close + len(MATH_CLOSE)
                token = Token(MATH, text[pos + len(MATH_OPEN):close], text[pos:end])
        elif text[pos] == "<":
            match = STYLE_TAG_RE.match(text, pos)
            if match:
                end = match.end()
                kind = CLOSE if match.group(1) else OPEN
                token = Token(kind, match.group(2).lower(), match.group(0))

        if token is None:
            pos += 1
            continue
        if literal_start < pos:
            literal = text[literal_start:pos]
            yield Token(TEXT, literal, literal)
        yield token
        pos = literal_start = end

    if literal_start < length:
        literal = text[literal_start:]
        yield Token(TEXT, literal, literal)


def _braces_balanced(expression: str) -> bool:
    depth = 0
    escaped = False
    for char in expression:
        if escaped:
            escaped = False
        elif char == "\\":
            escaped = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth < 0:
                return False
    return depth == 0


def typeset(expression: str) -> Markup:
    """Convert a LaTeX expression to MathML."""
    source = expression.strip()
    if not source:
        raise MarkupRenderError("empty expression")
    if not _braces_balanced(source):
        raise MarkupRenderError(f"unbalanced braces in {source!r}")
    try:
        return Markup(convert(source))
    except Exception as e:
        raise MarkupRenderError(f"cannot typeset {source!r}: {e}") from e


def _render_math(expression: str) -> Markup:
    try:
        return typeset(expression)
    except MarkupRenderError as e:
        logger.warning(f"Rendering invalid math span as placeholder: {e}")
        return Markup(
            '<span class="math-error" title="Invalid expression">[invalid expression: {}]</span>'
        ).format(expression)


def render(text: Optional[str]) -> Markup:
    if not text:
        return Markup("")

    parts = []
    open_tags = []
    for token in tokenize(text):
        if token.kind == TEXT:
            parts.append(escape(token.value))
        elif token.kind == MATH:
            parts.append(_render_math(token.value))
        elif token.kind == OPEN:
            open_tags.append(token.value)
            parts.append(Markup(f"<{STYLE_TAGS[token.value]}>"))
        elif open_tags and open_tags[-1] == token.value:
            open_tags.pop()
            parts.append(Markup(f"</{STYLE_TAGS[token.value]}>"))
        else:
            # stray or overlapping closing tag
            parts.append(escape(token.raw))

    for tag in reversed(open_tags):
        parts.append(Markup(f"</{STYLE_TAGS[tag]}>"))
    return Markup("").join(parts)


def plain_text(text: Optional[str]) -> str:
    """Accessible label for ``text``: math collapsed, style tags dropped."""
    if not text:
        return ""
    parts = []
    for token in tokenize(text):
        if token.kind == TEXT:
            parts.append(token.value)
        elif token.kind == MATH:
            parts.append(MATH_PLACEHOLDER)
    return "".join(parts)


def render_text(text: Optional[str]) -> RenderedText:
    return RenderedText(html=str(render(text)), text=plain_text(text))
