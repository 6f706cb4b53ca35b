"""Plain-text extraction from markdown and summary derivation."""

from markdown_it import MarkdownIt
from markdown_it.token import Token

SUMMARY_LENGTH = 150
ELLIPSIS = "..."

_md = MarkdownIt().enable(["strikethrough", "table"])

# Block tokens whose raw content is readable text
_CODE_BLOCKS = {"fence", "code_block"}
_INLINE_TEXT = {"text", "code_inline"}
_BREAKS = {"softbreak", "hardbreak"}


def _inline_text(children: list[Token]) -> str:
    parts: list[str] = []
    for child in children:
        if child.type in _INLINE_TEXT:
            parts.append(child.content)
        elif child.type in _BREAKS:
            parts.append(" ")
        elif child.type == "image" and child.children:
            # alt text
            parts.append(_inline_text(child.children))
    return "".join(parts)


def markdown_to_text(content: str) -> str:
    """Reduce markdown to a single line of plain text.

    Walks the markdown-it token stream, keeping inline text, inline code,
    code block bodies and image alt text. Raw HTML and markup are dropped.
    """
    blocks: list[str] = []
    for token in _md.parse(content):
        if token.type == "inline" and token.children:
            blocks.append(_inline_text(token.children))
        elif token.type in _CODE_BLOCKS:
            blocks.append(token.content)
    return " ".join(" ".join(blocks).split())


def derive_summary(content: str, length: int = SUMMARY_LENGTH) -> str:
    """First ``length`` characters of the plain text, plus an ellipsis if cut."""
    text = markdown_to_text(content)
    if len(text) > length:
        return text[:length] + ELLIPSIS
    return text


def word_count(content: str) -> int:
    """Number of whitespace-separated words in the plain text."""
    return len(markdown_to_text(content).split())
