"""
Tag balancing for streamed HTML.

A small hand-written tokenizer walks the text once and yields tag tokens;
close_tags() keeps a stack of open elements and appends whatever closing
tags are still owed. Works on any prefix of a document, including one that
ends halfway through a tag.
"""
import re
from typing import Iterator, NamedTuple

VOID_TAGS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})

# Elements whose body is raw text: no tags are recognised until the matching closer.
RAW_TEXT_TAGS = frozenset({"script", "style"})
RAW_TEXT_CLOSERS = {
    name: re.compile(rf"</{name}(?![\w-])", re.IGNORECASE) for name in RAW_TEXT_TAGS
}


class TagToken(NamedTuple):
    name: str
    is_closing: bool
    is_self_closing: bool
    start: int
    end: int


def _is_name_char(c: str) -> bool:
    return c.isalnum() or c in "_-"


def _read_tag(text: str, i: int):
    """Try to read one tag starting at text[i] == '<'. Returns (token, next_index).

    A quoted attribute value may hold '<' and '>'. A bare '<' before the closing
    '>', or running out of text, abandons the candidate; scanning then resumes
    just past its '<' so nothing inside it is lost.
    """
    n = len(text)
    j = i + 1
    closing = j < n and text[j] == "/"
    if closing:
        j += 1
    if j >= n or not text[j].isalpha():
        return None, i + 1

    name_start = j
    while j < n and _is_name_char(text[j]):
        j += 1
    name = text[name_start:j].lower()

    quote, prev = None, ""
    while j < n:
        c = text[j]
        if quote:
            if c == quote:
                quote = None
        elif c in "\"'" and prev == "=":
            quote = c
        elif c == ">":
            break
        elif c == "<":
            return None, i + 1
        if not c.isspace():
            prev = c
        j += 1
    if j >= n:
        return None, i + 1

    end = j + 1
    self_closing = text[j - 1] == "/" and not closing
    return TagToken(name, closing, self_closing, i, end), end


def _skip_raw_text(text: str, i: int, name: str) -> int:
    """Index of the closer of a raw-text element, or len(text) if it never arrives."""
    m = RAW_TEXT_CLOSERS[name].search(text, i)
    return m.start() if m else len(text)


def iter_tags(text: str) -> Iterator[TagToken]:
    """Yield every complete start/end tag in text, left to right."""
    i, n = 0, len(text)
    while i < n:
        i = text.find("<", i)
        if i < 0:
            return
        token, i = _read_tag(text, i)
        if token is None:
            continue
        yield token
        if (token.name in RAW_TEXT_TAGS and not token.is_closing
                and not token.is_self_closing):
            i = _skip_raw_text(text, i, token.name)


def open_stack(text: str) -> list:
    stack = []
    for tok in iter_tags(text):
        if tok.is_self_closing or tok.name in VOID_TAGS:
            continue
        if tok.is_closing:
            for idx in range(len(stack) - 1, -1, -1):
                if stack[idx] == tok.name:
                    # everything opened after the match is closed implicitly
                    del stack[idx:]
                    break
            continue
        stack.append(tok.name)
    return stack


def close_tags(text: str) -> str:
    """Append the closing tags needed to balance every open, non-void element."""
    stack = open_stack(text)
    return text + "".join(f"</{name}>" for name in reversed(stack))
