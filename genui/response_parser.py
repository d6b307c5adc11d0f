"""
Turns raw (possibly partial) model output into a ParsedCode.

Three shapes of response are handled, checked in this order:
  1. already an HTML document (doctype / <html> / landmark tags present)
  2. markdown fenced blocks with html/css/js bodies
  3. anything else, treated as a bare HTML fragment
Every path ends in a doctype-prefixed, tag-balanced combined document.
"""
import base64
import re

from genui.code_blocks import extract_blocks
from genui.composer import compose, ensure_complete
from genui.models import ParsedCode
from genui.tag_closer import close_tags

STYLE_RE  = re.compile(r"<style[^>]*>(.*?)</style>", re.DOTALL | re.IGNORECASE)
SCRIPT_RE = re.compile(r"<script[^>]*>(.*?)</script>", re.DOTALL | re.IGNORECASE)

_DOC_START_RE = re.compile(r"^(?:<!doctype html>|<html[\s>])", re.IGNORECASE)
_LANDMARK_RE  = re.compile(r"<(?:head|body|main|section)[\s>]", re.IGNORECASE)


def looks_like_html(content: str) -> bool:
    return bool(_DOC_START_RE.match(content) or _LANDMARK_RE.search(content))


def extract_all(regex, text: str) -> list:
    """Trimmed, non-empty bodies of every match, in document order."""
    return [m.group(1).strip() for m in regex.finditer(text) if m.group(1).strip()]


def _from_document(raw: str, combined: str) -> ParsedCode:
    return ParsedCode(
        html=combined,
        css="\n".join(extract_all(STYLE_RE, combined)),
        js="\n".join(extract_all(SCRIPT_RE, combined)),
        raw=raw,
        combined_html=combined,
    )


def parse_generated_code(response: str) -> ParsedCode:
    raw = (response or "").strip()

    if looks_like_html(raw):
        return _from_document(raw, ensure_complete(raw))

    blocks = extract_blocks(raw)
    html = blocks.get("html", "")
    if html:
        css = blocks.get("css", "")
        js = blocks.get("js") or blocks.get("javascript", "")
        combined = ensure_complete(compose(html, css, js))
        return ParsedCode(html=html, css=css, js=js, raw=raw, combined_html=combined)

    return _from_document(raw, ensure_complete(raw))


def parse_streaming_partial(accumulated: str) -> ParsedCode:
    """Parse the response received so far; pure, so safe to call on every chunk."""
    return parse_generated_code(close_tags(accumulated or ""))


def encode_for_preview(html: str) -> str:
    return base64.b64encode(html.encode("utf-8")).decode("ascii")
