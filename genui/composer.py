import re

from genui.tag_closer import close_tags

DOCTYPE_RE       = re.compile(r"<!DOCTYPE html>", re.IGNORECASE)
LEADING_DOCTYPE  = re.compile(r"^<!doctype html>", re.IGNORECASE)
HTML_TAG_RE      = re.compile(r"<html[\s>]", re.IGNORECASE)
LEADING_HTML_TAG = re.compile(r"^<html[\s>]", re.IGNORECASE)

HEAD_META = (
    '<meta charset="UTF-8" />\n'
    '<meta name="viewport" content="width=device-width, initial-scale=1.0" />'
)


def compose(html: str, css: str = "", js: str = "") -> str:
    """Build a standalone document from separate html/css/js fragments."""
    if DOCTYPE_RE.search(html):
        return html

    body = html if HTML_TAG_RE.search(html) else f"<body>{html}</body>"
    style = f"<style>{css}</style>" if css else ""
    script = f"<script>{js}</script>" if js else ""
    return (
        "<!DOCTYPE html>\n"
        '<html lang="en">\n'
        "<head>\n"
        f"{HEAD_META}\n"
        f"{style}\n"
        "</head>\n"
        f"{body}\n"
        f"{script}\n"
        "</html>"
    )


def ensure_complete(content: str) -> str:
    """Doctype-prefix content (wrapping bare fragments in a skeleton) and balance its tags."""
    normalized = content.strip()
    if not LEADING_DOCTYPE.match(normalized):
        if LEADING_HTML_TAG.match(normalized):
            normalized = f"<!DOCTYPE html>\n{normalized}"
        else:
            normalized = (
                "<!DOCTYPE html>\n"
                '<html lang="en">\n'
                "<head>\n"
                f"{HEAD_META}\n"
                "</head>\n"
                "<body>\n"
                f"{normalized}\n"
                "</body>\n"
                "</html>"
            )
    return close_tags(normalized)
