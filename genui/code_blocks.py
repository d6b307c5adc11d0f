import re

LANGUAGES = frozenset({"html", "css", "js", "javascript"})

BLOCK_RE = re.compile(r"```([\w+#-]*)\s*(.*?)```", re.DOTALL)


def extract_blocks(text: str) -> dict:
    """Map language -> body of the first fenced block tagged with it.

    Untagged fences count as html. Fences tagged with any other language
    (json, jsx, ...) are skipped, and later blocks of an already-seen
    language are ignored.
    """
    blocks = {}
    for m in BLOCK_RE.finditer(text or ""):
        lang = m.group(1).lower() or "html"
        if lang in LANGUAGES and lang not in blocks:
            blocks[lang] = m.group(2).strip()
    return blocks
