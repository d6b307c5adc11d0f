#!/usr/bin/env python3
"""
Render check: loads a finished document into headless Chromium and reports
script errors and blank pages.
Never raises; a browser that cannot start is reported as a single issue.
"""
import logging

from playwright.sync_api import sync_playwright, TimeoutError as PWTimeout

log = logging.getLogger("render")

# Console lines that are never the document's fault.
NOISE = [
    "favicon", "DevTools", "net::ERR_", "Failed to load resource",
    "Cross-Origin", "Content-Security-Policy", "fonts.googleapis", "fonts.gstatic",
]
# A console error must contain one of these to count.
REAL_SIGNALS = [
    "is not defined", "is not a function",
    "Cannot read prop", "Cannot read properties", "Cannot set prop",
    "SyntaxError", "ReferenceError", "TypeError", "Unexpected token",
]

VISIBLE_CONTENT_JS = """() => {
    for (const el of document.querySelectorAll('body *')) {
        const r = el.getBoundingClientRect();
        if (r.width > 5 && r.height > 5) return true;
    }
    return false;
}"""


def filter_console_errors(lines: list) -> list:
    return [
        l for l in lines
        if not any(n.lower() in l.lower() for n in NOISE)
        and any(s in l for s in REAL_SIGNALS)
    ]


class RenderChecker:
    def __init__(self, timeout_ms: int = 15000, viewport=(1280, 720)):
        self.timeout_ms = timeout_ms
        self.viewport   = {"width": viewport[0], "height": viewport[1]}

    def check(self, html: str) -> list:
        issues = []
        console_errors = []
        try:
            with sync_playwright() as pw:
                browser = pw.chromium.launch(headless=True)
                try:
                    page = browser.new_context(viewport=self.viewport).new_page()
                    page.on("console", lambda m: console_errors.append(m.text)
                            if m.type == "error" else None)
                    page.on("pageerror", lambda e: console_errors.append(f"PageError: {e}"))

                    try:
                        page.set_content(html, timeout=self.timeout_ms, wait_until="load")
                    except PWTimeout:
                        issues.append("Document load timed out")
                        return issues

                    has_visible = page.evaluate(VISIBLE_CONTENT_JS)
                    body_text = page.inner_text("body").strip()
                    if not has_visible and len(body_text) < 10:
                        issues.append("Page appears completely blank — nothing rendered")
                finally:
                    browser.close()
        except Exception as e:
            log.warning(f"   ⚠ Playwright runtime error: {e}")
            return [f"Playwright runtime error: {e}"]

        page_errors = [e for e in console_errors if e.startswith("PageError:")]
        real = filter_console_errors([e for e in console_errors if e not in page_errors])
        for err in (page_errors + real)[:5]:
            issues.append(f"Console error: {err[:160]}")

        if issues:
            log.warning(f"   ❌ {len(issues)} render issue(s)")
        else:
            log.info("   🎉 Render check passed")
        return issues
