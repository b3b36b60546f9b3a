"""
HTML to text for LLM input.

Two modes:
- plain text, used for article bodies;
- link-annotated text, where every anchor becomes `[text](absolute_url)` so the
  model can copy exact article URLs out of a blog homepage.

Extraction is best-effort. Badly broken markup can still leak fragments into
the output.
"""
import re
from typing import Iterable
from urllib.parse import urljoin

from bs4 import BeautifulSoup, NavigableString

NON_CONTENT_TAGS = ("script", "style", "noscript", "nav", "footer", "header")
PLAIN_TEXT_EXTRA_TAGS = ("aside",)

_WHITESPACE = re.compile(r"\s+")


def _parse(html: str, drop: Iterable[str]) -> BeautifulSoup:
    soup = BeautifulSoup(html or "", "html.parser")
    for tag in soup.find_all(list(drop)):
        tag.decompose()
    return soup


def _collapse(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def extract_plain_text(html: str) -> str:
    soup = _parse(html, NON_CONTENT_TAGS + PLAIN_TEXT_EXTRA_TAGS)
    return _collapse(soup.get_text(" "))


def extract_text_with_links(html: str, base_url: str) -> str:
    soup = _parse(html, NON_CONTENT_TAGS)

    for anchor in soup.find_all("a"):
        if anchor.parent is None:
            continue
        href = (anchor.get("href") or "").strip()
        link_text = _collapse(anchor.get_text(" "))

        if not href or not link_text:
            anchor.replace_with(NavigableString(f" {link_text} "))
            continue

        try:
            absolute_url = urljoin(base_url, href)
        except ValueError:
            absolute_url = href

        anchor.replace_with(NavigableString(f" [{link_text}]({absolute_url}) "))

    return _collapse(soup.get_text(" "))
