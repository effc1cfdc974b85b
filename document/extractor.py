"""
document/extractor.py
---------------------
Recovers a complete HTML document from raw model output.

Generated text is often wrapped in conversational preamble, markdown
fences, or cut off before the closing tag when the output limit is hit.
Rules are tried in a fixed order and the first one that matches wins:

  1. bounded  : root marker ... </html>
  2. fenced   : ```html <root marker> ... ```
  3. tail     : root marker ... end of text, trailing fence stripped
  4. fallback : trimmed input, unchanged
"""

import re
from typing import Callable, NamedTuple, Optional, Tuple

from common.io_utils import log

# Doctype declaration or <html opening tag.
ROOT_MARKER = r"(?:<!DOCTYPE html>|<html)"


class ExtractionRule(NamedTuple):
    name: str
    pattern: re.Pattern
    select: Callable[[re.Match], str]


def _strip_trailing_fence(content: str) -> str:
    return re.sub(r"```[\s\S]*$", "", content)


BOUNDED_RULE = ExtractionRule(
    name="bounded",
    pattern=re.compile(ROOT_MARKER + r"[\s\S]*?</html>", re.IGNORECASE),
    select=lambda m: m.group(0),
)

FENCED_RULE = ExtractionRule(
    name="fenced",
    pattern=re.compile(r"```(?:html)?\s*(" + ROOT_MARKER + r"[\s\S]*?)```", re.IGNORECASE),
    select=lambda m: m.group(1),
)

TAIL_RULE = ExtractionRule(
    name="tail",
    pattern=re.compile(ROOT_MARKER + r"[\s\S]*", re.IGNORECASE),
    select=lambda m: _strip_trailing_fence(m.group(0)),
)

EXTRACTION_RULES: Tuple[ExtractionRule, ...] = (BOUNDED_RULE, FENCED_RULE, TAIL_RULE)


def match_rule(text: str) -> Tuple[Optional[str], str]:
    """
    Run the rules in priority order.

    Returns (rule_name, extracted). rule_name is None when no root marker
    was found and the trimmed input is returned instead.
    """
    if not text:
        return None, ""
    for rule in EXTRACTION_RULES:
        m = rule.pattern.search(text)
        if m:
            return rule.name, rule.select(m)
    return None, text.strip()


def extract_document(text: str) -> str:
    """Best-effort extraction of an embeddable HTML document. Never raises."""
    rule, doc = match_rule(text)
    if rule is None:
        log("No document root marker found in model output", "WARNING")
    else:
        log(f"Extracted document via '{rule}' rule ({len(doc)} chars)", "DEBUG")
    return doc
