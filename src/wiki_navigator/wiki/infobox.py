# ABOUTME: Recovers a flat attribute map from the first {{Infobox ...}} template in raw wikitext
# ABOUTME: Values are cleaned of wiki links, well-known templates, HTML tags and bold/italic markup

import re

INFOBOX_PATTERN = re.compile(r"\{\{Infobox[^}]*?\n(.*?)\n\}\}", re.DOTALL)

WIKI_LINK = re.compile(r"\[\[([^|\]]+)(?:\|([^\]]+))?\]\]")
TEMPLATE = re.compile(r"\{\{[^}]+\}\}")
HTML_TAG = re.compile(r"<[^>]+>")
WHITESPACE = re.compile(r"\s+")

# Well-known templates rewritten to readable text before the generic template strip
TEMPLATE_SUBSTITUTIONS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"\{\{birth date\|(\d+)\|(\d+)\|(\d+)[^}]*\}\}", re.IGNORECASE), r"\1-\2-\3"),
    (re.compile(r"\{\{death date\|(\d+)\|(\d+)\|(\d+)[^}]*\}\}", re.IGNORECASE), r"\1-\2-\3"),
    (re.compile(r"\{\{age\|[^}]+\}\}", re.IGNORECASE), ""),
    (re.compile(r"\{\{circa\|([^}]+)\}\}", re.IGNORECASE), r"circa \1"),
    (re.compile(r"\{\{flag\|([^}]+)\}\}", re.IGNORECASE), r"\1"),
    (re.compile(r"\{\{coord\|[^}]+\}\}", re.IGNORECASE), ""),
]


def _link_text(match: re.Match[str]) -> str:
    return match.group(2) or match.group(1)


def clean_value(value: str) -> str:
    """Reduce a raw infobox value to readable text."""
    value = WIKI_LINK.sub(_link_text, value.strip())
    for pattern, replacement in TEMPLATE_SUBSTITUTIONS:
        value = pattern.sub(replacement, value)
    value = TEMPLATE.sub("", value)
    value = HTML_TAG.sub("", value)
    value = value.replace("'''", "").replace("''", "")
    return WHITESPACE.sub(" ", value.strip())


def extract_infobox(wikitext: str) -> dict[str, str] | None:
    """Parse ``|key = value`` lines of the first infobox template.

    Lines without ``=`` continue the previous value. Returns None when the page has no
    infobox or the infobox has no fields.
    """
    match = INFOBOX_PATTERN.search(wikitext)
    if match is None:
        return None

    fields: dict[str, str] = {}
    key: str | None = None
    parts: list[str] = []

    for raw_line in match.group(1).split("\n"):
        line = raw_line.strip()
        if not line:
            continue

        if line.startswith("|") and "=" in line:
            if key:
                fields[key] = clean_value(" ".join(parts))
            name, _, value = line[1:].partition("=")
            key = name.strip()
            parts = [value.strip()]
        elif key:
            parts.append(line.removeprefix("|").strip() if line.startswith("|") else line)

    if key:
        fields[key] = clean_value(" ".join(parts))

    return fields or None
