"""Restricted YAML-like front-matter parsing"""

import re

from mdblog.core.models import FrontMatter, FrontMatterValue


FRONTMATTER_RE = re.compile(r'\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)(.*)\Z', re.DOTALL)

_ESCAPE_RE = re.compile(r'\\(["\\])')
_INT_RE = re.compile(r'^\d+$')
_FLOAT_RE = re.compile(r'^\d+\.\d+$')


def _unquote(value: str) -> str | None:
    """Return the inner text of a '...' or "..." value, else None."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        inner = value[1:-1]
        return _ESCAPE_RE.sub(r'\1', inner) if value[0] == '"' else inner
    return None


def _strip_quotes(value: str) -> str:
    quoted = _unquote(value)
    return value if quoted is None else quoted


def parse_value(value: str) -> FrontMatterValue:
    """Parse one scalar or flat list value.

    Order: quoted string, [a, b] list, true/false, integer, decimal, plain string.
    Dates are left as strings.
    """
    value = value.strip()
    if not value:
        return ''

    quoted = _unquote(value)
    if quoted is not None:
        return quoted

    if value.startswith('[') and value.endswith(']'):
        items = [_strip_quotes(item.strip()) for item in value[1:-1].split(',')]
        return [item for item in items if item]

    if value == 'true':
        return True
    if value == 'false':
        return False
    if _INT_RE.match(value):
        return int(value)
    if _FLOAT_RE.match(value):
        return float(value)
    return value


def parse_front_matter_block(block: str) -> FrontMatter:
    """Parse key: value lines; blank lines, comments and lines without ':' are skipped."""
    result: FrontMatter = {}
    for line in block.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith('#'):
            continue
        key, sep, value = stripped.partition(':')
        if not sep:
            continue
        result[key.strip()] = parse_value(value)
    return result


def parse_front_matter(text: str) -> tuple[FrontMatter, str]:
    """Return (front_matter, body). Without a leading --- block the whole text is the body."""
    text = text.lstrip('\ufeff')
    m = FRONTMATTER_RE.match(text)
    if not m:
        return {}, text
    return parse_front_matter_block(m.group(1)), m.group(2).strip()
