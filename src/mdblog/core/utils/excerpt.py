"""Plain-text excerpt generation from markdown bodies"""

import re


DEFAULT_EXCERPT_LENGTH = 160
ELLIPSIS = '...'


def strip_markdown(content: str) -> str:
    """Drop images, unwrap links, remove emphasis/heading/code markers, flatten newlines."""
    text = re.sub(r'!\[.*?\]\(.*?\)', '', content)
    text = re.sub(r'\[([^\]]+)\]\([^)]+\)', r'\1', text)
    text = re.sub(r'[#*`_~]', '', text)
    text = re.sub(r'\n+', ' ', text)
    return text.strip()


def generate_excerpt(content: str, max_length: int = DEFAULT_EXCERPT_LENGTH) -> str:
    """Return a plain-text excerpt of at most max_length chars plus an ellipsis.

    Truncation happens at the last space when it falls within the final 20% of
    the budget; otherwise the text is cut hard at max_length.
    """
    plain = strip_markdown(content)
    if len(plain) <= max_length:
        return plain

    truncated = plain[:max_length]
    last_space = truncated.rfind(' ')
    if last_space > max_length * 0.8:
        return truncated[:last_space] + ELLIPSIS
    return truncated + ELLIPSIS
