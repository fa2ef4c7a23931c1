"""Markdown to HTML rendering for post display"""

import html
import logging

from markdown_it import MarkdownIt


logger = logging.getLogger(__name__)

DEFAULT_PRESET = "gfm-like"


def make_renderer(preset: str = DEFAULT_PRESET) -> MarkdownIt:
    """Build a MarkdownIt instance with soft line breaks rendered as <br>."""
    return MarkdownIt(preset, options_update={"linkify": False, "breaks": True})


def render_markdown(content: str, preset: str = DEFAULT_PRESET) -> str:
    """Render markdown to HTML; on parser failure fall back to escaped text with <br /> breaks."""
    try:
        return make_renderer(preset).render(content or '')
    except Exception as e:
        logger.warning("Markdown rendering failed, using plain text: %s", e)
        return html.escape(content or '').replace('\n', '<br />')
