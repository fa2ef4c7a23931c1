"""Language-aware slug generation for posts, tags and notes"""

import logging
import re
import unicodedata
from datetime import datetime

import pykakasi
from pypinyin import Style, lazy_pinyin

from mdblog.core.utils.language import Language, detect_content_language


logger = logging.getLogger(__name__)

MAX_SLUG_LENGTH = 100
MIN_SLUG_LENGTH = 3

_CJK = '\u4e00-\u9fff'
_KANA = '\u3040-\u309f\u30a0-\u30ff'
_SEGMENT = f'[{_CJK}{_KANA}a-z0-9]+'

SLUG_RE = re.compile(rf'^{_SEGMENT}(?:-{_SEGMENT})*$', re.IGNORECASE)
TIMESTAMP_SLUG_RE = re.compile(r'^\d{8}-\d{6}$')

_CHINESE_RUN = re.compile(f'[{_CJK}]+')
_JAPANESE_RUN = re.compile(f'[{_KANA}{_CJK}]+')
_DISALLOWED = re.compile(f'[^a-z0-9{_CJK}{_KANA}\\s_-]')

_kakasi = None


def _romaji_converter():
    """Lazily build the shared kakasi converter (its dictionaries are slow to load)."""
    global _kakasi
    if _kakasi is None:
        _kakasi = pykakasi.kakasi()
    return _kakasi


def chinese_to_pinyin(text: str) -> str:
    """Romanize a run of Chinese ideographs, one hyphen-joined syllable per character."""
    try:
        return '-'.join(lazy_pinyin(text, style=Style.NORMAL))
    except Exception as e:
        logger.warning("Pinyin conversion failed for %r: %s", text, e)
        return text


def japanese_to_romaji(text: str) -> str:
    """Romanize a run of kana/kanji to Hepburn romaji, words separated by spaces."""
    try:
        return ' '.join(item['hepburn'] for item in _romaji_converter().convert(text) if item['hepburn'])
    except Exception as e:
        logger.warning("Romaji conversion failed for %r: %s", text, e)
        return text


def slugify(text: str) -> str:
    """Final normalization pass: lowercase, drop disallowed chars, hyphenate, trim.

    Letters kept are ASCII letters/digits, CJK ideographs and kana; whitespace and
    underscores become single hyphens. Output is capped at MAX_SLUG_LENGTH.
    """
    text = unicodedata.normalize('NFKC', text).lower()
    text = _DISALLOWED.sub('', text)
    text = re.sub(r'[\s_]+', '-', text)
    text = re.sub(r'-+', '-', text).strip('-')
    if len(text) > MAX_SLUG_LENGTH:
        cut = text[:MAX_SLUG_LENGTH]
        if '-' in cut and text[MAX_SLUG_LENGTH] != '-':
            cut = cut.rsplit('-', 1)[0]
        text = cut.strip('-')
    return text


def generate_slug(text: str, language: Language | None = None) -> str:
    """Turn arbitrary text into a URL-safe slug, transliterating CJK by language.

    An explicit language other than 'auto' forces the transliteration rule;
    otherwise the text is classified first. Empty input yields ''.
    """
    if not text or not text.strip():
        return ''

    detected = detect_content_language(text, language)
    if detected == 'chinese':
        text = _CHINESE_RUN.sub(lambda m: f' {chinese_to_pinyin(m.group())} ', text)
    elif detected == 'japanese':
        text = _JAPANESE_RUN.sub(lambda m: f' {japanese_to_romaji(m.group())} ', text)

    return slugify(text)


def generate_note_slug(timestamp: datetime | None = None) -> str:
    """Return a YYYYMMDD-HHMMSS slug (local time) for short-form posts."""
    return (timestamp or datetime.now()).strftime('%Y%m%d-%H%M%S')


def is_valid_slug(slug: str) -> bool:
    """True if slug matches the slug grammar and is 3-100 characters long."""
    return bool(SLUG_RE.match(slug)) and MIN_SLUG_LENGTH <= len(slug) <= MAX_SLUG_LENGTH


def is_valid_timestamp_slug(slug: str) -> bool:
    return bool(TIMESTAMP_SLUG_RE.match(slug))
