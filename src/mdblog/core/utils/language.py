"""Content language classification: statistical detector with a character-frequency fallback"""

import logging
import re
from typing import Literal

from langdetect import DetectorFactory, detect_langs
from langdetect.lang_detect_exception import LangDetectException


logger = logging.getLogger(__name__)

# langdetect is randomized by default; a fixed seed makes results repeatable.
DetectorFactory.seed = 0

Language = Literal['auto', 'chinese', 'japanese', 'english']
DetectedLanguage = Literal['chinese', 'japanese', 'english']

SUPPORTED_LANGUAGES: tuple[str, ...] = ('auto', 'chinese', 'japanese', 'english')

LANGUAGE_CODES: dict[str, DetectedLanguage] = {
    'zh-cn': 'chinese',
    'zh-tw': 'chinese',
    'ja':    'japanese',
    'en':    'english',
}

MIN_CONFIDENCE = 0.5
MIN_DETECT_LENGTH = 3

_IDEOGRAPH = re.compile(r'[\u4e00-\u9fff]')
_KANA = re.compile(r'[\u3040-\u309f\u30a0-\u30ff]')
_LATIN = re.compile(r'[a-zA-Z]')


def detect_statistical(text: str) -> DetectedLanguage | None:
    """Classify with langdetect; None when the text is too short or no confident mapping exists."""
    normalized = re.sub(r'\s+', ' ', text.strip())
    if len(normalized) < MIN_DETECT_LENGTH:
        return None
    try:
        candidates = detect_langs(normalized)
    except LangDetectException as e:
        logger.debug("Language detection failed: %s", e)
        return None
    if not candidates or candidates[0].prob < MIN_CONFIDENCE:
        return None
    return LANGUAGE_CODES.get(candidates[0].lang)


def detect_by_characters(text: str) -> Literal['chinese', 'japanese', 'english', 'mixed']:
    """Classify by the share of ideographs, kana and Latin letters among non-whitespace chars."""
    total = len(re.sub(r'\s+', '', text))
    if total == 0:
        return 'mixed'
    ideograph_ratio = len(_IDEOGRAPH.findall(text)) / total
    kana_ratio = len(_KANA.findall(text)) / total
    latin_ratio = len(_LATIN.findall(text)) / total

    if kana_ratio > 0.1:
        return 'japanese'
    if ideograph_ratio > 0.5 and kana_ratio == 0:
        return 'chinese'
    if latin_ratio > 0.7:
        return 'english'
    return 'mixed'


def detect_content_language(text: str, user_language: Language | None = None) -> DetectedLanguage:
    """Return chinese/japanese/english for text; an explicit non-auto language always wins."""
    if user_language and user_language != 'auto':
        return user_language

    detected = detect_statistical(text)
    if detected:
        return detected

    by_chars = detect_by_characters(text)
    if by_chars != 'mixed':
        return by_chars
    # Mixed content: any kana means Japanese, then any ideograph means Chinese.
    if _KANA.search(text):
        return 'japanese'
    if _IDEOGRAPH.search(text):
        return 'chinese'
    return 'english'
