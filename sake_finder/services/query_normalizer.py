"""
Search keyword normalization.

Canonicalizes free-text input before it is sent upstream:
- full-width punctuation and brackets become half-width or spaces
- volume tokens are rewritten to milliliters ("720 ml" -> "720ml", "1.8L" -> "1800ml", "一升" -> "1800ml")
- promotional noise words are removed

`loosen_query` produces the broader variant used when a strict query finds nothing.
"""
import re
import unicodedata
from decimal import Decimal, InvalidOperation
from typing import Optional

# 全角 -> 半角 / space
ZEN_TO_HAN = {
    "（": "(",
    "）": ")",
    "【": "[",
    "】": "]",
    "／": "/",
    "・": " ",
    "　": " ",
}

BRACKETS_PATTERN = re.compile(r"[【】\[\]（）()/・「」『』〔〕<>＜＞]+")

# Digits must not be glued to a preceding number or decimal point
ML_PATTERN = re.compile(r"(?<![\d.])(\d+)\s*(?:ml|ミリリットル)(?![a-z])", re.IGNORECASE)
LITER_PATTERN = re.compile(r"(?<![\d.])(\d+(?:\.\d+)?)\s*(?:l|リットル)(?![a-z])", re.IGNORECASE)
ISSHO_PATTERN = re.compile(r"一升(?:瓶)?")
YONGO_PATTERN = re.compile(r"四合(?:瓶)?")

NOISE_WORDS = [
    "送料無料",
    "ポイント",
    "最安値",
    "最安",
    "限定",
    "公式",
    "正規品",
    "free shipping",
    "points",
    "lowest price",
    "limited",
    "official",
    "genuine",
]

LOOSEN_WORDS = [
    "化粧箱入り",
    "化粧箱",
    "箱入り",
    "箱付き",
    "箱付",
    "ギフト箱",
    "ギフトボックス",
    "ギフト",
    "贈答用",
    "贈答",
    "贈り物",
    "プレゼント",
    "飲み比べ",
    "詰め合わせ",
    "セット",
    "gift box",
    "gift",
    "set",
]

VOLUME_TOKEN_PATTERN = re.compile(r"(?<![\d.])\d+ml(?![a-z])", re.IGNORECASE)
WHITESPACE_PATTERN = re.compile(r"\s+")


def _word_pattern(words: list[str]) -> re.Pattern:
    # ASCII words match whole words only, Japanese words match anywhere
    parts = []
    for word in words:
        escaped = re.escape(word)
        if word.isascii():
            escaped = rf"(?<![a-z]){escaped}(?![a-z])"
        parts.append(escaped)
    return re.compile("|".join(parts), re.IGNORECASE)


NOISE_PATTERN = _word_pattern(NOISE_WORDS)
LOOSEN_PATTERN = _word_pattern(LOOSEN_WORDS)


def _liters_to_ml(match: re.Match) -> str:
    try:
        ml = int(Decimal(match.group(1)) * 1000)
    except InvalidOperation:
        return match.group(0)
    return f"{ml}ml"


def canonicalize_volumes(text: str) -> str:
    """Rewrite every recognizable volume token as `<n>ml`."""
    text = ISSHO_PATTERN.sub(" 1800ml ", text)
    text = YONGO_PATTERN.sub(" 720ml ", text)
    text = ML_PATTERN.sub(lambda m: f"{int(m.group(1))}ml", text)
    text = LITER_PATTERN.sub(_liters_to_ml, text)
    return text


def parse_volume_ml(text: str) -> Optional[int]:
    """
    Extract bottle volume in milliliters from a product title.
    
    Returns the first volume found, or None.
    """
    if not text:
        return None
    canonical = canonicalize_volumes(unicodedata.normalize("NFKC", text))
    match = VOLUME_TOKEN_PATTERN.search(canonical)
    if not match:
        return None
    return int(match.group(0)[:-2])


def normalize_query(raw: str) -> str:
    """
    Canonicalize a raw search keyword.
    
    Pure and idempotent: normalize_query(normalize_query(s)) == normalize_query(s).
    """
    if not raw:
        return ""
    
    s = raw.strip()
    for zen, han in ZEN_TO_HAN.items():
        s = s.replace(zen, han)
    s = unicodedata.normalize("NFKC", s)
    s = BRACKETS_PATTERN.sub(" ", s)
    # Noise first, so a number and unit it separated are rejoined below
    s = NOISE_PATTERN.sub(" ", s)
    s = canonicalize_volumes(s)
    s = WHITESPACE_PATTERN.sub(" ", s).strip()
    return s


def loosen_query(normalized: str) -> str:
    """Drop packaging, gift and bundle qualifiers plus explicit volumes."""
    if not normalized:
        return ""
    
    s = LOOSEN_PATTERN.sub(" ", normalized)
    s = VOLUME_TOKEN_PATTERN.sub(" ", s)
    s = WHITESPACE_PATTERN.sub(" ", s).strip()
    return s
