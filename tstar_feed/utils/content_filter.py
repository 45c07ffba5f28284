# tstar_feed/utils/content_filter.py
from typing import Iterable, Optional

# 기본 금칙어 목록. DISALLOWED_WORDS 설정으로 확장할 수 있습니다.
DEFAULT_DISALLOWED_WORDS = ("badword", "spamword")


def parse_word_list(raw: Optional[str]) -> tuple:
    """쉼표로 구분된 설정 문자열을 소문자 단어 튜플로 변환합니다."""
    if not raw:
        return ()
    return tuple(w.strip().lower() for w in raw.split(",") if w.strip())


def contains_profanity(text: Optional[str], extra_words: Iterable[str] = ()) -> bool:
    """
    공백 기준으로 나눈 단어 중 금칙어와 정확히 일치하는 단어가 있는지 확인합니다.
    부분 문자열은 검사하지 않습니다. ("badwords"는 통과)
    """
    disallowed = set(DEFAULT_DISALLOWED_WORDS)
    disallowed.update(w.lower() for w in extra_words)
    return any(word in disallowed for word in (text or "").lower().split())
