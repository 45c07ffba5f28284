# tstar_feed/utils/__init__.py
"""
유틸리티 모듈 패키지

이 패키지는 피드 서비스 전체에서 공통으로 사용되는 유틸리티 함수들을 포함합니다.
"""

from .datetime_utils import DateTimeUtils
from .content_filter import contains_profanity
from .ids import time_based_id

__all__ = [
    'DateTimeUtils',
    'contains_profanity',
    'time_based_id',
]
