# tstar_feed/utils/datetime_utils.py
"""
피드 전체에서 일관된 시간 처리를 위한 유틸리티 모듈

이 모듈의 목적:
1. 로컬 저장소와 Firestore 양쪽의 createdAt 값을 epoch 밀리초로 통일
2. Firestore timestamp / datetime / ISO 문자열 / 숫자 입력을 모두 수용
3. Timezone 처리 일관성 확보 (UTC)
"""

import logging
from datetime import datetime, timezone
from typing import Any, Optional, Union
from dateutil import parser as dateutil_parser

logger = logging.getLogger(__name__)


class DateTimeUtils:
    """시간/날짜 처리를 위한 중앙화된 유틸리티 클래스"""

    @staticmethod
    def now() -> datetime:
        """현재 시간을 UTC timezone-aware datetime으로 반환"""
        return datetime.now(timezone.utc)

    @staticmethod
    def now_ms() -> int:
        """현재 시간을 epoch 밀리초로 반환"""
        return DateTimeUtils.to_timestamp_ms(DateTimeUtils.now())

    @staticmethod
    def parse_iso_datetime(iso_string: str) -> datetime:
        """
        ISO 포맷 문자열을 datetime 객체로 파싱

        지원 포맷:
        - 2024-01-15T10:30:00Z
        - 2024-01-15T10:30:00+09:00
        - 2024-01-15T10:30:00.123456Z
        - 2024-01-15T10:30:00
        """
        try:
            if not iso_string:
                raise ValueError("빈 문자열은 파싱할 수 없습니다")

            if iso_string.endswith('Z'):
                iso_string = iso_string[:-1] + '+00:00'

            dt = dateutil_parser.isoparse(iso_string)

            # timezone-naive인 경우 UTC로 가정
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)

            return dt.astimezone(timezone.utc)

        except Exception as e:
            logger.error(f"ISO datetime 파싱 실패: {iso_string} - {e}")
            raise ValueError(f"잘못된 ISO 날짜 형식입니다: {iso_string}")

    @staticmethod
    def to_timestamp_ms(dt: Union[datetime, Any]) -> int:
        """
        datetime 객체 또는 Firestore timestamp를 Unix timestamp (밀리초)로 변환
        """
        try:
            if isinstance(dt, datetime):
                if dt.tzinfo is None:
                    dt = dt.replace(tzinfo=timezone.utc)
                return int(dt.timestamp() * 1000)

            # Firestore timestamp 객체 처리 (DatetimeWithNanoseconds 외의 proto Timestamp 등)
            if hasattr(dt, 'timestamp'):
                return int(dt.timestamp() * 1000)

            raise ValueError(f"datetime 객체 또는 Firestore timestamp여야 합니다: {type(dt)}")

        except Exception as e:
            logger.error(f"timestamp_ms 변환 실패: {dt} - {e}")
            raise ValueError(f"timestamp로 변환할 수 없습니다: {dt}")

    @staticmethod
    def normalize_timestamp_ms(value: Any, default: Optional[int] = None) -> int:
        """
        저장소에서 읽은 createdAt 값을 epoch 밀리초로 정규화합니다.

        - None: default, 없으면 현재 시각
        - int/float: 그대로 (밀리초로 간주)
        - 숫자 문자열: 정수 변환, 그 외 문자열은 ISO 포맷으로 파싱
        - datetime / Firestore timestamp: 밀리초로 변환
        변환할 수 없는 값은 경고를 남기고 default(또는 현재 시각)를 사용합니다.
        """
        fallback = default if default is not None else DateTimeUtils.now_ms()
        if value is None:
            return fallback
        if isinstance(value, bool):
            return fallback
        if isinstance(value, (int, float)):
            return int(value)
        try:
            if isinstance(value, str):
                stripped = value.strip()
                if stripped.lstrip('-').isdigit():
                    return int(stripped)
                return DateTimeUtils.to_timestamp_ms(DateTimeUtils.parse_iso_datetime(stripped))
            return DateTimeUtils.to_timestamp_ms(value)
        except ValueError:
            logger.warning(f"createdAt 정규화 실패, 기본값 사용: {value!r}")
            return fallback

