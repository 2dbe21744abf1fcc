"""
시간 관련 유틸리티 함수
"""
from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    현재 UTC 시각을 tz 정보 없는 datetime으로 반환합니다.

    DB 컬럼(DateTime)이 naive 값으로 저장되므로 비교 시 형식을 맞추기 위해 사용합니다.
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)
