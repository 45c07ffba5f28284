# tstar_feed/models/report.py
from dataclasses import dataclass, field

from tstar_feed.utils.datetime_utils import DateTimeUtils

DEFAULT_REPORT_REASON = "Reported via app"

@dataclass
class Report:
    """로컬에만 저장되는 게시글 신고 기록."""
    id: str
    post_id: str
    reporter: str
    reason: str = DEFAULT_REPORT_REASON
    created_at: int = field(default_factory=DateTimeUtils.now_ms)
