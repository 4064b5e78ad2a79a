# app/models/notification.py
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Any, Optional

from app.utils.datetime_utils import DateTimeUtils


class NotificationType(Enum):
    """알림 유형을 정의하는 Enum 클래스"""
    ADOPTION_STATUS = "ADOPTION_STATUS"


class NotificationStatus(Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


@dataclass
class Notification:
    """
    Firestore 'notifications' 컬렉션(이메일 발송 outbox)의 문서 구조.
    상태 전이와 함께 기록되고, 발송 실패 시 FAILED 로 남아 재시도 대상이 됩니다.
    """
    notification_id: str
    type: NotificationType
    recipient_id: str
    recipient_email: str
    target_id: str                  # 알림 대상 객체 ID (adoption_id)
    payload: Dict[str, Any]         # 템플릿 렌더링에 필요한 값
    recipient_name: Optional[str] = None
    status: NotificationStatus = NotificationStatus.PENDING
    attempts: int = 0
    last_error: Optional[str] = None
    created_at: datetime = field(default_factory=DateTimeUtils.now)
    sent_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Notification":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        known['type'] = NotificationType(known['type'])
        known['status'] = NotificationStatus(known.get('status', NotificationStatus.PENDING.value))
        for key in ('created_at', 'sent_at'):
            if known.get(key) is not None:
                known[key] = DateTimeUtils.from_firestore(known[key])
        return cls(**known)
