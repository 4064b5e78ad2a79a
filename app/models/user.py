# app/models/user.py
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Dict, Any

from app.utils.datetime_utils import DateTimeUtils


@dataclass
class User:
    """
    Firestore 'users' 컬렉션의 문서 구조를 정의하는 데이터클래스.
    계정 생성/로그인은 외부 인증 서비스가 담당하며, 여기서는 조회만 합니다.
    """
    user_id: str
    name: str
    email: str
    phone: Optional[str] = None
    is_admin: bool = False
    created_at: datetime = field(default_factory=DateTimeUtils.now)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        if known.get('created_at') is None:
            known.pop('created_at', None)
        else:
            known['created_at'] = DateTimeUtils.from_firestore(known['created_at'])
        return cls(**known)
