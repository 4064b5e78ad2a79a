# app/api/users/services.py
import logging
from typing import Dict, Iterable, Optional
from firebase_admin import firestore

from app.models.user import User


class UserService:
    """
    사용자 조회 전용 서비스.
    가입/로그인은 외부 인증 서비스가 담당하므로 이 서버는 users 컬렉션을 읽기만 합니다.
    """

    def __init__(self, db=None):
        self.db = db or firestore.client()
        self.users_ref = self.db.collection('users')

    def get_user(self, user_id: Optional[str]) -> Optional[User]:
        """user_id로 사용자를 조회합니다. 없으면 None."""
        if not user_id:
            return None
        doc = self.users_ref.document(user_id).get()
        if not doc.exists:
            return None
        data = doc.to_dict()
        data.setdefault('user_id', doc.id)
        return User.from_dict(data)

    def get_users(self, user_ids: Iterable[str]) -> Dict[str, User]:
        """여러 사용자를 한 번에 조회하여 {user_id: User} 형태로 반환합니다."""
        users = {}
        for user_id in set(filter(None, user_ids)):
            user = self.get_user(user_id)
            if user is None:
                logging.warning(f"사용자 정보를 찾을 수 없음 (ID: {user_id})")
                continue
            users[user_id] = user
        return users
