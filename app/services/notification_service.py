# app/services/notification_service.py
import logging
import uuid
from dataclasses import asdict
from typing import Optional, Tuple
from firebase_admin import firestore
from flask import render_template

from app.models.notification import Notification, NotificationType, NotificationStatus
from app.utils.datetime_utils import DateTimeUtils

_STATUS_EMOJIS = {
    'Approved': '🎉',
    'Rejected': '📧',
    'Pending': '⏳',
}


class NotificationService:
    """
    입양 상태 변경 이메일 알림을 담당하는 outbox 서비스 클래스.

    상태 전이 시 발송 의도를 'notifications' 컬렉션에 먼저 기록한 뒤 한 번 발송을 시도합니다.
    실패한 기록은 FAILED 로 남고 `flask notifications retry` 명령으로 재시도됩니다.
    """
    def __init__(self, mail_service, db=None):
        self.db = db or firestore.client()
        self.notifications_ref = self.db.collection('notifications')
        self.mail_service = mail_service
        self.max_attempts = 5

    def init_app(self, app):
        self.max_attempts = app.config.get('NOTIFICATION_MAX_ATTEMPTS', self.max_attempts)

    def queue_adoption_status(self, adoption_id: str, recipient_id: str, recipient_email: str,
                              recipient_name: Optional[str], pet_name: str, status: str,
                              pet_image_url: Optional[str] = None,
                              admin_notes: Optional[str] = None) -> Notification:
        """
        입양 상태 변경 알림을 PENDING 상태로 outbox 에 기록합니다.

        :param adoption_id: 알림 대상 입양 신청 ID
        :param status: 변경된 상태 문자열 (Pending/Approved/Rejected)
        """
        notification = Notification(
            notification_id=str(uuid.uuid4()),
            type=NotificationType.ADOPTION_STATUS,
            recipient_id=recipient_id,
            recipient_email=recipient_email,
            recipient_name=recipient_name,
            target_id=adoption_id,
            payload={
                'pet_name': pet_name,
                'status': status,
                'pet_image_url': pet_image_url,
                'admin_notes': admin_notes or '',
            },
        )
        self.notifications_ref.document(notification.notification_id).set(self._to_document(notification))
        return notification

    def deliver(self, notification: Notification) -> bool:
        """
        outbox 기록 하나를 발송하고 결과(SENT/FAILED)를 기록합니다.
        발송 실패는 예외로 전파하지 않고 False 를 반환합니다.
        """
        notification.attempts += 1
        try:
            subject, text_body, html_body = self._render(notification)
            self.mail_service.send(notification.recipient_email, subject, text_body, html_body)
        except Exception as e:
            notification.status = NotificationStatus.FAILED
            notification.last_error = str(e)
            logging.warning(f"알림 발송 실패 (notification: {notification.notification_id}, attempt {notification.attempts}): {e}")
        else:
            notification.status = NotificationStatus.SENT
            notification.last_error = None
            notification.sent_at = DateTimeUtils.now()
            logging.info(f"{notification.type.value} 알림 발송 완료 -> {notification.recipient_id}")

        self.notifications_ref.document(notification.notification_id).update({
            'status': notification.status.value,
            'attempts': notification.attempts,
            'last_error': notification.last_error,
            'sent_at': notification.sent_at,
        })
        return notification.status is NotificationStatus.SENT

    def notify_adoption_status(self, **kwargs) -> bool:
        """outbox 기록 후 즉시 한 번 발송을 시도합니다. 발송 여부를 반환합니다."""
        notification = self.queue_adoption_status(**kwargs)
        return self.deliver(notification)

    def retry_pending(self, limit: int = 100) -> Tuple[int, int]:
        """
        PENDING/FAILED 상태이면서 최대 시도 횟수에 도달하지 않은 알림을 재발송합니다.

        :return: (발송 성공 수, 발송 실패 수)
        """
        query = self.notifications_ref.where(
            'status', 'in', [NotificationStatus.PENDING.value, NotificationStatus.FAILED.value]
        )
        sent, failed = 0, 0
        for doc in query.stream():
            notification = Notification.from_dict(doc.to_dict())
            if notification.attempts >= self.max_attempts:
                continue
            if sent + failed >= limit:
                break
            if self.deliver(notification):
                sent += 1
            else:
                failed += 1
        return sent, failed

    def _render(self, notification: Notification) -> Tuple[str, str, str]:
        payload = notification.payload
        status = payload['status']
        context = dict(payload, user_name=notification.recipient_name or 'Pet Lover')
        subject = f"{_STATUS_EMOJIS.get(status, '')} Adoption Application {status} - {payload['pet_name']}".strip()
        text_body = render_template('emails/adoption_status.txt', **context)
        html_body = render_template('emails/adoption_status.html', **context)
        return subject, text_body, html_body

    @staticmethod
    def _to_document(notification: Notification) -> dict:
        notification_dict = asdict(notification)
        notification_dict['type'] = notification.type.value
        notification_dict['status'] = notification.status.value
        return notification_dict
