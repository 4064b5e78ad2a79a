# app/services/mail_service.py
import logging
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Optional
from flask import Flask

from app.core.exceptions import UpstreamServiceError


class MailService:
    """
    SMTP 메일 발송을 담당하는 서비스 클래스.
    MAIL_SUPPRESS_SEND 가 켜져 있으면 실제로 발송하지 않고 로그로만 남깁니다 (개발 환경).
    발송이 켜져 있는데 MAIL_SERVER 가 없으면 발송 실패로 처리되어 알림이 재시도 대상으로 남습니다.
    """

    def __init__(self):
        self.server: Optional[str] = None
        self.port = 587
        self.use_tls = True
        self.username: Optional[str] = None
        self.password: Optional[str] = None
        self.default_sender = '"PetCare" <noreply@petcare.com>'
        self.timeout = 10
        self.suppress = False

    def init_app(self, app: Flask):
        """
        Flask 앱 초기화 과정에서 호출되어 SMTP 설정을 읽어옵니다.

        :param app: Flask 애플리케이션 객체
        """
        self.server = app.config.get('MAIL_SERVER')
        self.port = app.config.get('MAIL_PORT', self.port)
        self.use_tls = app.config.get('MAIL_USE_TLS', self.use_tls)
        self.username = app.config.get('MAIL_USERNAME')
        self.password = app.config.get('MAIL_PASSWORD')
        self.default_sender = app.config.get('MAIL_DEFAULT_SENDER', self.default_sender)
        self.timeout = app.config.get('MAIL_TIMEOUT', self.timeout)
        self.suppress = app.config.get('MAIL_SUPPRESS_SEND', False)

        if self.suppress:
            logging.warning("MailService: MAIL_SUPPRESS_SEND 활성화 - 이메일은 로그로만 기록됩니다.")
        elif not self.server:
            logging.error("MailService: MAIL_SERVER 설정이 없어 이메일 발송이 모두 실패합니다.")
        else:
            logging.info(f"MailService: SMTP 서버 {self.server}:{self.port} 사용")

    def send(self, to: str, subject: str, text_body: str, html_body: Optional[str] = None) -> str:
        """
        이메일 한 통을 발송하고 Message-ID 를 반환합니다.

        :raises UpstreamServiceError: SMTP 연결/인증/발송 실패 시
        """
        message = EmailMessage()
        message['Subject'] = subject
        message['From'] = self.default_sender
        message['To'] = to
        message['Message-ID'] = make_msgid(domain='petcare.com')
        message.set_content(text_body)
        if html_body:
            message.add_alternative(html_body, subtype='html')

        if self.suppress:
            logging.info(f"[MAIL SUPPRESSED] To: {to} | Subject: {subject}\n{text_body}")
            return message['Message-ID']

        if not self.server:
            raise UpstreamServiceError("Mail server is not configured", error_code="MAIL_DELIVERY_FAILED")

        try:
            with smtplib.SMTP(self.server, self.port, timeout=self.timeout) as smtp:
                if self.use_tls:
                    smtp.starttls()
                if self.username:
                    smtp.login(self.username, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise UpstreamServiceError(f"Failed to send email: {e}", error_code="MAIL_DELIVERY_FAILED") from e

        logging.info(f"Email sent to {to} (Message-ID: {message['Message-ID']})")
        return message['Message-ID']
