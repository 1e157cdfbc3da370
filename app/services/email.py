"""
services/email.py

이메일 발송(SMTP) 클라이언트.

이 파일은 가입 인증 코드, 비밀번호 재설정 코드,
멘토 승인/거절 결과 메일을 SMTP 로 발송한다.

발송은 주 작업의 부수 효과이므로 라우터에서는
BackgroundTasks 로 응답 이후에 실행되며,
발송 실패는 로그만 남기고 호출자에게 전파하지 않는다.

설계 원칙:
- 프로세스당 1개의 EmailClient 를 재사용 (app.core.deps.get_email_client)
- SMTP 설정이 없으면 발송하지 않고 실패 결과(EmailResult) 반환
- 587 은 STARTTLS, 465 는 SSL 연결

관련 파일:
- app.core.config        : EMAIL_* 설정
- app.core.deps          : get_email_client 의존성
- app.routers.auth       : 인증 코드 메일 발송
- app.routers.admin      : 승인 결과 메일 발송

"""

import logging
import smtplib
import uuid
from dataclasses import dataclass
from email.message import EmailMessage

from app.core.config import Settings


logger = logging.getLogger(__name__)


@dataclass
class EmailResult:
    success: bool
    message_id: str | None = None
    error: str | None = None


CODE_SUBJECTS = {
    "verification": "Verify your email address",
    "reset": "Your password reset code",
}

CODE_VALIDITY = {
    "verification": "10 minutes",
    "reset": "5 minutes",
}


class EmailClient:
    def __init__(self, settings: Settings):
        self.host = settings.EMAIL_HOST
        self.port = settings.EMAIL_PORT
        self.user = settings.EMAIL_USER
        self.password = settings.EMAIL_PASS
        self.sender = settings.EMAIL_FROM or settings.EMAIL_USER
        self.timeout = settings.EMAIL_TIMEOUT_SECONDS

    @property
    def configured(self) -> bool:
        return bool(self.user and self.password)

    def send(self, to: str, subject: str, body: str) -> EmailResult:
        if not self.configured:
            logger.warning("Email service not configured, skipping mail to %s", to)
            return EmailResult(success=False, error="Email service not configured")

        msg = EmailMessage()
        msg["From"] = self.sender
        msg["To"] = to
        msg["Subject"] = subject
        msg["Message-ID"] = f"<{uuid.uuid4().hex}@{self.host}>"
        msg.set_content(body)

        try:
            if self.port == 465:
                with smtplib.SMTP_SSL(self.host, self.port, timeout=self.timeout) as smtp:
                    smtp.login(self.user, self.password)
                    smtp.send_message(msg)
            else:
                with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                    smtp.starttls()
                    smtp.login(self.user, self.password)
                    smtp.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("Failed to send mail to %s: %s", to, e)
            return EmailResult(success=False, error=str(e))

        logger.info("Mail sent to %s (%s)", to, subject)
        return EmailResult(success=True, message_id=msg["Message-ID"])

    """
    인증 코드 메일

    - kind="verification" : 가입 인증 6자리 코드 (10분)
    - kind="reset"        : 비밀번호 재설정 4자리 코드 (5분)

    """
    def send_code(self, email: str, code: str, kind: str = "verification") -> EmailResult:
        if kind not in CODE_SUBJECTS:
            raise ValueError(f"unknown code kind: {kind}")
        body = (
            f"Your code is: {code}\n\n"
            f"This code expires in {CODE_VALIDITY[kind]}.\n"
            "If you did not request this, you can ignore this email."
        )
        return self.send(email, CODE_SUBJECTS[kind], body)

    def send_approval_decision(
        self, email: str, name: str, approved: bool, reason: str | None = None
    ) -> EmailResult:
        if approved:
            subject = "Your mentor account has been approved"
            body = (
                f"Hi {name},\n\n"
                "Your mentor account has been approved. You can now log in and start mentoring."
            )
        else:
            subject = "Your mentor application was not approved"
            body = f"Hi {name},\n\nYour mentor application was not approved."
            if reason:
                body += f"\n\nReason: {reason}"
            body += "\n\nPlease contact support for more information."
        return self.send(email, subject, body)


# BackgroundTasks 에서 실행되는 발송 함수들
# 응답은 이미 반환된 뒤이므로 예외를 밖으로 내보내지 않는다

def deliver_code(client: EmailClient, email: str, code: str, kind: str) -> None:
    try:
        result = client.send_code(email, code, kind)
    except Exception:
        logger.exception("Unexpected error sending %s code to %s", kind, email)
        return
    if not result.success:
        logger.warning("%s code for %s not delivered: %s", kind, email, result.error)


def deliver_approval_decision(
    client: EmailClient, email: str, name: str, approved: bool, reason: str | None = None
) -> None:
    try:
        result = client.send_approval_decision(email, name, approved, reason)
    except Exception:
        logger.exception("Unexpected error sending approval decision to %s", email)
        return
    if not result.success:
        logger.warning("Approval decision for %s not delivered: %s", email, result.error)
