"""
errors.py

도메인 에러(Domain Error) 정의 파일.

서비스 계층은 HTTP 를 알지 못하므로 HTTPException 대신
이 파일의 예외를 발생시키고, app.main 의 예외 핸들러가
{"detail": ..., "code": ...} 형태의 응답으로 변환한다.

설계 원칙:
- 모든 실패는 고정된 에러 코드(code) + 사람이 읽을 수 있는 메시지를 가진다
- HTTP 상태 코드는 예외 클래스에 묶어서 관리
- 금액/상태 불변식 위반은 항상 호출자에게 그대로 노출

관련 파일:
- app.main               : DomainError 예외 핸들러 등록
- app.services.*         : 도메인 예외 발생

"""


class DomainError(Exception):
    code = "DOMAIN_ERROR"
    status_code = 400
    default_message = "Request could not be processed"

    def __init__(self, message: str | None = None, *, fields: dict | None = None):
        self.message = message or self.default_message
        self.fields = fields
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"detail": self.message, "code": self.code}
        if self.fields:
            body["fields"] = self.fields
        return body


# 입력 검증

class ValidationError(DomainError):
    code = "VALIDATION_ERROR"
    default_message = "Invalid request"


class InvalidStatus(ValidationError):
    code = "INVALID_STATUS"
    default_message = 'Invalid status. Must be "approved" or "rejected"'


class NotFound(DomainError):
    code = "NOT_FOUND"
    status_code = 404
    default_message = "Resource not found"


class PermissionDenied(DomainError):
    code = "PERMISSION_DENIED"
    status_code = 403
    default_message = "Access denied"


# 계정 / 로그인

class DuplicateEmail(DomainError):
    code = "DUPLICATE_EMAIL"
    default_message = "Email already registered"


class InvalidCredentials(DomainError):
    code = "INVALID_CREDENTIALS"
    status_code = 401
    default_message = "Invalid credentials"


class AccountDeactivated(DomainError):
    code = "ACCOUNT_DEACTIVATED"
    status_code = 401
    default_message = "Account is deactivated"


class NotVerified(DomainError):
    code = "NOT_VERIFIED"
    status_code = 403
    default_message = "Please verify your email before logging in."


class ApprovalPending(DomainError):
    code = "APPROVAL_PENDING"
    status_code = 403
    default_message = "Your account is pending admin approval. Please wait for approval before logging in."


class ApprovalRejected(DomainError):
    code = "APPROVAL_REJECTED"
    status_code = 403
    default_message = "Your account has been rejected. Please contact support for more information."


class LoginPaused(DomainError):
    code = "LOGIN_PAUSED"
    status_code = 403
    default_message = "Your login access has been paused by admin. Please contact support for more information."


class TokenRevoked(DomainError):
    code = "TOKEN_REVOKED"
    status_code = 401
    default_message = "Token has been invalidated. Please login again."


class ExternalAuthProvider(DomainError):
    code = "EXTERNAL_AUTH_PROVIDER"
    default_message = "This account uses Google Sign-In. Please use Google to access your account."


# 인증 코드 (OTP)

class InvalidOrExpiredCode(DomainError):
    code = "INVALID_OR_EXPIRED_CODE"
    default_message = "Invalid or expired verification code"


class AlreadyVerified(DomainError):
    code = "ALREADY_VERIFIED"
    default_message = "Email is already verified"


class NoRequestFound(DomainError):
    code = "NO_REQUEST_FOUND"
    default_message = "No OTP request found. Please request a new OTP."


class CodeAlreadyUsed(DomainError):
    code = "CODE_ALREADY_USED"
    default_message = "This OTP has already been used. Please request a new one."


class CodeExpired(DomainError):
    code = "CODE_EXPIRED"
    default_message = "OTP has expired. Please request a new one."


class InvalidCode(DomainError):
    code = "INVALID_CODE"
    default_message = "Invalid OTP"

    def __init__(self, remaining_attempts: int):
        self.remaining_attempts = remaining_attempts
        suffix = "" if remaining_attempts == 1 else "s"
        super().__init__(f"Invalid OTP. {remaining_attempts} attempt{suffix} remaining.")

    def to_dict(self) -> dict:
        body = super().to_dict()
        body["remaining_attempts"] = self.remaining_attempts
        return body


class TooManyAttempts(DomainError):
    code = "TOO_MANY_ATTEMPTS"
    default_message = "Too many failed attempts. Please request a new OTP."


class ResetNotVerified(DomainError):
    code = "RESET_NOT_VERIFIED"
    default_message = "Please verify your OTP first before resetting password."


# 지갑 / 출금

class BelowMinimumWithdrawal(DomainError):
    code = "BELOW_MINIMUM_WITHDRAWAL"
    default_message = "Withdrawal amount is below the minimum"


class InsufficientBalance(DomainError):
    code = "INSUFFICIENT_BALANCE"
    default_message = "Insufficient balance"


class MethodNotFound(DomainError):
    code = "METHOD_NOT_FOUND"
    default_message = "Select a valid payout method"


class InvalidPayoutState(DomainError):
    code = "INVALID_PAYOUT_STATE"
    default_message = "Payout request cannot be changed in its current state"


class AlreadyCompleted(InvalidPayoutState):
    code = "ALREADY_COMPLETED"
    default_message = "Payout is already marked as completed"
