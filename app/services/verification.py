"""
services/verification.py

이메일 인증(Verification) 비즈니스 로직.

이 파일은 일회용 인증 코드(OTP)의 발급 / 저장 / 소비를 담당한다.

주요 기능:
- 가입 대기(PendingUser) 생성 및 6자리 인증 코드 발급 (10분 유효)
- 인증 코드 확인 후 실제 계정(User)으로 승격
- 인증 코드 재발송 (구버전 인라인 코드 포함)
- 비밀번호 재설정 4자리 OTP 발급 / 확인 / 비밀번호 변경 (5분 유효, 최대 5회 시도)

설계 원칙:
- 이메일당 가입 대기 레코드 / 재설정 코드는 최대 1개 (새 요청이 이전 것을 대체)
- 만료된 레코드는 조회에서 제외, 물리 삭제는 app.services.purge 에서 수행
- 코드 발송은 라우터가 BackgroundTasks 로 처리 (여기서는 코드만 반환)
- 실패한 시도 횟수 증가 / 만료 레코드 삭제는 에러를 돌려주기 전에 commit

관련 파일:
- app.models.verification : PendingUser / PasswordResetCode
- app.services.identity   : 계정 생성 / 비밀번호 변경
- app.routers.auth        : 가입 / 인증 / 재설정 API

"""

import logging
from datetime import timedelta

from sqlalchemy import select, delete
from sqlalchemy.orm import Session

from app.core.clock import utcnow
from app.core.errors import (
    AccountDeactivated,
    AlreadyVerified,
    CodeAlreadyUsed,
    CodeExpired,
    DuplicateEmail,
    ExternalAuthProvider,
    InvalidCode,
    InvalidOrExpiredCode,
    NoRequestFound,
    NotFound,
    ResetNotVerified,
    TooManyAttempts,
    ValidationError,
)
from app.core.security import generate_numeric_code, get_password_hash
from app.models.user import User, Role, AuthProvider, ApprovalStatus
from app.models.verification import PendingUser, PasswordResetCode
from app.services.identity import create_user, get_user_by_email, normalize_email, set_password


logger = logging.getLogger(__name__)


REGISTRATION_CODE_DIGITS = 6
REGISTRATION_CODE_TTL = timedelta(minutes=10)
PENDING_USER_TTL = timedelta(hours=24)

RESET_CODE_DIGITS = 4
RESET_CODE_TTL = timedelta(minutes=5)
RESET_GRACE_PERIOD = timedelta(minutes=2)
MAX_RESET_ATTEMPTS = 5


def _live_pending(db: Session, email: str) -> PendingUser | None:
    return db.scalar(
        select(PendingUser).where(PendingUser.email == email, PendingUser.expires_at > utcnow())
    )


"""
가입 대기 레코드 생성

- role 은 mentee / mentor 만 허용 (admin 은 가입 불가)
- 이미 계정이 있는 이메일이면 DuplicateEmail (가입 대기 레코드 생성 안 함)
- 같은 이메일의 이전 가입 대기 레코드는 삭제 후 새로 생성
- 멘토 승인 상태는 가입 시점의 기능 플래그로 결정
  (verification_enabled=False 이면 바로 approved)

"""

def register_pending(
    db: Session,
    *,
    email: str,
    password: str,
    role: Role,
    first_name: str,
    last_name: str,
    verification_enabled: bool,
) -> PendingUser:
    email = normalize_email(email)

    if role not in (Role.MENTEE, Role.MENTOR):
        raise ValidationError("Invalid role", fields={"role": "Role must be mentee or mentor"})

    if get_user_by_email(db, email):
        raise DuplicateEmail()

    db.execute(delete(PendingUser).where(PendingUser.email == email))

    if role == Role.MENTOR:
        approval = ApprovalStatus.PENDING if verification_enabled else ApprovalStatus.APPROVED
    else:
        approval = ApprovalStatus.NOT_APPLICABLE

    now = utcnow()
    pending = PendingUser(
        email=email,
        password_hash=get_password_hash(password),
        role=role,
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        verification_code=generate_numeric_code(REGISTRATION_CODE_DIGITS),
        verification_code_expires_at=now + REGISTRATION_CODE_TTL,
        mentor_approval_status=approval,
        created_at=now,
        expires_at=now + PENDING_USER_TTL,
    )
    db.add(pending)
    db.flush()
    return pending


"""
인증 코드 확인

- (email, code) 가 일치하고 코드가 만료되지 않은 가입 대기 레코드를 찾음
- 찾으면 계정 생성(is_verified=True) 후 가입 대기 레코드 삭제
- 없으면 구버전 계정의 인라인 인증 코드 확인 (하위 호환)
- 둘 다 실패하면 InvalidOrExpiredCode (상태 변경 없음)

"""

def verify_registration(db: Session, *, email: str, code: str) -> User:
    email = normalize_email(email)
    now = utcnow()

    pending = db.scalar(
        select(PendingUser).where(
            PendingUser.email == email,
            PendingUser.verification_code == code,
            PendingUser.verification_code_expires_at > now,
            PendingUser.expires_at > now,
        )
    )
    if pending:
        user = create_user(
            db,
            email=pending.email,
            password_hash=pending.password_hash,
            role=pending.role,
            first_name=pending.first_name,
            last_name=pending.last_name,
            is_verified=True,
            mentor_approval_status=pending.mentor_approval_status,
        )
        db.delete(pending)
        db.flush()
        logger.info("Registration verified for %s (role=%s)", email, user.role.value)
        return user

    legacy = get_user_by_email(db, email)
    if (
        legacy
        and not legacy.is_verified
        and legacy.verification_code
        and legacy.verification_code == code
        and legacy.verification_code_expires_at
        and legacy.verification_code_expires_at > now
    ):
        legacy.is_verified = True
        legacy.verification_code = None
        legacy.verification_code_expires_at = None
        db.flush()
        logger.info("Legacy account verified for %s", email)
        return legacy

    raise InvalidOrExpiredCode()


"""
인증 코드 재발송

- 가입 대기 레코드가 있으면 코드 / 코드 만료 시각 재발급
- 없으면 인증 전 구버전 계정의 인라인 코드 재발급
- 이미 인증된 계정이면 AlreadyVerified, 둘 다 없으면 NotFound
- 반환값: 새 코드 (발송은 라우터에서)

"""

def resend_verification(db: Session, *, email: str) -> str:
    email = normalize_email(email)
    now = utcnow()
    code = generate_numeric_code(REGISTRATION_CODE_DIGITS)

    pending = _live_pending(db, email)
    if pending:
        pending.verification_code = code
        pending.verification_code_expires_at = now + REGISTRATION_CODE_TTL
        db.flush()
        return code

    user = get_user_by_email(db, email)
    if not user:
        raise NotFound("No pending registration found for this email")
    if user.is_verified:
        raise AlreadyVerified()

    user.verification_code = code
    user.verification_code_expires_at = now + REGISTRATION_CODE_TTL
    db.flush()
    return code


"""
비밀번호 재설정 OTP 요청

- 존재하지 않는 이메일이면 None 반환 (호출자는 항상 성공 응답, 이메일 노출 방지)
- Google 계정이면 ExternalAuthProvider
- 비활성화 계정이면 AccountDeactivated
- 기존 코드는 삭제 후 새 4자리 코드 발급 (5분 유효)

"""

def request_password_reset(db: Session, *, email: str) -> str | None:
    email = normalize_email(email)
    user = get_user_by_email(db, email)
    if not user:
        logger.info("Password reset requested for unknown email %s", email)
        return None

    if user.auth_provider != AuthProvider.LOCAL:
        raise ExternalAuthProvider()
    if not user.is_active:
        raise AccountDeactivated("This account has been deactivated.")

    db.execute(delete(PasswordResetCode).where(PasswordResetCode.email == email))

    record = PasswordResetCode(
        email=email,
        code=generate_numeric_code(RESET_CODE_DIGITS),
        expires_at=utcnow() + RESET_CODE_TTL,
        attempts=0,
        verified=False,
    )
    db.add(record)
    db.flush()
    return record.code


"""
비밀번호 재설정 OTP 확인

확인 순서:
1) 요청 레코드 없음        -> NoRequestFound
2) 이미 확인된 코드         -> CodeAlreadyUsed
3) 만료                     -> 레코드 삭제 후 CodeExpired
4) 실패 횟수 5회 이상       -> 레코드 삭제 후 TooManyAttempts
5) 코드 불일치              -> 실패 횟수 +1 후 InvalidCode(남은 횟수)

3~5 의 변경은 에러를 돌려주기 전에 commit 하여
이후 롤백과 무관하게 유지되도록 한다.

"""

def verify_reset_code(db: Session, *, email: str, code: str) -> PasswordResetCode:
    email = normalize_email(email)
    record = db.scalar(select(PasswordResetCode).where(PasswordResetCode.email == email))

    if not record:
        raise NoRequestFound()
    if record.verified:
        raise CodeAlreadyUsed()

    if record.expires_at <= utcnow():
        db.delete(record)
        db.commit()
        raise CodeExpired()

    if record.attempts >= MAX_RESET_ATTEMPTS:
        db.delete(record)
        db.commit()
        raise TooManyAttempts()

    if record.code != code:
        record.attempts += 1
        db.commit()
        raise InvalidCode(remaining_attempts=MAX_RESET_ATTEMPTS - record.attempts)

    record.verified = True
    db.flush()
    return record


"""
비밀번호 재설정 완료

- 확인(verified)된 코드가 있어야 함 (없으면 ResetNotVerified)
- 코드 만료 시각 + 2분 유예 이내여야 함 (지나면 레코드 삭제 후 CodeExpired)
- 새 비밀번호 해시 후 코드 레코드 삭제 (일회성)

"""

def complete_password_reset(db: Session, *, email: str, new_password: str) -> User:
    email = normalize_email(email)
    record = db.scalar(
        select(PasswordResetCode).where(
            PasswordResetCode.email == email,
            PasswordResetCode.verified.is_(True),
        )
    )
    if not record:
        raise ResetNotVerified()

    if utcnow() > record.expires_at + RESET_GRACE_PERIOD:
        db.delete(record)
        db.commit()
        raise CodeExpired("Session expired. Please request a new OTP.")

    user = get_user_by_email(db, email)
    if not user:
        raise NotFound("User not found")
    if user.auth_provider != AuthProvider.LOCAL:
        raise ExternalAuthProvider("This account uses Google Sign-In. Password cannot be changed.")

    set_password(user, new_password)
    db.delete(record)
    db.flush()
    logger.info("Password reset completed for %s", email)
    return user
