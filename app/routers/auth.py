"""
auth.py

인증(Authentication) 및 계정 관리 API 모음.

이 파일은 회원 가입(이메일 인증), 로그인, 로그아웃,
비밀번호 변경 / 재설정과 같이 사용자 인증 흐름 전반을 담당한다.
JWT Access Token 단일 구조이며, 로그아웃된 토큰은 블랙리스트로 무효화한다.

주요 기능:
- 회원 가입 (가입 대기 + 6자리 인증 코드 메일)
- 이메일 인증 후 계정 생성 및 토큰 발급
- 인증 코드 재발송
- 로그인 (활성화 / 멘토 승인 / 일시정지 / 비밀번호 순서로 확인)
- 로그아웃 (현재 토큰 블랙리스트 등록)
- 비밀번호 변경 / 비밀번호 재설정(4자리 OTP)

설계 원칙:
- Access Token은 Authorization Header로 전달
- 메일 발송은 BackgroundTasks 로 응답 이후 수행 (발송 실패가 API 결과에 영향 없음)
- 비밀번호 재설정 요청은 이메일 존재 여부와 무관하게 같은 응답 (이메일 노출 방지)

관련 파일:
- app.services.verification : 가입 대기 / 인증 코드 / 재설정 OTP
- app.services.approval     : 로그인 허용 판단
- app.core.deps             : 인증 의존성(get_current_user)
- app.schemas.auth          : 인증 관련 요청/응답

"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.deps import get_db, get_email_client, get_bearer_token, get_current_user
from app.core.errors import DomainError, DuplicateEmail, ExternalAuthProvider, InvalidCredentials, ValidationError
from app.core.security import create_access_token, decode_access_token, token_expires_at
from app.models.user import User, Role, AuthProvider, ApprovalStatus
from app.models.notification import NotificationPriority
from app.schemas.auth import (
    RegisterRequest, VerifyEmailRequest, ResendVerificationRequest,
    LoginRequest, ChangePasswordRequest,
    ForgotPasswordRequest, VerifyResetCodeRequest, ResetPasswordRequest,
)
from app.schemas.user import UserResponse
from app.services import verification
from app.services.approval import check_login_admission
from app.services.email import EmailClient, deliver_code
from app.services.identity import check_password, get_user_by_email, set_password
from app.services.notifications import notify_admins
from app.services.token_blacklist import blacklist_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _session_payload(user: User) -> dict:
    return {
        "access_token": create_access_token(subject=str(user.id), role=user.role.value if user.role else None),
        "token_type": "bearer",
        "user": UserResponse.model_validate(user).model_dump(mode="json"),
    }


"""
회원 가입 API

- 이미 계정이 있는 이메일이면 가입 불가 (DuplicateEmail)
- 같은 이메일의 이전 가입 대기 건은 새 요청으로 대체
- 6자리 인증 코드를 메일로 발송 (10분 유효), 토큰은 발급하지 않음

"""

@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    email_client: EmailClient = Depends(get_email_client),
):
    try:
        pending = verification.register_pending(
            db,
            email=data.email,
            password=data.password,
            role=data.role,
            first_name=data.first_name,
            last_name=data.last_name,
            verification_enabled=settings.ENABLE_MENTOR_VERIFICATION,
        )
        db.commit()
    except DomainError:
        db.rollback()
        raise
    except IntegrityError:
        db.rollback()
        raise DuplicateEmail()
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    background_tasks.add_task(deliver_code, email_client, pending.email, pending.verification_code, "verification")

    return {
        "message": "Registration successful. Please check your email for the verification code.",
        "data": {
            "email": pending.email,
            "role": pending.role.value,
            "expires_in_minutes": int(verification.REGISTRATION_CODE_TTL.total_seconds() // 60),
        },
    }


"""
이메일 인증 API

- 코드가 맞으면 계정 생성 후 가입 대기 레코드 삭제
- 승인 대기 멘토는 토큰 없이 안내 메시지만 반환 (관리자에게 가입 요청 알림)
- 그 외에는 바로 로그인 상태(토큰 발급)

"""

@router.post("/verify-email")
def verify_email(data: VerifyEmailRequest, db: Session = Depends(get_db)):
    try:
        user = verification.verify_registration(db, email=data.email, code=data.code)

        awaiting_approval = (
            user.role == Role.MENTOR and user.mentor_approval_status == ApprovalStatus.PENDING
        )
        if awaiting_approval:
            notify_admins(
                db,
                type="mentor_verification",
                title="New Mentor Signup Request",
                message=f"{user.full_name} ({user.email}) has signed up as a mentor and is waiting for approval.",
                priority=NotificationPriority.HIGH,
                action_url=f"/admin/mentors/{user.id}",
                action_text="Review Mentor",
            )
        db.commit()
        db.refresh(user)
    except DomainError:
        db.rollback()
        raise
    except IntegrityError:
        db.rollback()
        raise DuplicateEmail()
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    if awaiting_approval:
        return {
            "message": "Email verified. Your account is pending admin approval.",
            "data": {"user": UserResponse.model_validate(user).model_dump(mode="json")},
        }

    return {"message": "Email verified successfully", "data": _session_payload(user)}


@router.post("/resend-verification")
def resend_verification(
    data: ResendVerificationRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    email_client: EmailClient = Depends(get_email_client),
):
    try:
        code = verification.resend_verification(db, email=data.email)
        db.commit()
    except DomainError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    background_tasks.add_task(deliver_code, email_client, data.email.strip().lower(), code, "verification")
    return {"message": "Verification code resent. Please check your email."}


"""
로그인 API

- 활성화 -> 멘토 승인 -> 일시정지 -> 비밀번호 순서로 확인
- 이메일 미인증 계정은 로그인 불가
- Access Token은 응답 바디로 반환

"""

@router.post("/login")
def login(data: LoginRequest, db: Session = Depends(get_db)):
    user = get_user_by_email(db, data.email)
    check_login_admission(user, data.password)

    return {"message": "Login successful", "data": _session_payload(user)}


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return {"data": UserResponse.model_validate(user).model_dump(mode="json")}


"""
로그아웃 API

- 현재 토큰을 토큰 만료 시각까지 블랙리스트에 등록
- 같은 토큰으로 다시 로그아웃해도 에러 아님 (이미 무효화된 토큰은 인증 단계에서 거부)

"""

@router.post("/logout")
def logout(
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    payload = decode_access_token(token)
    try:
        blacklist_token(db, token=token, user_id=user.id, expires_at=token_expires_at(payload))
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    return {"message": "Logged out successfully"}


"""
비밀번호 변경 API

- 현재 비밀번호 확인 필수
- 새 비밀번호 확인 값 일치 / 기존 비밀번호와 달라야 함
- Google 계정은 비밀번호 변경 불가

"""

@router.patch("/password")
def change_password(
    data: ChangePasswordRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    # 1) 외부 인증 계정 차단
    if user.auth_provider != AuthProvider.LOCAL:
        raise ExternalAuthProvider("This account uses Google Sign-In. Password cannot be changed.")

    # 2) 현재 비밀번호 확인
    if not check_password(user, data.current_password):
        raise InvalidCredentials("Invalid password")

    # 3) 새 비밀번호 확인
    if data.new_password != data.confirm_password:
        raise ValidationError("Passwords do not match", fields={"confirm_password": "Passwords do not match"})

    # 4) 새 비밀번호가 기존과 같은지 방지
    if check_password(user, data.new_password):
        raise ValidationError("New password must be different", fields={"new_password": "Must differ from current password"})

    try:
        set_password(user, data.new_password)
        db.commit()
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    return {"message": "Password updated", "data": {"status": "password_updated"}}


"""
비밀번호 재설정 요청 API

- 존재하지 않는 이메일이어도 같은 성공 응답 (이메일 노출 방지)
- Google 계정 / 비활성화 계정은 에러
- 4자리 OTP 메일 발송 (5분 유효)

"""

@router.post("/password/forgot")
def forgot_password(
    data: ForgotPasswordRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    email_client: EmailClient = Depends(get_email_client),
):
    try:
        code = verification.request_password_reset(db, email=data.email)
        db.commit()
    except DomainError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    if code is not None:
        background_tasks.add_task(deliver_code, email_client, data.email.strip().lower(), code, "reset")

    return {"message": "If an account with that email exists, we have sent an OTP code."}


@router.post("/password/verify-otp")
def verify_reset_otp(data: VerifyResetCodeRequest, db: Session = Depends(get_db)):
    try:
        verification.verify_reset_code(db, email=data.email, code=data.otp)
        db.commit()
    except DomainError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    return {"message": "OTP verified successfully. You can now reset your password."}


@router.post("/password/reset")
def reset_password(data: ResetPasswordRequest, db: Session = Depends(get_db)):
    try:
        verification.complete_password_reset(db, email=data.email, new_password=data.password)
        db.commit()
    except DomainError:
        db.rollback()
        raise
    except Exception as e:
        db.rollback()
        raise HTTPException(status_code=500, detail=f"Database error: {type(e).__name__}")

    return {"message": "Password has been reset successfully. You can now login with your new password."}
