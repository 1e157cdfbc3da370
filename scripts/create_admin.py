"""

관리자(ADMIN) 초기 계정 생성 스크립트.

- 서버 최초 세팅 시 실행하는 용도
- .env에 정의된 ADMIN_EMAIL / ADMIN_PASSWORD 를 읽어
  인증 완료 상태의 ADMIN 계정을 생성한다.
- 같은 이메일의 ADMIN 계정이 이미 있으면 생성하지 않고 종료한다.
- 같은 이메일이 ADMIN 이 아닌 계정에 쓰이고 있으면 에러

사용 방법
- 가상환경 접속
- (.venv) ~\backend~$ python -m scripts.create_admin

"""

import os
from dotenv import load_dotenv
load_dotenv()

from app.db.session import SessionLocal
from app.models.user import Role
from app.services.identity import create_user, get_user_by_email


def main():
    email = os.environ["ADMIN_EMAIL"]
    password = os.environ["ADMIN_PASSWORD"]
    first_name = os.environ.get("ADMIN_FIRST_NAME", "Platform")
    last_name = os.environ.get("ADMIN_LAST_NAME", "Admin")

    db = SessionLocal()
    try:
        existing = get_user_by_email(db, email)
        if existing:
            if existing.role != Role.ADMIN:
                raise RuntimeError("Email already exists but is not ADMIN")
            print("✅ ADMIN already exists. Skip creation.")
            return

        create_user(
            db,
            email=email,
            password=password,
            role=Role.ADMIN,
            first_name=first_name,
            last_name=last_name,
            is_verified=True,
        )
        db.commit()

        print(f"🚀 ADMIN created: {email}")

    finally:
        db.close()


if __name__ == "__main__":
    main()
