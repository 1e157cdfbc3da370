"""

만료 데이터 정리 스크립트.

- 만료된 가입 대기 레코드 / 재설정 코드 / 블랙리스트 토큰을 삭제
- 서버 lifespan 정리 루프를 끈 환경(PURGE_INTERVAL_SECONDS=0)에서
  cron 등으로 주기 실행하는 용도

사용 방법
- (.venv) ~\backend~$ python -m scripts.purge_expired

"""

from dotenv import load_dotenv
load_dotenv()

from app.db.session import SessionLocal
from app.services.purge import purge_expired


def main():
    db = SessionLocal()
    try:
        counts = purge_expired(db)
        for table, count in counts.items():
            print(f"🧹 {table}: {count} row(s) deleted")
    finally:
        db.close()


if __name__ == "__main__":
    main()
