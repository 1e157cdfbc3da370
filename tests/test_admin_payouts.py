from decimal import Decimal

from sqlalchemy import select

from app.models.admin_log import AdminActionLog, AdminAction
from app.models.payment import Payment
from tests.helpers import auth_header, create_user_in_db, setup_admin, setup_mentor, unique_email


def _request_payout(client, mentor, amount=100):
    res = client.post(
        "/mentor/wallet/withdrawals",
        json={"amount": amount, "method_id": mentor["method_id"]},
        headers=auth_header(mentor["token"]),
    )
    assert res.status_code == 201, res.text
    return res.json()["data"]["id"]


def test_processing_then_complete(client, db_session):
    admin = setup_admin(client, db_session)
    mentor = setup_mentor(client, db_session, earnings=Decimal("300.00"))
    payout_id = _request_payout(client, mentor)
    headers = auth_header(admin["token"])

    res = client.post(f"/admin/payouts/{payout_id}/processing", headers=headers)
    assert res.status_code == 200, res.text
    assert res.json()["data"]["status"] == "processing"

    res = client.post(f"/admin/payouts/{payout_id}/processing", headers=headers)
    assert res.status_code == 400
    assert res.json()["code"] == "INVALID_PAYOUT_STATE"

    res = client.post(f"/admin/payouts/{payout_id}/complete", json={}, headers=headers)
    assert res.status_code == 200, res.text

    actions = [
        log.action
        for log in db_session.scalars(
            select(AdminActionLog)
            .where(AdminActionLog.target_user_id == mentor["id"])
            .order_by(AdminActionLog.created_at)
        ).all()
    ]
    assert actions == [AdminAction.MARK_PAYOUT_PROCESSING, AdminAction.COMPLETE_PAYOUT]


def test_completed_payout_is_terminal(client, db_session):
    admin = setup_admin(client, db_session)
    mentor = setup_mentor(client, db_session, earnings=Decimal("300.00"))
    payout_id = _request_payout(client, mentor)
    headers = auth_header(admin["token"])

    assert client.post(f"/admin/payouts/{payout_id}/complete", json={}, headers=headers).status_code == 200

    res = client.post(f"/admin/payouts/{payout_id}/complete", json={}, headers=headers)
    assert res.status_code == 400
    assert res.json()["code"] == "ALREADY_COMPLETED"

    res = client.post(f"/admin/payouts/{payout_id}/reject", json={"admin_notes": "late"}, headers=headers)
    assert res.status_code == 400
    assert res.json()["code"] == "INVALID_PAYOUT_STATE"

    res = client.get("/mentor/wallet", headers=auth_header(mentor["token"]))
    wallet = res.json()["data"]["wallet"]
    assert wallet["available_balance"] == 200
    assert wallet["total_withdrawn"] == 100


def test_rejected_payout_is_terminal(client, db_session):
    admin = setup_admin(client, db_session)
    mentor = setup_mentor(client, db_session, earnings=Decimal("300.00"))
    payout_id = _request_payout(client, mentor)
    headers = auth_header(admin["token"])

    assert client.post(f"/admin/payouts/{payout_id}/reject", json={}, headers=headers).status_code == 200

    res = client.post(f"/admin/payouts/{payout_id}/complete", json={}, headers=headers)
    assert res.status_code == 400
    assert res.json()["code"] == "INVALID_PAYOUT_STATE"

    res = client.post(f"/admin/payouts/{payout_id}/reject", json={}, headers=headers)
    assert res.status_code == 400
    assert res.json()["code"] == "INVALID_PAYOUT_STATE"

    res = client.get("/mentor/wallet", headers=auth_header(mentor["token"]))
    assert res.json()["data"]["wallet"]["available_balance"] == 300


def test_unknown_payout_is_not_found(client, db_session):
    admin = setup_admin(client, db_session)
    res = client.post(
        "/admin/payouts/00000000-0000-0000-0000-000000000000/complete",
        json={},
        headers=auth_header(admin["token"]),
    )
    assert res.status_code == 404


def test_list_payouts_with_status_filter(client, db_session):
    admin = setup_admin(client, db_session)
    mentor = setup_mentor(client, db_session, earnings=Decimal("500.00"))
    first = _request_payout(client, mentor)
    _request_payout(client, mentor)
    headers = auth_header(admin["token"])

    client.post(f"/admin/payouts/{first}/reject", json={}, headers=headers)

    res = client.get("/admin/payouts", headers=headers)
    assert res.status_code == 200
    assert res.json()["meta"]["total"] == 2

    res = client.get("/admin/payouts", params={"status": "pending"}, headers=headers)
    body = res.json()
    assert body["meta"] == {"total": 1, "page": 1, "pages": 1}
    assert body["data"][0]["status"] == "pending"

    res = client.get("/admin/payouts", params={"status": "rejected", "limit": 1}, headers=headers)
    assert [p["id"] for p in res.json()["data"]] == [first]


def test_record_payment_and_status_change(client, db_session):
    admin = setup_admin(client, db_session)
    mentor = setup_mentor(client, db_session)
    mentee = create_user_in_db(db_session, email=unique_email("mentee"))
    headers = auth_header(admin["token"])

    res = client.post(
        "/admin/payments",
        json={"mentor_id": str(mentor["id"]), "mentee_id": str(mentee.id), "amount": "150.00"},
        headers=headers,
    )
    assert res.status_code == 201, res.text
    payment = res.json()["data"]
    assert payment["amount"] == 150
    assert payment["mentor_amount"] == 120
    assert payment["platform_amount"] == 30
    assert payment["status"] == "succeeded"

    res = client.get("/mentor/wallet", headers=auth_header(mentor["token"]))
    assert res.json()["data"]["wallet"]["available_balance"] == 120

    res = client.patch(f"/admin/payments/{payment['id']}/status", json={"status": "refunded"}, headers=headers)
    assert res.status_code == 200, res.text

    res = client.get("/mentor/wallet", headers=auth_header(mentor["token"]))
    assert res.json()["data"]["wallet"]["available_balance"] == 0

    log = db_session.scalar(
        select(AdminActionLog).where(AdminActionLog.action == AdminAction.RECORD_PAYMENT)
    )
    assert log.target_user_id == mentor["id"]


def test_record_payment_validation(client, db_session):
    admin = setup_admin(client, db_session)
    mentor = setup_mentor(client, db_session)
    mentee = create_user_in_db(db_session, email=unique_email("mentee"))
    headers = auth_header(admin["token"])

    res = client.post(
        "/admin/payments",
        json={"mentor_id": str(mentor["id"]), "amount": "100.00", "mentor_amount": "150.00"},
        headers=headers,
    )
    assert res.status_code == 400
    assert "mentor_amount" in res.json()["fields"]

    res = client.post(
        "/admin/payments",
        json={"mentor_id": str(mentee.id), "amount": "100.00"},
        headers=headers,
    )
    assert res.status_code == 404

    assert db_session.scalars(select(Payment)).all() == []
