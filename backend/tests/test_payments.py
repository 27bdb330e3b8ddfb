# Overview: Pytest coverage for manual and gateway payments, refunds and invoices.

"""
Payment tests.

Verifies:
- Every payment creates its membership and a unique invoice number
- Gateway payments need a valid signature and cannot be replayed
- Refunds cancel the membership they paid for
- Members only see their own payments and invoices
"""

import hashlib
import hmac
from datetime import timedelta

import pytest

from gymdesk.extensions import db
from gymdesk.models import Membership, Payment
from gymdesk.services import gateway_service, invoice_service, payment_service, plan_service
from gymdesk.services.gateway_service import GatewayError
from gymdesk.time_utils import utcnow


TEST_SECRET = "rzp_test_secret"


def _verify_body(order_id, payment_id="pay_TEST1", signature=None):
    return {
        "razorpay_order_id": order_id,
        "razorpay_payment_id": payment_id,
        "razorpay_signature": signature or gateway_service.expected_signature(order_id, payment_id, TEST_SECRET),
    }


class TestManualPayments:
    def test_records_membership_and_invoice(self, client, admin_headers, member, plan):
        resp = client.post(
            "/api/payments/manual",
            json={"member_id": member.id, "plan_id": plan.id, "payment_method": "cash", "notes": "Front desk"},
            headers=admin_headers,
        )
        assert resp.status_code == 201
        data = resp.json["data"]
        assert data["invoice_number"] == f"INV-{utcnow().year}-0001"
        assert data["status"] == "COMPLETED"
        assert data["payment_method"] == "CASH"
        assert data["amount_cents"] == 150000
        assert data["membership"]["status"] == "ACTIVE"

        membership = db.session.get(Membership, data["membership_id"])
        assert membership.end_date - membership.start_date == timedelta(days=30)

    def test_invoice_numbers_increase(self, client, admin_headers, member, plan):
        body = {"member_id": member.id, "plan_id": plan.id}
        first = client.post("/api/payments/manual", json=body, headers=admin_headers).json["data"]
        second = client.post("/api/payments/manual", json=body, headers=admin_headers).json["data"]
        assert first["invoice_number"].endswith("-0001")
        assert second["invoice_number"].endswith("-0002")
        assert first["payment_method"] == "CASH"

    def test_gateway_method_not_allowed(self, client, admin_headers, member, plan):
        resp = client.post(
            "/api/payments/manual",
            json={"member_id": member.id, "plan_id": plan.id, "payment_method": "RAZORPAY"},
            headers=admin_headers,
        )
        assert resp.status_code == 400

    def test_inactive_plan(self, client, admin_headers, member, plan):
        plan.is_active = False
        db.session.commit()
        resp = client.post(
            "/api/payments/manual",
            json={"member_id": member.id, "plan_id": plan.id},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json["message"] == "Plan is not available for purchase"
        assert db.session.query(Membership).count() == 0

    def test_unknown_member(self, client, admin_headers, plan):
        resp = client.post("/api/payments/manual", json={"member_id": 9999, "plan_id": plan.id}, headers=admin_headers)
        assert resp.status_code == 404

    def test_member_cannot_record(self, client, member, member_headers, plan):
        resp = client.post(
            "/api/payments/manual",
            json={"member_id": member.id, "plan_id": plan.id},
            headers=member_headers,
        )
        assert resp.status_code == 403


@pytest.fixture
def open_order(client, monkeypatch):
    """Create a gateway order through the API; returns the order id."""
    def _open(headers, plan_id, order_id="order_TEST1", member_id=None):
        def create_order(**kwargs):
            return {"id": order_id, "amount": kwargs["amount_cents"]}

        monkeypatch.setattr(gateway_service, "create_order", create_order)
        body = {"plan_id": plan_id}
        if member_id is not None:
            body["member_id"] = member_id
        resp = client.post("/api/payments/create-order", json=body, headers=headers)
        assert resp.status_code == 200, resp.json
        return resp.json["data"]["order_id"]

    return _open


@pytest.fixture
def annual_plan(db_session):
    return plan_service.create_plan(payload={
        "name": "Annual Membership",
        "duration_days": 365,
        "base_price": 12000,
    })


class TestGatewayPayments:
    def test_order_when_not_configured(self, app, client, member_headers, plan, monkeypatch):
        monkeypatch.setitem(app.config, "RAZORPAY_KEY_ID", None)
        resp = client.post("/api/payments/create-order", json={"plan_id": plan.id}, headers=member_headers)
        assert resp.status_code == 503
        assert db.session.query(Payment).count() == 0

    def test_create_order_keeps_pending_payment(self, client, member, member_headers, plan, monkeypatch):
        captured = {}

        def fake_create_order(**kwargs):
            captured.update(kwargs)
            return {"id": "order_ABC", "amount": kwargs["amount_cents"]}

        monkeypatch.setattr(gateway_service, "create_order", fake_create_order)
        resp = client.post("/api/payments/create-order", json={"plan_id": plan.id}, headers=member_headers)

        assert resp.status_code == 200
        data = resp.json["data"]
        assert data["order_id"] == "order_ABC"
        assert data["amount_cents"] == 150000
        assert data["key_id"] == "rzp_test_key"
        assert captured["amount_cents"] == 150000

        pending = db.session.query(Payment).one()
        assert pending.status == "PENDING"
        assert pending.gateway_order_id == "order_ABC"
        assert pending.member_id == member.id
        assert pending.plan_id == plan.id
        assert pending.invoice_number is None
        assert pending.membership_id is None
        assert db.session.query(Membership).count() == 0

    def test_gateway_failure(self, client, member_headers, plan, monkeypatch):
        def broken(**kwargs):
            raise GatewayError("down")

        monkeypatch.setattr(gateway_service, "create_order", broken)
        resp = client.post("/api/payments/create-order", json={"plan_id": plan.id}, headers=member_headers)
        assert resp.status_code == 502
        assert db.session.query(Payment).count() == 0

    def test_verify_completes_order(self, client, member, member_headers, plan, open_order):
        order_id = open_order(member_headers, plan.id)
        pending_id = db.session.query(Payment.id).scalar()

        resp = client.post("/api/payments/verify", json=_verify_body(order_id), headers=member_headers)
        assert resp.status_code == 200
        data = resp.json["data"]
        assert data["id"] == pending_id
        assert data["status"] == "COMPLETED"
        assert data["payment_method"] == "RAZORPAY"
        assert data["member_id"] == member.id
        assert data["gateway_payment_id"] == "pay_TEST1"
        assert data["invoice_number"] == f"INV-{utcnow().year}-0001"
        assert data["membership"]["status"] == "ACTIVE"

    def test_verify_uses_ordered_plan(self, client, member_headers, plan, annual_plan, open_order):
        order_id = open_order(member_headers, plan.id)

        body = {**_verify_body(order_id), "plan_id": annual_plan.id}
        resp = client.post("/api/payments/verify", json=body, headers=member_headers)
        assert resp.status_code == 200

        payment = db.session.query(Payment).one()
        assert payment.plan_id == plan.id
        assert payment.amount_cents == 150000
        membership = payment.membership
        assert membership.plan_name == plan.name
        assert membership.end_date - membership.start_date == timedelta(days=30)

    def test_unknown_order(self, client, member_headers, plan):
        resp = client.post("/api/payments/verify", json=_verify_body("order_NOPE"), headers=member_headers)
        assert resp.status_code == 404
        assert db.session.query(Membership).count() == 0

    def test_cannot_complete_another_members_order(self, client, member_headers, other_headers, plan, open_order):
        order_id = open_order(member_headers, plan.id)

        resp = client.post("/api/payments/verify", json=_verify_body(order_id), headers=other_headers)
        assert resp.status_code == 404
        assert db.session.query(Payment).one().status == "PENDING"
        assert db.session.query(Membership).count() == 0

    def test_bad_signature_records_nothing(self, client, member_headers, plan, open_order):
        order_id = open_order(member_headers, plan.id)
        resp = client.post(
            "/api/payments/verify",
            json=_verify_body(order_id, signature="0" * 64),
            headers=member_headers,
        )
        assert resp.status_code == 400
        assert resp.json["message"] == "Invalid payment signature"
        assert db.session.query(Payment).one().status == "PENDING"
        assert db.session.query(Membership).count() == 0

    def test_replay_is_rejected(self, client, member_headers, plan, open_order):
        body = _verify_body(open_order(member_headers, plan.id))
        assert client.post("/api/payments/verify", json=body, headers=member_headers).status_code == 200

        resp = client.post("/api/payments/verify", json=body, headers=member_headers)
        assert resp.status_code == 409
        assert db.session.query(Payment).count() == 1
        assert db.session.query(Membership).count() == 1

    def test_admin_completes_members_order(self, client, admin_headers, member, plan, open_order):
        order_id = open_order(admin_headers, plan.id, member_id=member.id)
        resp = client.post("/api/payments/verify", json=_verify_body(order_id), headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["member_id"] == member.id

    def test_missing_fields(self, client, member_headers, plan):
        resp = client.post("/api/payments/verify", json={"plan_id": plan.id}, headers=member_headers)
        assert resp.status_code == 400

    def test_pending_payment_has_no_invoice(self, client, member_headers, plan, open_order):
        open_order(member_headers, plan.id)
        payment = db.session.query(Payment).one()
        resp = client.get(f"/api/payments/{payment.id}/invoice", headers=member_headers)
        assert resp.status_code == 400


class TestSignature:
    def test_matches_hmac_sha256(self):
        expected = hmac.new(b"secret", b"order_1|pay_1", hashlib.sha256).hexdigest()
        assert gateway_service.expected_signature("order_1", "pay_1", "secret") == expected

    def test_verify_accepts_valid_signature(self, app):
        signature = gateway_service.expected_signature("order_1", "pay_1", TEST_SECRET)
        gateway_service.verify_signature(order_id="order_1", payment_id="pay_1", signature=signature)

    def test_verify_rejects_empty_signature(self, app):
        with pytest.raises(gateway_service.SignatureError):
            gateway_service.verify_signature(order_id="order_1", payment_id="pay_1", signature="")


class TestRefundAndDelete:
    def test_refund_cancels_membership(self, client, admin_headers, active_member):
        payment = db.session.query(Payment).one()
        resp = client.post(f"/api/payments/{payment.id}/refund", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["status"] == "REFUNDED"
        assert resp.json["data"]["membership"]["status"] == "CANCELLED"

        again = client.post(f"/api/payments/{payment.id}/refund", headers=admin_headers)
        assert again.status_code == 400

    def test_delete(self, client, admin_headers, active_member):
        payment = db.session.query(Payment).one()
        assert client.delete(f"/api/payments/{payment.id}", headers=admin_headers).status_code == 200
        assert client.get(f"/api/payments/{payment.id}", headers=admin_headers).status_code == 404


class TestListing:
    def test_admin_list_filters(self, client, admin_headers, active_member):
        resp = client.get("/api/payments?status=COMPLETED", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["pagination"]["total"] == 1

        resp = client.get("/api/payments?status=REFUNDED", headers=admin_headers)
        assert resp.json["data"]["items"] == []

    def test_bad_status_filter(self, client, admin_headers, db_session):
        assert client.get("/api/payments?status=LOST", headers=admin_headers).status_code == 400

    def test_member_sees_only_own(self, client, active_member, member_headers, other_headers):
        payment = db.session.query(Payment).one()
        assert client.get("/api/payments", headers=member_headers).status_code == 403
        assert len(client.get("/api/payments/my", headers=member_headers).json["data"]) == 1
        assert client.get("/api/payments/my", headers=other_headers).json["data"] == []
        assert client.get(f"/api/payments/{payment.id}", headers=other_headers).status_code == 403


class TestInvoice:
    def test_pdf_download(self, client, active_member, member_headers):
        payment = db.session.query(Payment).one()
        resp = client.get(f"/api/payments/{payment.id}/invoice", headers=member_headers)
        assert resp.status_code == 200
        assert resp.mimetype == "application/pdf"
        assert resp.data.startswith(b"%PDF")
        assert f"Invoice_{payment.invoice_number}.pdf" in resp.headers["Content-Disposition"]

    def test_gst_rate_is_the_one_charged(self, app, db_session, member, monkeypatch):
        monkeypatch.setitem(app.config, "GST_ENABLED", True)
        taxed = plan_service.create_plan(payload={"name": "Taxed", "duration_days": 30, "base_price": 1000})
        payment = payment_service.record_manual_payment(member_id=member.id, plan_id=taxed.id)
        assert payment.gst_bps == 1800
        assert payment.gst_amount_cents == 18000

        taxed.gst_bps = 500
        db.session.commit()

        data = invoice_service.invoice_data(payment)
        assert data["gst_percent"] == 18
        assert data["gst_amount"] == invoice_service.CURRENCY_LABEL + "180"

    def test_other_member_denied(self, client, active_member, other_headers):
        payment = db.session.query(Payment).one()
        resp = client.get(f"/api/payments/{payment.id}/invoice", headers=other_headers)
        assert resp.status_code == 403


def test_record_manual_payment_service(db_session, member, plan):
    payment = payment_service.record_manual_payment(member_id=member.id, plan_id=plan.id, payment_method="UPI")
    assert payment.membership.plan_name == plan.name
    assert payment.gst_amount_cents == 0
