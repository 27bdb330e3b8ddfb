# Overview: Pytest coverage for freeze, unfreeze, cancel and expiry of memberships.

from datetime import timedelta

from gymdesk.extensions import db
from gymdesk.services import membership_service
from gymdesk.time_utils import utcnow


def _membership(member):
    return member.memberships[0]


class TestFreeze:
    def test_freeze_and_unfreeze_extends_end_date(self, client, admin_headers, active_member):
        membership = _membership(active_member)
        original_end = membership.end_date

        resp = client.post(f"/api/memberships/{membership.id}/freeze", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["status"] == "FROZEN"

        # Pretend the freeze started five days ago
        membership.frozen_at = utcnow() - timedelta(days=5, hours=2)
        db.session.commit()

        resp = client.post(f"/api/memberships/{membership.id}/unfreeze", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["status"] == "ACTIVE"
        assert resp.json["data"]["frozen_days"] == 5

        db.session.refresh(membership)
        assert membership.end_date == original_end + timedelta(days=5)
        assert membership.frozen_at is None

    def test_cannot_freeze_twice(self, client, admin_headers, active_member):
        membership = _membership(active_member)
        client.post(f"/api/memberships/{membership.id}/freeze", headers=admin_headers)
        resp = client.post(f"/api/memberships/{membership.id}/freeze", headers=admin_headers)
        assert resp.status_code == 400

    def test_cannot_unfreeze_active(self, client, admin_headers, active_member):
        membership = _membership(active_member)
        resp = client.post(f"/api/memberships/{membership.id}/unfreeze", headers=admin_headers)
        assert resp.status_code == 400

    def test_cannot_freeze_lapsed(self, client, admin_headers, active_member):
        membership = _membership(active_member)
        membership.end_date = utcnow() - timedelta(days=1)
        db.session.commit()
        resp = client.post(f"/api/memberships/{membership.id}/freeze", headers=admin_headers)
        assert resp.status_code == 400

    def test_member_cannot_freeze(self, client, member_headers, active_member):
        membership = _membership(active_member)
        resp = client.post(f"/api/memberships/{membership.id}/freeze", headers=member_headers)
        assert resp.status_code == 403


class TestCancel:
    def test_cancel(self, client, admin_headers, active_member):
        membership = _membership(active_member)
        resp = client.post(f"/api/memberships/{membership.id}/cancel", headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["status"] == "CANCELLED"

        again = client.post(f"/api/memberships/{membership.id}/cancel", headers=admin_headers)
        assert again.status_code == 400

    def test_missing(self, client, admin_headers):
        assert client.post("/api/memberships/9999/cancel", headers=admin_headers).status_code == 404


class TestReadAndExpiry:
    def test_member_reads_own_membership(self, client, member_headers, active_member, other_headers):
        membership = _membership(active_member)
        resp = client.get(f"/api/memberships/{membership.id}", headers=member_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["days_remaining"] == 30
        assert client.get(f"/api/memberships/{membership.id}", headers=other_headers).status_code == 403

    def test_lapsed_active_reads_expired(self, db_session, active_member):
        membership = _membership(active_member)
        membership.end_date = utcnow() - timedelta(hours=1)
        db.session.commit()

        data = membership.to_dict()
        assert data["status"] == "EXPIRED"
        assert data["days_remaining"] == 0

    def test_expire_job(self, db_session, active_member):
        membership = _membership(active_member)
        membership.end_date = utcnow() - timedelta(hours=1)
        db.session.commit()

        assert membership_service.expire_lapsed_memberships() == 1
        db.session.refresh(membership)
        assert membership.status == "EXPIRED"
        assert membership_service.expire_lapsed_memberships() == 0
