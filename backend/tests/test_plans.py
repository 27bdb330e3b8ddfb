# Overview: Pytest coverage for the membership plan catalog.

import pytest

from gymdesk.extensions import db
from gymdesk.models import MembershipPlan


PLAN = {"name": "Quarterly", "duration_days": 90, "base_price": 4000, "features": ["Locker", " ", "WiFi"]}


class TestCatalog:
    def test_public_listing(self, client, plan):
        resp = client.get("/api/plans")
        assert resp.status_code == 200
        assert [p["name"] for p in resp.json["data"]] == ["Monthly Membership"]

    def test_active_filter(self, client, plan):
        plan.is_active = False
        db.session.commit()
        assert client.get("/api/plans?active=true").json["data"] == []
        assert len(client.get("/api/plans?active=false").json["data"]) == 1

    def test_unfiltered_listing_includes_inactive(self, client, plan):
        plan.is_active = False
        db.session.commit()
        resp = client.get("/api/plans")
        assert [p["is_active"] for p in resp.json["data"]] == [False]

    def test_get_missing(self, client, db_session):
        resp = client.get("/api/plans/9999")
        assert resp.status_code == 404
        assert resp.json == {"success": False, "message": "Plan not found"}


class TestCreatePlan:
    def test_requires_auth(self, client, db_session):
        assert client.post("/api/plans", json=PLAN).status_code == 401

    def test_member_denied(self, client, member_headers):
        assert client.post("/api/plans", json=PLAN, headers=member_headers).status_code == 403

    def test_gst_disabled(self, client, admin_headers):
        resp = client.post("/api/plans", json={**PLAN, "gst_percent": 18}, headers=admin_headers)
        assert resp.status_code == 201
        data = resp.json["data"]
        assert data["base_price_cents"] == 400000
        assert data["gst_percent"] == 0
        assert data["final_price_cents"] == 400000
        assert data["features"] == ["Locker", "WiFi"]

    def test_gst_enabled(self, app, client, admin_headers, monkeypatch):
        monkeypatch.setitem(app.config, "GST_ENABLED", True)
        resp = client.post("/api/plans", json={**PLAN, "base_price": 1500, "gst_percent": 18}, headers=admin_headers)
        assert resp.status_code == 201
        assert resp.json["data"]["final_price_cents"] == 177000

    def test_gst_enabled_uses_default_rate(self, app, client, admin_headers, monkeypatch):
        monkeypatch.setitem(app.config, "GST_ENABLED", True)
        monkeypatch.setitem(app.config, "DEFAULT_GST_PERCENT", 5)
        resp = client.post("/api/plans", json={**PLAN, "base_price": 1000}, headers=admin_headers)
        assert resp.json["data"]["final_price_cents"] == 105000

    @pytest.mark.parametrize(
        "override",
        [
            {"name": ""},
            {"duration_days": 0},
            {"duration_days": 4000},
            {"base_price": -1},
            {"base_price": "abc"},
            {"features": "Locker"},
        ],
    )
    def test_invalid(self, client, admin_headers, override):
        resp = client.post("/api/plans", json={**PLAN, **override}, headers=admin_headers)
        assert resp.status_code == 400
        assert db.session.query(MembershipPlan).count() == 0


class TestUpdatePlan:
    def test_price_change_recomputes_final(self, client, admin_headers, plan):
        resp = client.put(f"/api/plans/{plan.id}", json={"base_price": 1800}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["final_price_cents"] == 180000

    def test_invalid_patch_changes_nothing(self, client, admin_headers, plan):
        resp = client.put(
            f"/api/plans/{plan.id}",
            json={"name": "Renamed", "duration_days": -3},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        db.session.refresh(plan)
        assert plan.name == "Monthly Membership"


class TestDeletePlan:
    def test_in_use_is_rejected(self, client, admin_headers, active_member, plan):
        resp = client.delete(f"/api/plans/{plan.id}", headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["active_memberships"] == 1
        assert db.session.get(MembershipPlan, plan.id) is not None

    def test_unused_plan_is_deleted(self, client, admin_headers, plan):
        resp = client.delete(f"/api/plans/{plan.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert client.get(f"/api/plans/{plan.id}").status_code == 404

    def test_past_memberships_keep_snapshot(self, client, admin_headers, active_member, plan):
        membership = active_member.memberships[0]
        client.post(f"/api/memberships/{membership.id}/cancel", headers=admin_headers)

        assert client.delete(f"/api/plans/{plan.id}", headers=admin_headers).status_code == 200
        db.session.refresh(membership)
        assert membership.plan_id is None
        assert membership.plan_name == "Monthly Membership"
