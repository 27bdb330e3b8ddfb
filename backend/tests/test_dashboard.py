# Overview: Pytest coverage for dashboard aggregates.

import pytest

from gymdesk.services import attendance_service, dashboard_service, progress_service


@pytest.mark.parametrize(
    "this_month,last_month,expected",
    [
        (0, 0, 0.0),
        (150000, 0, 100.0),
        (150000, 100000, 50.0),
        (50000, 150000, -66.7),
    ],
)
def test_growth_percent(this_month, last_month, expected):
    assert dashboard_service.growth_percent(this_month, last_month) == expected


class TestAdminDashboard:
    def test_counts_and_revenue(self, client, admin_headers, active_member, other_member):
        attendance_service.check_in(member_id=active_member.id)

        resp = client.get("/api/dashboard/admin", headers=admin_headers)
        assert resp.status_code == 200
        data = resp.json["data"]

        assert data["members"]["total"] == 2
        assert data["members"]["active"] == 1
        assert data["members"]["expired"] == 0
        assert data["members"]["new_this_month"] == 2
        assert data["attendance"] == {"today": 1, "currently_in": 1}
        assert data["revenue"]["this_month"] == 150000
        assert data["revenue"]["last_month"] == 0
        assert data["revenue"]["growth"] == 100.0
        assert len(data["recent_payments"]) == 1
        assert data["expiring_memberships"] == []

    def test_refunds_do_not_count(self, client, admin_headers, active_member):
        payment = active_member.payments[0]
        client.post(f"/api/payments/{payment.id}/refund", headers=admin_headers)

        data = client.get("/api/dashboard/admin", headers=admin_headers).json["data"]
        assert data["revenue"]["this_month"] == 0
        assert data["members"]["active"] == 0

    def test_member_denied(self, client, member_headers):
        assert client.get("/api/dashboard/admin", headers=member_headers).status_code == 403


class TestMemberDashboard:
    def test_member_home(self, client, active_member, member_headers):
        attendance_service.check_in(member_id=active_member.id)
        progress_service.create_record(member_id=active_member.id, payload={"weight": 81})

        resp = client.get("/api/dashboard/member", headers=member_headers)
        assert resp.status_code == 200
        data = resp.json["data"]
        assert data["member"]["id"] == active_member.id
        assert data["membership"]["status"] == "ACTIVE"
        assert data["attendance"]["this_month"] == 1
        assert len(data["attendance"]["recent"]) == 1
        assert data["progress"][0]["weight"] == 81
        assert data["workout"] is None
        assert len(data["payments"]) == 1

    def test_admin_has_no_member_home(self, client, admin_headers):
        assert client.get("/api/dashboard/member", headers=admin_headers).status_code == 404
