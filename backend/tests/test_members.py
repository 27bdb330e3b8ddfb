# Overview: Pytest coverage for member management endpoints.

from conftest import MEMBER_MOBILE, auth_headers, get_auth_token
from gymdesk.extensions import db
from gymdesk.models import Member, Payment, User


def _create(client, headers, **overrides):
    payload = {"full_name": "New Member", "mobile": "9111111111", "email": "new@test.gym"}
    payload.update(overrides)
    return client.post("/api/members", json=payload, headers=headers)


class TestCreateMember:
    def test_creates_user_and_profile(self, client, admin_headers):
        resp = _create(client, admin_headers, gender="male", height_cm=175)
        assert resp.status_code == 201
        data = resp.json["data"]
        assert data["member_code"] == "NAZ-001"
        assert data["full_name"] == "New Member"
        assert data["gender"] == "MALE"
        assert data["current_membership"] is None

    def test_default_password_is_mobile(self, client, admin_headers):
        _create(client, admin_headers)
        assert get_auth_token(client, "9111111111", "9111111111")

    def test_codes_are_sequential(self, client, admin_headers):
        _create(client, admin_headers)
        resp = _create(client, admin_headers, mobile="9111111112", email=None)
        assert resp.json["data"]["member_code"] == "NAZ-002"

    def test_duplicate_mobile(self, client, admin_headers, member):
        resp = _create(client, admin_headers, mobile=MEMBER_MOBILE)
        assert resp.status_code == 409
        assert db.session.query(User).filter_by(mobile=MEMBER_MOBILE).count() == 1

    def test_with_plan_buys_first_membership(self, client, admin_headers, plan):
        resp = _create(client, admin_headers, plan_id=plan.id, payment_method="UPI")
        assert resp.status_code == 201
        current = resp.json["data"]["current_membership"]
        assert current["status"] == "ACTIVE"
        assert current["plan_name"] == plan.name
        assert current["days_remaining"] == 30

        payment = db.session.query(Payment).one()
        assert payment.payment_method == "UPI"
        assert payment.amount_cents == 150000

    def test_unknown_plan_creates_nothing(self, client, admin_headers):
        resp = _create(client, admin_headers, plan_id=9999)
        assert resp.status_code == 404
        assert db.session.query(Member).count() == 0

    def test_bad_payment_method_creates_nothing(self, client, admin_headers, plan):
        resp = _create(client, admin_headers, plan_id=plan.id, payment_method="CARD")
        assert resp.status_code == 400
        assert resp.json["message"].startswith("payment_method must be one of")
        assert db.session.query(Member).count() == 0
        assert db.session.query(User).filter_by(mobile="9111111111").count() == 0

        retry = _create(client, admin_headers, plan_id=plan.id, payment_method="CASH")
        assert retry.status_code == 201

    def test_missing_name(self, client, admin_headers):
        resp = _create(client, admin_headers, full_name="")
        assert resp.status_code == 400

    def test_unknown_field(self, client, admin_headers):
        resp = _create(client, admin_headers, favourite_colour="red")
        assert resp.status_code == 400

    def test_future_birth_date(self, client, admin_headers):
        resp = _create(client, admin_headers, date_of_birth="2999-01-01")
        assert resp.status_code == 400

    def test_member_cannot_create(self, client, member_headers):
        resp = _create(client, member_headers)
        assert resp.status_code == 403


class TestListMembers:
    def test_pagination_shape(self, client, admin_headers, member, other_member):
        resp = client.get("/api/members?limit=1", headers=admin_headers)
        assert resp.status_code == 200
        data = resp.json["data"]
        assert len(data["items"]) == 1
        assert data["pagination"] == {"page": 1, "limit": 1, "total": 2, "total_pages": 2}

    def test_search(self, client, admin_headers, member, other_member):
        resp = client.get("/api/members?search=other", headers=admin_headers)
        names = [m["full_name"] for m in resp.json["data"]["items"]]
        assert names == ["Other Member"]

    def test_search_by_code(self, client, admin_headers, member, other_member):
        resp = client.get(f"/api/members?search={member.member_code}", headers=admin_headers)
        assert [m["id"] for m in resp.json["data"]["items"]] == [member.id]

    def test_status_filter(self, client, admin_headers, active_member, other_member):
        active = client.get("/api/members?status=ACTIVE", headers=admin_headers).json["data"]["items"]
        none = client.get("/api/members?status=NONE", headers=admin_headers).json["data"]["items"]
        assert [m["id"] for m in active] == [active_member.id]
        assert [m["id"] for m in none] == [other_member.id]

    def test_bad_status(self, client, admin_headers):
        resp = client.get("/api/members?status=SLEEPING", headers=admin_headers)
        assert resp.status_code == 400

    def test_member_cannot_list(self, client, member_headers):
        assert client.get("/api/members", headers=member_headers).status_code == 403


class TestMemberAccess:
    def test_own_profile(self, client, member, member_headers):
        resp = client.get("/api/members/me", headers=member_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["id"] == member.id
        assert client.get(f"/api/members/{member.id}", headers=member_headers).status_code == 200

    def test_other_profile_denied(self, client, member_headers, other_member):
        resp = client.get(f"/api/members/{other_member.id}", headers=member_headers)
        assert resp.status_code == 403

    def test_admin_has_no_member_profile(self, client, admin_headers):
        assert client.get("/api/members/me", headers=admin_headers).status_code == 404

    def test_missing_member(self, client, admin_headers):
        assert client.get("/api/members/9999", headers=admin_headers).status_code == 404

    def test_qr_code(self, client, member, member_headers):
        resp = client.get(f"/api/members/{member.id}/qr", headers=member_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["qr_code"].startswith("data:image/png;base64,")

    def test_qr_code_of_other_member_denied(self, client, member_headers, other_member):
        resp = client.get(f"/api/members/{other_member.id}/qr", headers=member_headers)
        assert resp.status_code == 403


class TestUpdateDelete:
    def test_update_profile_and_user_fields(self, client, admin_headers, member):
        resp = client.put(
            f"/api/members/{member.id}",
            json={"full_name": "Updated Name", "weight_kg": "72.5", "fitness_goal": "Cut"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        data = resp.json["data"]
        assert data["full_name"] == "Updated Name"
        assert data["weight_kg"] == 72.5
        assert data["fitness_goal"] == "Cut"

    def test_password_not_writable(self, client, admin_headers, member):
        resp = client.put(f"/api/members/{member.id}", json={"password": "hunter22"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_invalid_patch_changes_nothing(self, client, admin_headers, member):
        resp = client.put(
            f"/api/members/{member.id}",
            json={"full_name": "Should Not Stick", "height_cm": -5},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        db.session.refresh(member.user)
        assert member.user.full_name == "Test Member"

    def test_delete_removes_user(self, client, admin_headers, active_member):
        user_id = active_member.user_id
        resp = client.delete(f"/api/members/{active_member.id}", headers=admin_headers)
        assert resp.status_code == 200
        assert db.session.get(User, user_id) is None
        assert db.session.query(Payment).count() == 0

    def test_deleted_member_token_stops_working(self, client, admin_headers, member):
        headers = auth_headers(get_auth_token(client, MEMBER_MOBILE, MEMBER_MOBILE))
        client.delete(f"/api/members/{member.id}", headers=admin_headers)
        assert client.get("/api/auth/me", headers=headers).status_code == 401
