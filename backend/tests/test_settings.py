# Overview: Pytest coverage for gym settings.

from gymdesk.services import settings_service


class TestReadSettings:
    def test_defaults_from_config(self, client, db_session):
        resp = client.get("/api/settings")
        assert resp.status_code == 200
        data = resp.json["data"]
        assert data["gym_name"].startswith("ULIFTS")
        assert data["currency"] == "INR"

    def test_public_view_hides_private_fields(self, client, db_session):
        data = client.get("/api/settings").json["data"]
        assert "gstin" not in data
        assert "notification_settings" not in data

    def test_member_gets_public_view(self, client, member_headers):
        data = client.get("/api/settings", headers=member_headers).json["data"]
        assert "notification_settings" not in data

    def test_admin_sees_everything(self, client, admin_headers):
        data = client.get("/api/settings", headers=admin_headers).json["data"]
        assert data["notification_settings"] == {
            "emailAlerts": True,
            "smsAlerts": False,
            "marketingEmails": False,
        }
        assert "gstin" in data

    def test_admin_then_anonymous(self, client, admin_headers):
        client.get("/api/settings", headers=admin_headers)
        assert "gstin" not in client.get("/api/settings").json["data"]


class TestUpdateSettings:
    def test_update_and_merge_flags(self, client, admin_headers):
        resp = client.put(
            "/api/settings",
            json={
                "gym_name": "Iron Temple",
                "working_hours": {"mon": "06:00-22:00"},
                "notification_settings": {"smsAlerts": True},
            },
            headers=admin_headers,
        )
        assert resp.status_code == 200
        data = resp.json["data"]
        assert data["gym_name"] == "Iron Temple"
        assert data["working_hours"] == {"mon": "06:00-22:00"}
        assert data["notification_settings"]["smsAlerts"] is True
        assert data["notification_settings"]["emailAlerts"] is True

        assert settings_service.notification_flags()["smsAlerts"] is True

    def test_invalid_patch_changes_nothing(self, client, admin_headers):
        resp = client.put(
            "/api/settings",
            json={"tagline": "Lift heavy", "gym_name": "  "},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert settings_service.get_settings().tagline is None

    def test_rejects_unknown_fields(self, client, admin_headers):
        resp = client.put("/api/settings", json={"id": 5}, headers=admin_headers)
        assert resp.status_code == 400

    def test_rejects_unknown_flag(self, client, admin_headers):
        resp = client.put("/api/settings", json={"notification_settings": {"pushAlerts": True}}, headers=admin_headers)
        assert resp.status_code == 400

    def test_rejects_bad_email(self, client, admin_headers):
        resp = client.put("/api/settings", json={"email": "not-an-email"}, headers=admin_headers)
        assert resp.status_code == 400

    def test_member_cannot_update(self, client, member_headers):
        assert client.put("/api/settings", json={"gym_name": "Mine"}, headers=member_headers).status_code == 403
