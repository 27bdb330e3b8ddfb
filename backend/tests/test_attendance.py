# Overview: Pytest coverage for QR and manual attendance.

import json
from datetime import timedelta

import pytest

from gymdesk.extensions import db
from gymdesk.models import Attendance
from gymdesk.services import attendance_service, qr_service
from gymdesk.services.attendance_service import AttendanceError
from gymdesk.time_utils import utcnow


def _qr_text(member, **overrides):
    payload = qr_service.build_payload(member)
    payload.update(overrides)
    return json.dumps(payload)


class TestManualAttendance:
    def test_checkin_needs_active_membership(self, client, admin_headers, member):
        resp = client.post("/api/attendance/checkin", json={"member_id": member.id}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "No active membership"

    def test_checkin_then_checkout(self, client, admin_headers, active_member):
        body = {"member_id": active_member.id}

        resp = client.post("/api/attendance/checkin", json=body, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["method"] == "MANUAL"
        assert resp.json["data"]["check_out_time"] is None

        assert client.post("/api/attendance/checkin", json=body, headers=admin_headers).status_code == 400

        resp = client.post("/api/attendance/checkout", json=body, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["check_out_time"] is not None
        assert resp.json["data"]["duration_minutes"] == 0

        assert client.post("/api/attendance/checkout", json=body, headers=admin_headers).status_code == 400

    def test_unknown_member(self, client, admin_headers):
        resp = client.post("/api/attendance/checkin", json={"member_id": 9999}, headers=admin_headers)
        assert resp.status_code == 404

    def test_frozen_membership_cannot_check_in(self, client, admin_headers, active_member):
        membership = active_member.memberships[0]
        client.post(f"/api/memberships/{membership.id}/freeze", headers=admin_headers)
        resp = client.post("/api/attendance/checkin", json={"member_id": active_member.id}, headers=admin_headers)
        assert resp.status_code == 400

    def test_yesterdays_open_visit_does_not_block(self, db_session, active_member):
        db.session.add(Attendance(
            member_id=active_member.id,
            check_in_time=utcnow() - timedelta(days=1),
            method="MANUAL",
        ))
        db.session.commit()

        attendance = attendance_service.check_in(member_id=active_member.id)
        assert attendance.check_out_time is None
        assert attendance_service.open_checkin(active_member.id).id == attendance.id

    def test_member_cannot_check_in_directly(self, client, active_member, member_headers):
        resp = client.post("/api/attendance/checkin", json={"member_id": active_member.id}, headers=member_headers)
        assert resp.status_code == 403


class TestQRScan:
    def test_scan_toggles(self, client, admin_headers, active_member):
        text = _qr_text(active_member)

        resp = client.post("/api/attendance/scan", json={"qr_data": text}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["action"] == "CHECK_IN"
        assert resp.json["data"]["method"] == "QR"
        assert resp.json["message"] == "Checked in successfully"

        resp = client.post("/api/attendance/scan", json={"qr_data": text}, headers=admin_headers)
        assert resp.status_code == 200
        assert resp.json["data"]["action"] == "CHECK_OUT"

    @pytest.mark.parametrize(
        "qr_data,message",
        [
            ("not json", "Invalid QR code format"),
            (json.dumps({"type": "SOMETHING_ELSE", "memberId": 1, "uuid": "x"}), "Invalid QR code type"),
            (json.dumps({"type": qr_service.QR_TYPE}), "Invalid QR code format"),
            (json.dumps({"type": qr_service.QR_TYPE, "memberId": {"a": 1}, "uuid": "x"}), "Invalid QR code format"),
            (json.dumps({"type": qr_service.QR_TYPE, "memberId": [1], "uuid": "x"}), "Invalid QR code format"),
            (json.dumps({"type": qr_service.QR_TYPE, "memberId": "abc", "uuid": "x"}), "Invalid QR code format"),
            (json.dumps({"type": qr_service.QR_TYPE, "memberId": True, "uuid": "x"}), "Invalid QR code format"),
            (json.dumps({"type": qr_service.QR_TYPE, "memberId": 2 ** 70, "uuid": "x"}), "Invalid QR code format"),
            (json.dumps({"type": qr_service.QR_TYPE, "memberId": 1, "uuid": {"v": "x"}}), "Invalid QR code format"),
            (None, "Invalid QR code format"),
        ],
    )
    def test_malformed_codes(self, client, admin_headers, qr_data, message):
        resp = client.post("/api/attendance/scan", json={"qr_data": qr_data}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == message

    def test_wrong_uuid(self, client, admin_headers, active_member):
        resp = client.post(
            "/api/attendance/scan",
            json={"qr_data": _qr_text(active_member, uuid="00000000-0000-0000-0000-000000000000")},
            headers=admin_headers,
        )
        assert resp.status_code == 400
        assert resp.json["message"] == "Invalid QR code"

    def test_scan_without_membership(self, client, admin_headers, member):
        resp = client.post("/api/attendance/scan", json={"qr_data": _qr_text(member)}, headers=admin_headers)
        assert resp.status_code == 400
        assert resp.json["message"] == "No active membership"

    def test_parse_accepts_dict(self, member):
        data = qr_service.parse_qr_payload(qr_service.build_payload(member))
        assert data["memberId"] == member.id

    def test_digit_string_member_id(self, client, admin_headers, active_member):
        payload = {**qr_service.build_payload(active_member), "memberId": str(active_member.id)}
        resp = client.post("/api/attendance/scan", json={"qr_data": json.dumps(payload)}, headers=admin_headers)
        assert resp.status_code == 200


class TestListings:
    def test_today_summary(self, client, admin_headers, active_member, other_member):
        attendance_service.check_in(member_id=active_member.id)
        resp = client.get("/api/attendance/today", headers=admin_headers)
        assert resp.json["data"] == {"today": 1, "currently_in": 1}

    def test_list_by_date(self, client, admin_headers, active_member):
        attendance_service.check_in(member_id=active_member.id)
        today = utcnow().date().isoformat()

        resp = client.get(f"/api/attendance?date={today}", headers=admin_headers)
        assert resp.json["data"]["pagination"]["total"] == 1
        assert resp.json["data"]["items"][0]["member"]["id"] == active_member.id

        resp = client.get("/api/attendance?date=2001-01-01", headers=admin_headers)
        assert resp.json["data"]["items"] == []

    def test_bad_date(self, client, admin_headers):
        assert client.get("/api/attendance?start_date=yesterday", headers=admin_headers).status_code == 400

    def test_member_history_access(self, client, active_member, member_headers, other_member, other_headers):
        attendance_service.check_in(member_id=active_member.id)

        mine = client.get("/api/attendance/my", headers=member_headers)
        assert mine.json["data"]["pagination"]["total"] == 1

        assert client.get(f"/api/attendance/member/{active_member.id}", headers=member_headers).status_code == 200
        assert client.get(f"/api/attendance/member/{active_member.id}", headers=other_headers).status_code == 403


def test_checkout_when_not_in_raises(db_session, active_member):
    with pytest.raises(AttendanceError):
        attendance_service.check_out(member_id=active_member.id)
