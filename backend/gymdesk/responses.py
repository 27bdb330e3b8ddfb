# Overview: JSON response envelopes shared by every blueprint.

"""
All API responses use one of two shapes:

    {"success": true, "message"?: str, "data": ...}
    {"success": false, "message": str}
"""

from __future__ import annotations

from flask import jsonify


def ok(data=None, message: str | None = None, status: int = 200):
    body = {"success": True}
    if message:
        body["message"] = message
    body["data"] = data
    return jsonify(body), status


def created(data=None, message: str | None = None):
    return ok(data, message, 201)


def fail(message: str, status: int = 400, **extra):
    body = {"success": False, "message": message}
    body.update(extra)
    return jsonify(body), status


def internal_error():
    return fail("Internal server error", 500)
