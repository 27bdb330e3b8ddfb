"""
Pytest fixtures for gymdesk backend tests.

Provides the test app, a clean database per test, an admin, a member,
a plan and bearer headers for both roles.
"""

import pytest
from flask import g
from flask.testing import FlaskClient

from gymdesk import create_app
from gymdesk.config import TestingConfig
from gymdesk.extensions import db
from gymdesk.models.auth import ROLE_ADMIN
from gymdesk.services import member_service, payment_service, plan_service
from gymdesk.services.auth_service import create_user


ADMIN_MOBILE = "9000000001"
ADMIN_PASSWORD = "admin123"
MEMBER_MOBILE = "9000000002"
OTHER_MOBILE = "9000000003"


class IsolatedClient(FlaskClient):
    """
    Test client that forgets the previous request's identity.

    The app context stays pushed for the whole run, so g would otherwise
    carry current_user from one request into the next.
    """

    def open(self, *args, **kwargs):
        g.pop("current_user", None)
        g.pop("session", None)
        return super().open(*args, **kwargs)


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    app = create_app(TestingConfig)
    app.config["UPLOAD_DIR"] = str(tmp_path_factory.mktemp("uploads"))
    app.test_client_class = IsolatedClient

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    db.session.remove()
    # Clear all data but keep schema
    for table in reversed(db.metadata.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    # Cleanup after test
    db.session.rollback()


@pytest.fixture(scope='function')
def admin_user(db_session):
    return create_user(
        full_name="Test Admin",
        mobile=ADMIN_MOBILE,
        email="admin@test.gym",
        password=ADMIN_PASSWORD,
        role=ROLE_ADMIN,
    )


@pytest.fixture(scope='function')
def plan(db_session):
    return plan_service.create_plan(payload={
        "name": "Monthly Membership",
        "duration_days": 30,
        "base_price": 1500,
        "features": ["Full gym access"],
    })


@pytest.fixture(scope='function')
def member(db_session):
    """Member without any membership; password is the mobile number."""
    return member_service.create_member(payload={
        "full_name": "Test Member",
        "mobile": MEMBER_MOBILE,
        "email": "member@test.gym",
    })


@pytest.fixture(scope='function')
def other_member(db_session):
    return member_service.create_member(payload={
        "full_name": "Other Member",
        "mobile": OTHER_MOBILE,
    })


@pytest.fixture(scope='function')
def active_member(member, plan, admin_user):
    """The member fixture after paying cash for the monthly plan."""
    payment_service.record_manual_payment(
        member_id=member.id,
        plan_id=plan.id,
        payment_method="CASH",
        recorded_by_user_id=admin_user.id,
    )
    return member


@pytest.fixture(scope='function')
def admin_headers(client, admin_user):
    return auth_headers(get_auth_token(client, ADMIN_MOBILE, ADMIN_PASSWORD))


@pytest.fixture(scope='function')
def member_headers(client, member):
    return auth_headers(get_auth_token(client, MEMBER_MOBILE, MEMBER_MOBILE))


@pytest.fixture(scope='function')
def other_headers(client, other_member):
    return auth_headers(get_auth_token(client, OTHER_MOBILE, OTHER_MOBILE))


def get_auth_token(client, identifier: str, password: str) -> str:
    """Helper to get auth token for a user."""
    response = client.post('/api/auth/login', json={
        'mobile': identifier,
        'password': password
    })
    if response.status_code == 200:
        return response.json['data']['token']
    return None


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}
