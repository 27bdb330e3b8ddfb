# Overview: Flask CLI command groups for bootstrap, inspection, and maintenance.

# backend/gymdesk/cli.py
# Commands Legend (run from the backend directory):
# Prereqs:
# - Activate your virtualenv.
# - Set FLASK_APP to wsgi.py (PowerShell: $env:FLASK_APP="wsgi.py").
# - Use: python -m flask <group> <command> [options]
#
# System bootstrap/repair:
# - python -m flask gym init [--admin-mobile ... --admin-password ...]
#   Idempotent bootstrap: gym settings, default membership plans, admin user.
# - python -m flask gym reset-db --yes
#   DEV/TEST only: drop and recreate all tables (deletes all data).
#
# Users:
# - python -m flask users list [--role ADMIN]
# - python -m flask users create-admin --name "Owner" --mobile "+91..." --password "..."
#
# Scheduled jobs (normally run by the in-process scheduler):
# - python -m flask reminders run
# - python -m flask memberships expire
#
# Maintenance:
# - python -m flask maintenance cleanup-sessions --retention-days 30

import click
from flask.cli import with_appcontext

from .extensions import db
from .models import MembershipPlan, User
from .models.auth import ROLE_ADMIN, ROLES
from .services import membership_service, plan_service, reminder_service, session_service, settings_service
from .services.auth_service import PasswordValidationError, create_user
from .validation import ConflictError


DEFAULT_PLANS = [
    {
        "name": "Monthly Membership",
        "duration_days": 30,
        "base_price": 1500,
        "description": "Access to all gym facilities for 1 month",
        "features": ["Full gym access", "Locker room", "Free WiFi", "Water dispenser"],
    },
    {
        "name": "Quarterly Membership",
        "duration_days": 90,
        "base_price": 4000,
        "description": "Access to all gym facilities for 3 months",
        "features": ["Full gym access", "Locker room", "Free WiFi", "Water dispenser", "1 Free PT session"],
    },
    {
        "name": "Half-Yearly Membership",
        "duration_days": 180,
        "base_price": 7000,
        "description": "Access to all gym facilities for 6 months",
        "features": ["Full gym access", "Locker room", "Free WiFi", "Water dispenser",
                     "3 Free PT sessions", "Diet consultation"],
    },
    {
        "name": "Annual Membership",
        "duration_days": 365,
        "base_price": 12000,
        "description": "Best value! Full year access to all facilities",
        "features": ["Full gym access", "Locker room", "Free WiFi", "Water dispenser",
                     "6 Free PT sessions", "Diet consultation", "Body composition analysis", "Gym merchandise"],
    },
    {
        "name": "Personal Training (Monthly)",
        "duration_days": 30,
        "base_price": 5000,
        "description": "One-on-one personal training sessions",
        "features": ["Full gym access", "Personal trainer", "Custom workout plan", "Diet plan",
                     "Weekly progress tracking"],
    },
]


@click.group('gym')
def gym_group():
    """System bootstrap and repair commands."""


@gym_group.command('init')
@click.option('--admin-name', default='ULIFTS Admin', help='Admin full name')
@click.option('--admin-mobile', default='+919876543210', help='Admin mobile number (login id)')
@click.option('--admin-email', default='admin@ulifts.gym', help='Admin email')
@click.option('--admin-password', default='admin123', help='Admin password')
@with_appcontext
def init_gym(admin_name, admin_mobile, admin_email, admin_password):
    """
    Initialize settings, default plans and the first admin.

    Safe to re-run: existing rows are left alone.

    SECURITY: Change the default admin password immediately in production!
    """
    click.echo("START Initializing gym...")

    settings = settings_service.get_settings()
    click.echo(f"PASS Settings ready: {settings.gym_name}")

    if db.session.query(MembershipPlan).count() == 0:
        for plan in DEFAULT_PLANS:
            plan_service.create_plan(payload=dict(plan))
        click.echo(f"PASS Created {len(DEFAULT_PLANS)} default plans")
    else:
        click.echo("PASS Plans already exist")

    admin = db.session.query(User).filter_by(role=ROLE_ADMIN).first()
    if admin:
        click.echo(f"PASS Admin already exists: {admin.full_name} ({admin.mobile})")
    else:
        try:
            admin = create_user(
                full_name=admin_name,
                mobile=admin_mobile,
                email=admin_email,
                password=admin_password,
                role=ROLE_ADMIN,
            )
        except (ConflictError, PasswordValidationError, ValueError) as e:
            raise click.ClickException(str(e))
        click.echo(f"PASS Created admin: {admin.full_name} ({admin.mobile})")

    click.echo("DONE Gym initialized.")


@gym_group.command('reset-db')
@click.option('--yes', is_flag=True, help='Skip confirmation')
@with_appcontext
def reset_db(yes):
    """
    DANGER: Drop all tables and recreate schema.

    This will DELETE ALL DATA!
    """
    if not yes:
        click.confirm("WARN This will DELETE ALL DATA. Are you sure?", abort=True)

    click.echo("DELETE  Dropping all tables...")
    db.drop_all()

    click.echo("BUILD  Creating all tables...")
    db.create_all()

    click.echo("PASS Database reset complete. Run 'python -m flask gym init' to initialize.")


@click.group('users')
def users_group():
    """User inspection and bootstrap."""


@users_group.command('list')
@click.option('--role', type=click.Choice(ROLES, case_sensitive=False), help='Filter by role')
@with_appcontext
def list_users(role):
    """List users with role and status."""
    query = db.session.query(User)
    if role:
        query = query.filter(User.role == role.upper())
    users = query.order_by(User.id.asc()).all()

    if not users:
        click.echo("No users found.")
        return

    click.echo("\n" + "=" * 80)
    click.echo(f"{'ID':<5} {'Name':<28} {'Mobile':<16} {'Role':<8} {'Status':<10} {'Member'}")
    click.echo("=" * 80)
    for user in users:
        code = user.member.member_code if user.member else "-"
        click.echo(f"{user.id:<5} {user.full_name[:27]:<28} {user.mobile:<16} {user.role:<8} {user.status:<10} {code}")
    click.echo("=" * 80 + "\n")


@users_group.command('create-admin')
@click.option('--name', prompt=True, help='Full name')
@click.option('--mobile', prompt=True, help='Mobile number (login id)')
@click.option('--email', default=None, help='Email (optional)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True, help='Password')
@with_appcontext
def create_admin(name, mobile, email, password):
    """Create an ADMIN user."""
    try:
        user = create_user(full_name=name, mobile=mobile, email=email, password=password, role=ROLE_ADMIN)
    except (ConflictError, PasswordValidationError, ValueError) as e:
        raise click.ClickException(str(e))
    click.echo(f"PASS Created admin {user.full_name} (ID: {user.id})")


@click.group('reminders')
def reminders_group():
    """Membership expiry reminders."""


@reminders_group.command('run')
@with_appcontext
def run_reminders():
    """Send today's expiry reminders now."""
    summary = reminder_service.run_expiry_reminders()
    if not summary["enabled"]:
        click.echo("SKIP SMS alerts are disabled in settings.")
        return
    click.echo(
        f"PASS checked={summary['checked']} sent={summary['sent']} "
        f"skipped={summary['skipped']} failed={summary['failed']}"
    )


@click.group('memberships')
def memberships_group():
    """Membership lifecycle jobs."""


@memberships_group.command('expire')
@with_appcontext
def expire_memberships():
    """Mark lapsed ACTIVE memberships as EXPIRED."""
    count = membership_service.expire_lapsed_memberships()
    click.echo(f"PASS Expired {count} memberships")


@click.group('maintenance')
def maintenance_group():
    """Maintenance utilities."""


@maintenance_group.command('cleanup-sessions')
@click.option('--retention-days', default=30, show_default=True, type=int)
@with_appcontext
def cleanup_sessions(retention_days):
    """Delete expired or revoked sessions older than the retention window."""
    deleted = session_service.cleanup_expired_sessions(retention_days=retention_days)
    click.echo(f"PASS Deleted {deleted} sessions")


def register_commands(app):
    """Register all CLI commands with Flask app."""
    app.cli.add_command(gym_group)
    app.cli.add_command(users_group)
    app.cli.add_command(reminders_group)
    app.cli.add_command(memberships_group)
    app.cli.add_command(maintenance_group)
