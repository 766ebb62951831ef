"""Add a login to the shop, or set the password of an existing one."""

from werkzeug.security import generate_password_hash

from extensions import db
from models import ROLES, User


def create_user(user_id, name, role, password=None):
    """Create the user, or update role/password when the id exists. Returns (user, created)."""
    if role not in ROLES:
        raise ValueError(f"Unknown role: {role}")

    user = db.session.get(User, user_id)
    created = user is None
    if created:
        user = User(id=user_id, name=name or user_id, role=role, skills=[])
        db.session.add(user)
    else:
        user.role = role
        if name:
            user.name = name
    user.password = generate_password_hash(password) if password else None
    db.session.commit()
    return user, created


if __name__ == '__main__':
    import argparse

    from app import create_app

    parser = argparse.ArgumentParser(description='Create a shop user or reset their password.')
    parser.add_argument('user_id', help='Login id, e.g. tech6')
    parser.add_argument('role', choices=ROLES, help='User role')
    parser.add_argument('--name', help='Display name')
    parser.add_argument('--password', help='Password (omit for a password-less demo login)')

    args = parser.parse_args()
    app = create_app()
    with app.app_context():
        user, created = create_user(args.user_id, args.name, args.role, args.password)
        print(f"✅ {'Created' if created else 'Updated'} user: {user.id} (role: {user.role})")
