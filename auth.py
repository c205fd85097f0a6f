"""Sessions, local and OAuth sign-in, and role-based route guarding.

The session cookie only ever carries ``user_id``. It is resolved to a
:class:`Principal` once per request by :func:`load_principal`, and guarded
views receive that principal as an explicit ``principal`` keyword argument.
"""
import logging
from collections import namedtuple
from functools import wraps

from flask import flash, g, redirect, request, session, url_for
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from errors import AuthenticationFailure, NotFound
from models import ROLES, User, db

logger = logging.getLogger(__name__)

Principal = namedtuple('Principal', ['id', 'role', 'name', 'email'])

LOGIN_ENDPOINT = 'public.resident_login'


def principal_for(user):
    return Principal(id=user.id, role=user.role, name=user.name, email=user.email)


# -----------------
# User directory
# -----------------
def _lookup(profile):
    clauses = [User.email == profile.email]
    if profile.external_id:
        clauses.append(User.google_id == profile.external_id)
    return User.query.filter(or_(*clauses)).first()


def find_or_create_user(profile):
    """Return the user matching ``profile`` by external id or email, creating a tenant if none does.

    Existing rows are returned as they are; repeat logins do not sync name or
    external id. A concurrent first login for the same email loses on the
    unique constraint and falls back to the lookup.
    """
    user = _lookup(profile)
    if user:
        return user

    user = User(
        google_id=profile.external_id,
        email=profile.email,
        name=profile.display_name,
        role='tenant',
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.info("Concurrent sign-up for %s; re-reading the existing user", profile.email)
        user = _lookup(profile)
        if user is None:
            raise
        return user
    logger.info("Created user %s (%s) on first sign-in", user.id, user.email)
    return user


def register_local_user(name, email, password, role='tenant'):
    email = (email or '').strip().lower()
    if not email or not password:
        raise AuthenticationFailure("Email and password required.")
    if role not in ROLES:
        raise AuthenticationFailure("Unknown account type.")
    user = User(name=(name or '').strip(), email=email, role=role,
                password_hash=generate_password_hash(password))
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise AuthenticationFailure("An account with that email already exists.")
    logger.info("Registered local %s account %s", role, email)
    return user


def authenticate_local(email, password, role=None):
    email = (email or '').strip().lower()
    user = User.query.filter_by(email=email).first()
    if user is None or not user.password_hash or not check_password_hash(user.password_hash, password or ''):
        logger.info("Failed login for %s", email)
        raise AuthenticationFailure("Invalid credentials.")
    if role and user.role != role:
        logger.info("Login for %s rejected: account is %s, page is %s", email, user.role, role)
        raise AuthenticationFailure("Invalid credentials.")
    return user


def update_profile(user_id, name, role):
    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound(f"User {user_id} not found")
    if role not in ROLES:
        raise ValueError(f"Unknown role {role!r}")
    if user.role == 'landlord' and role != 'landlord' and user.properties:
        raise ValueError("Landlords who still own properties cannot switch to a tenant account.")
    user.name = (name or '').strip() or user.name
    user.role = role
    db.session.commit()
    return user


# -----------------
# Session store
# -----------------
def login_principal(user):
    session.clear()
    session['user_id'] = user.id
    logger.info("User %s signed in as %s", user.id, user.role)


def logout_principal():
    session.clear()


def load_principal():
    """Resolve the session's user id into ``g.principal`` (or None)."""
    g.principal = None
    user_id = session.get('user_id')
    if user_id is None:
        return
    user = db.session.get(User, user_id)
    if user is None:
        logger.warning("Session refers to missing user %s; treating request as anonymous", user_id)
        session.pop('user_id', None)
        return
    g.principal = principal_for(user)


def dashboard_endpoint(role):
    return 'landlord.index' if role == 'landlord' else 'tenant.index'


# -----------------
# Route guards
# -----------------
def _deny(reason):
    logger.debug("Redirecting %s to login: %s", request.path, reason)
    flash("Please log in to access that page.", "warning")
    # POST-only routes cannot be replayed after login
    if request.method != 'GET':
        return redirect(url_for(LOGIN_ENDPOINT))
    return redirect(url_for(LOGIN_ENDPOINT, next=request.path))


def role_required(role):
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            principal = g.get('principal')
            if principal is None:
                return _deny("anonymous")
            if principal.role != role:
                return _deny(f"role {principal.role} is not {role}")
            return f(*args, principal=principal, **kwargs)
        return decorated
    return decorator
