import logging
import secrets

from flask import (Blueprint, Response, abort, current_app, flash, g, jsonify, redirect,
                   render_template, request, session, url_for)

import auth
from errors import AuthenticationFailure, MailDeliveryError
from mailer import send_contact_email
from models import Property, db

logger = logging.getLogger(__name__)

public_bp = Blueprint('public', __name__)


def _safe_next(default):
    next_url = request.args.get('next') or request.form.get('next')
    if next_url and next_url.startswith('/') and not next_url.startswith('//'):
        return next_url
    return default


# -----------------
# Pages
# -----------------
@public_bp.route('/')
def index():
    return render_template('index.html', title='home')


@public_bp.route('/rental-application')
def rental_application():
    properties = Property.query.order_by(Property.created_at.desc()).all()
    return render_template('rental_application.html', title='rental application', properties=properties)


@public_bp.route('/properties')
def properties():
    rows = Property.query.order_by(Property.created_at.desc()).all()
    return jsonify([p.to_dict() for p in rows])


@public_bp.route('/properties/<int:property_id>/image')
def property_image(property_id):
    prop = db.get_or_404(Property, property_id)
    if prop.image is None:
        abort(404)
    return Response(prop.image, mimetype=prop.image_mimetype or 'application/octet-stream')


@public_bp.route('/send-email', methods=['POST'])
def send_email():
    name = request.form.get('name', '').strip()
    email = request.form.get('email', '').strip()
    message = request.form.get('message', '').strip()
    try:
        send_contact_email(current_app.config, name, email, message)
    except ValueError as e:
        flash(str(e), "danger")
    except MailDeliveryError:
        flash("Sorry, your message could not be sent. Please try again later.", "danger")
    else:
        flash("Thanks! Your message has been sent.", "success")
    return redirect(url_for('public.index'))


# -----------------
# Auth
# -----------------
@public_bp.route('/login')
def login():
    return render_template('login.html', title='login')


def _local_login(role, template, title):
    if request.method == 'POST':
        try:
            user = auth.authenticate_local(request.form.get('email'), request.form.get('password'), role=role)
        except AuthenticationFailure as e:
            flash(str(e), "danger")
            return render_template(template, title=title), 200
        auth.login_principal(user)
        flash("Logged in successfully.", "success")
        return redirect(_safe_next(url_for(auth.dashboard_endpoint(user.role))))
    return render_template(template, title=title)


@public_bp.route('/resident-login', methods=['GET', 'POST'])
def resident_login():
    # Every guard redirect lands here, so any role may sign in on this page
    return _local_login(None, 'resident_login.html', 'resident login')


@public_bp.route('/landlord-login', methods=['GET', 'POST'])
def landlord_login():
    return _local_login('landlord', 'landlord_login.html', 'landlord login')


@public_bp.route('/resident-forgotpassword')
def resident_forgotpassword():
    return render_template('forgot_password.html', title='resident forgot password',
                           login_endpoint='public.resident_login')


@public_bp.route('/landlord-forgotpassword')
def landlord_forgotpassword():
    return render_template('forgot_password.html', title='landlord forgot password',
                           login_endpoint='public.landlord_login')


@public_bp.route('/register', methods=['GET', 'POST'])
def register():
    if request.method == 'POST':
        try:
            user = auth.register_local_user(
                request.form.get('name'),
                request.form.get('email'),
                request.form.get('password'),
                request.form.get('role', 'tenant'),
            )
        except AuthenticationFailure as e:
            flash(str(e), "danger")
            return render_template('register.html', title='register')
        auth.login_principal(user)
        flash("Account created.", "success")
        return redirect(url_for(auth.dashboard_endpoint(user.role)))
    return render_template('register.html', title='register')


@public_bp.route('/logout')
def logout():
    auth.logout_principal()
    flash("Logged out.", "info")
    return redirect(url_for('public.index'))


# -----------------
# Google OAuth
# -----------------
def _identity_provider():
    return current_app.extensions['identity_provider']


@public_bp.route('/auth/google')
def google_login():
    state = secrets.token_urlsafe(32)
    session['oauth_state'] = state
    try:
        url = _identity_provider().authorization_url(
            state, redirect_uri=url_for('public.google_callback', _external=True))
    except AuthenticationFailure as e:
        logger.warning("Google sign-in unavailable: %s", e)
        flash("Google sign-in is not available right now.", "danger")
        return redirect(url_for('public.resident_login'))
    return redirect(url)


@public_bp.route('/auth/google/callback')
def google_callback():
    stored_state = session.pop('oauth_state', None)
    if not stored_state or request.args.get('state') != stored_state or 'error' in request.args:
        logger.warning("Google callback rejected (state mismatch or provider error %s)",
                       request.args.get('error'))
        flash("Google sign-in failed.", "danger")
        return redirect(url_for('public.resident_login'))
    try:
        profile = _identity_provider().exchange(
            request.url, stored_state, redirect_uri=url_for('public.google_callback', _external=True))
    except AuthenticationFailure:
        flash("Google sign-in failed.", "danger")
        return redirect(url_for('public.resident_login'))

    user = auth.find_or_create_user(profile)
    auth.login_principal(user)
    return redirect(url_for(auth.dashboard_endpoint(user.role)))


@public_bp.app_context_processor
def inject_principal():
    return {'principal': g.get('principal')}
