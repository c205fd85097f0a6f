import logging
from decimal import Decimal, InvalidOperation

from flask import Blueprint, abort, current_app, flash, redirect, render_template, request, url_for

import applications
import messaging
from auth import role_required
from errors import InvalidDecision, NotFound, RecipientNotFound
from models import Property, db
from routes.dashboard import mailbox_view, profile_view

logger = logging.getLogger(__name__)

landlord_bp = Blueprint('landlord', __name__, url_prefix='/landlord-dashboard')

ALLOWED_IMAGE_TYPES = {'image/png', 'image/jpeg', 'image/gif', 'image/webp'}


@landlord_bp.route('/')
@role_required('landlord')
def index(principal):
    return render_template(
        'landlord/dashboard.html',
        title='landlord dashboard',
        properties=Property.query.filter_by(landlord_id=principal.id).all(),
        tenants=messaging.linked_tenants(principal.id),
        pending=[a for a in applications.applications_for_landlord(principal.id) if a.status == 'Pending'],
        messages=messaging.list_messages(principal.id, limit=5),
    )


@landlord_bp.route('/profile', methods=['GET', 'POST'])
@role_required('landlord')
def profile(principal):
    return profile_view(principal, 'landlord.profile')


@landlord_bp.route('/mailbox', methods=['GET', 'POST'])
@role_required('landlord')
def mailbox(principal):
    return mailbox_view(principal, 'landlord.mailbox')


def _read_image():
    upload = request.files.get('image')
    if upload is None or not upload.filename:
        return None, None
    if upload.mimetype not in ALLOWED_IMAGE_TYPES:
        raise ValueError("Images must be PNG, JPEG, GIF or WebP")
    data = upload.read()
    if len(data) > current_app.config['MAX_IMAGE_BYTES']:
        raise ValueError("Image is too large")
    return data, upload.mimetype


def _property_fields(form):
    address = form.get('address', '').strip()
    if not address:
        raise ValueError("Address is required")
    try:
        price = Decimal(form.get('price') or 0)
    except InvalidOperation:
        raise ValueError("Price must be a number")
    if not price.is_finite():
        raise ValueError("Price must be a number")
    if price < 0:
        raise ValueError("Price must not be negative")
    try:
        bedrooms = int(form.get('bedrooms') or 0)
        bathrooms = int(form.get('bathrooms') or 0)
    except ValueError:
        raise ValueError("Bedrooms and bathrooms must be whole numbers")
    return address, price, bedrooms, bathrooms


@landlord_bp.route('/properties', methods=['GET', 'POST'])
@role_required('landlord')
def properties(principal):
    if request.method == 'POST':
        try:
            fields = _property_fields(request.form)
            image, mimetype = _read_image()
        except ValueError as e:
            flash(str(e), "danger")
            return redirect(url_for('landlord.properties'))
        address, price, bedrooms, bathrooms = fields
        prop = Property(landlord_id=principal.id, address=address, price=price,
                        bedrooms=bedrooms, bathrooms=bathrooms, image=image, image_mimetype=mimetype)
        db.session.add(prop)
        db.session.commit()
        logger.info("Landlord %s added property %s", principal.id, prop.id)
        flash("Property added.", "success")
        return redirect(url_for('landlord.properties'))
    rows = Property.query.filter_by(landlord_id=principal.id).order_by(Property.created_at.desc()).all()
    return render_template('landlord/properties.html', title='my properties', properties=rows)


@landlord_bp.route('/tenants', methods=['GET', 'POST'])
@role_required('landlord')
def tenants(principal):
    if request.method == 'POST':
        try:
            tenant = messaging.link_tenant(principal.id, request.form.get('email'))
        except RecipientNotFound as e:
            flash(f"No user found with email {e.email}.", "danger")
        else:
            flash(f"{tenant.name or tenant.email} is now one of your tenants.", "success")
        return redirect(url_for('landlord.tenants'))
    return render_template('landlord/tenants.html', title='my tenants',
                           tenants=messaging.linked_tenants(principal.id))


@landlord_bp.route('/applications')
@role_required('landlord')
def landlord_applications(principal):
    return render_template('landlord/applications.html', title='applications',
                           applications=applications.applications_for_landlord(principal.id))


@landlord_bp.route('/applications/<int:application_id>/decide', methods=['POST'])
@role_required('landlord')
def decide(principal, application_id):
    try:
        application = applications.decide(application_id, request.form.get('decision'))
    except NotFound:
        abort(404)
    except InvalidDecision:
        flash("Choose approve or reject.", "danger")
    else:
        flash(f"Application {application.application_id} {application.status.lower()}.", "success")
    return redirect(url_for('landlord.landlord_applications'))
