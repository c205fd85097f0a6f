import logging
from datetime import datetime
from decimal import Decimal, InvalidOperation

from errors import InvalidDecision, NotFound
from models import Property, PropertyApplication, db

logger = logging.getLogger(__name__)

DECISIONS = {'approved': 'Approved', 'rejected': 'Rejected'}

TEXT_FIELDS = ('full_name', 'email', 'phone', 'current_address', 'employer', 'message')


def _clean_fields(fields):
    data = {}
    for name in TEXT_FIELDS:
        value = (fields.get(name) or '').strip()
        data[name] = value or None
    if not data['full_name'] or not data['email']:
        raise ValueError("Full name and email are required")

    income = fields.get('monthly_income')
    if income not in (None, ''):
        try:
            data['monthly_income'] = Decimal(str(income))
        except InvalidOperation:
            raise ValueError("Monthly income must be a number")
        if not data['monthly_income'].is_finite():
            raise ValueError("Monthly income must be a number")

    occupants = fields.get('occupants')
    if occupants not in (None, ''):
        try:
            data['occupants'] = int(occupants)
        except (TypeError, ValueError):
            raise ValueError("Occupants must be a whole number")

    move_in = fields.get('move_in_date')
    if move_in:
        try:
            data['move_in_date'] = datetime.strptime(move_in, '%Y-%m-%d').date()
        except ValueError:
            raise ValueError("Move-in date must be YYYY-MM-DD")
    return data


def submit(tenant_id, property_id, fields):
    """Create a Pending application. Repeat applications for one property are allowed."""
    if db.session.get(Property, property_id) is None:
        raise NotFound(f"Property {property_id} not found")
    application = PropertyApplication(
        property_id=property_id,
        tenant_id=tenant_id,
        status='Pending',
        **_clean_fields(fields)
    )
    db.session.add(application)
    db.session.commit()
    logger.info("Tenant %s applied for property %s (application %s)",
                tenant_id, property_id, application.application_id)
    return application


def decide(application_id, decision):
    """Set an application's status to Approved or Rejected.

    There is no ownership check and no transition lock: any landlord can
    decide any application, and a later decision overwrites an earlier one.
    """
    status = DECISIONS.get((decision or '').strip().lower())
    if status is None:
        raise InvalidDecision(f"Unknown decision {decision!r}")
    application = db.session.get(PropertyApplication, application_id)
    if application is None:
        raise NotFound(f"Application {application_id} not found")
    application.status = status
    db.session.commit()
    logger.info("Application %s marked %s", application_id, status)
    return application


def applications_for_tenant(tenant_id):
    return (PropertyApplication.query
            .filter_by(tenant_id=tenant_id)
            .order_by(PropertyApplication.application_date.desc())
            .all())


def applications_for_landlord(landlord_id):
    return (PropertyApplication.query
            .join(Property, Property.id == PropertyApplication.property_id)
            .filter(Property.landlord_id == landlord_id)
            .order_by(PropertyApplication.application_date.desc())
            .all())


def all_applications():
    return PropertyApplication.query.order_by(PropertyApplication.application_date.desc()).all()
