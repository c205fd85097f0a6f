from flask import Blueprint, abort, current_app, flash, redirect, render_template, request, url_for

import applications
import messaging
from auth import role_required
from errors import NotFound, PaymentError, PaymentTimeout
from models import Property
from routes.dashboard import mailbox_view, profile_view

tenant_bp = Blueprint('tenant', __name__, url_prefix='/tenant-dashboard')


def _payment_proxy():
    return current_app.extensions['payment_proxy']


@tenant_bp.route('/')
@role_required('tenant')
def index(principal):
    return render_template(
        'tenant/dashboard.html',
        title='tenant dashboard',
        messages=messaging.list_messages(principal.id, limit=5),
        applications=applications.applications_for_tenant(principal.id),
        landlords=messaging.linked_landlords(principal.id),
    )


@tenant_bp.route('/profile', methods=['GET', 'POST'])
@role_required('tenant')
def profile(principal):
    return profile_view(principal, 'tenant.profile')


@tenant_bp.route('/mailbox', methods=['GET', 'POST'])
@role_required('tenant')
def mailbox(principal):
    return mailbox_view(principal, 'tenant.mailbox')


@tenant_bp.route('/properties')
@role_required('tenant')
def properties(principal):
    rows = Property.query.order_by(Property.created_at.desc()).all()
    return render_template('tenant/properties.html', title='properties', properties=rows)


@tenant_bp.route('/applications', methods=['GET', 'POST'])
@role_required('tenant')
def my_applications(principal):
    if request.method == 'POST':
        try:
            property_id = int(request.form.get('property_id', ''))
        except ValueError:
            abort(404)
        try:
            applications.submit(principal.id, property_id, request.form)
        except NotFound:
            abort(404)
        except ValueError as e:
            flash(str(e), "danger")
            return redirect(url_for('public.rental_application'))
        flash("Application submitted.", "success")
        return redirect(url_for('tenant.my_applications'))
    return render_template('tenant/applications.html', title='my applications',
                           applications=applications.applications_for_tenant(principal.id))


@tenant_bp.route('/pay-rent', methods=['GET', 'POST'])
@role_required('tenant')
def pay_rent(principal):
    proxy = _payment_proxy()
    if request.method == 'POST':
        card = {
            'number': request.form.get('card_number', '').replace(' ', ''),
            'exp_month': request.form.get('exp_month'),
            'exp_year': request.form.get('exp_year'),
            'cvc': request.form.get('cvc'),
            'name': request.form.get('card_name'),
            'customer': principal.email,
        }
        try:
            proxy.charge(card, request.form.get('amount'), request.form.get('currency', 'usd'))
        except ValueError as e:
            flash(str(e), "danger")
        except PaymentTimeout:
            flash("The payment service timed out. Please try again later.", "danger")
        except PaymentError:
            flash("There was a payment processing error.", "danger")
        else:
            flash("Payment successful.", "success")
        return redirect(url_for('tenant.pay_rent'))
    return render_template('tenant/pay_rent.html', title='pay rent',
                           history=proxy.fetch_history(principal.email))
