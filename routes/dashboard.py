"""View logic shared by the tenant and landlord dashboards."""
from flask import flash, redirect, render_template, request, url_for

import auth
import messaging
from errors import NotFound, RecipientNotFound
from models import ROLES


def profile_view(principal, endpoint):
    if request.method == 'POST':
        role = request.form.get('role', principal.role)
        if role not in ROLES:
            flash("Unknown account type.", "danger")
            return redirect(url_for(endpoint))
        try:
            user = auth.update_profile(principal.id, request.form.get('name'), role)
        except ValueError as e:
            flash(str(e), "danger")
            return redirect(url_for(endpoint))
        flash("Profile updated.", "success")
        # A role change moves the user to the other dashboard
        return redirect(url_for(auth.dashboard_endpoint(user.role) if user.role != principal.role else endpoint))
    return render_template('dashboard/profile.html', title='profile', user=principal, roles=ROLES)


def mailbox_view(principal, endpoint):
    error = None
    form = {}
    if request.method == 'POST':
        form = {
            'recipient': request.form.get('recipient', ''),
            'subject': request.form.get('subject', ''),
            'content': request.form.get('content', ''),
        }
        try:
            sent = messaging.send(principal.id, form['recipient'], form['subject'], form['content'])
        except RecipientNotFound as e:
            error = f"No user found with email {e.email}."
        except (NotFound, ValueError) as e:
            error = str(e)
        else:
            if sent:
                flash(f"Message sent to {len(sent)} recipient(s).", "success")
            else:
                flash("There was nobody to send that message to.", "warning")
            return redirect(url_for(endpoint))
    messages = messaging.list_messages(principal.id)
    return render_template('dashboard/mailbox.html', title='mailbox', messages=messages,
                           error=error, form=form, allow_all=principal.role == 'landlord')
