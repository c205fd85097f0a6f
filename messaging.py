"""Internal mailbox between users, and the landlord-tenant links it relies on."""
import logging
from datetime import datetime

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from errors import NotFound, RecipientNotFound
from models import MailboxMessage, TenantLandlord, User, db

logger = logging.getLogger(__name__)

ALL_TENANTS = 'all'


def linked_tenants(landlord_id):
    return (User.query
            .join(TenantLandlord, TenantLandlord.tenant_id == User.id)
            .filter(TenantLandlord.landlord_id == landlord_id)
            .order_by(User.name)
            .all())


def linked_landlords(tenant_id):
    return (User.query
            .join(TenantLandlord, TenantLandlord.landlord_id == User.id)
            .filter(TenantLandlord.tenant_id == tenant_id)
            .order_by(User.name)
            .all())


def link_tenant(landlord_id, email):
    """Associate the user with ``email`` to the landlord. Linking twice is a no-op."""
    email = (email or '').strip().lower()
    tenant = User.query.filter_by(email=email).first()
    if tenant is None:
        raise RecipientNotFound(email)
    exists = TenantLandlord.query.filter_by(landlord_id=landlord_id, tenant_id=tenant.id).first()
    if exists:
        return tenant
    db.session.add(TenantLandlord(landlord_id=landlord_id, tenant_id=tenant.id))
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
    logger.info("Landlord %s linked tenant %s", landlord_id, tenant.id)
    return tenant


def _resolve_email(email):
    user = User.query.filter_by(email=email.strip().lower()).first()
    if user is None:
        raise RecipientNotFound(email.strip())
    return user.id


def resolve_recipients(sender_id, recipient):
    """Turn a recipient spec into a list of user ids.

    ``recipient`` may be a user id, an iterable of user ids, an email, a
    comma-separated list of emails, or ``"all"`` for every tenant linked to
    the sender. The sender's role is not checked for ``"all"``.
    """
    if isinstance(recipient, bool):
        raise ValueError("A recipient is required")
    if isinstance(recipient, int):
        if db.session.get(User, recipient) is None:
            raise NotFound(f"User {recipient} not found")
        return [recipient]
    if isinstance(recipient, str):
        if recipient.strip().lower() == ALL_TENANTS:
            return [t.id for t in linked_tenants(sender_id)]
        emails = [e for e in recipient.split(',') if e.strip()]
        if not emails:
            raise ValueError("A recipient is required")
        return [_resolve_email(e) for e in emails]
    ids = list(recipient)
    found = {u.id for u in User.query.filter(User.id.in_(ids)).all()}
    missing = [i for i in ids if i not in found]
    if missing:
        raise NotFound(f"Users {missing} not found")
    return ids


def send(sender_id, recipient, subject, content):
    """Send one message per resolved recipient; returns the new messages.

    Every recipient is resolved before anything is written, so an unknown
    email leaves the mailbox untouched.
    """
    subject = (subject or '').strip()
    content = (content or '').strip()
    if not subject or not content:
        raise ValueError("Subject and message are required")

    receiver_ids = resolve_recipients(sender_id, recipient)
    sent_at = datetime.utcnow()
    messages = []
    for receiver_id in receiver_ids:
        msg = MailboxMessage(sender_id=sender_id, receiver_id=receiver_id,
                             subject=subject, message_content=content, sent_at=sent_at)
        db.session.add(msg)
        messages.append(msg)
    db.session.commit()
    logger.info("User %s sent %d message(s)", sender_id, len(messages))
    return messages


def list_messages(user_id, limit=None):
    query = (MailboxMessage.query
             .filter(or_(MailboxMessage.sender_id == user_id, MailboxMessage.receiver_id == user_id))
             .order_by(MailboxMessage.sent_at.desc(), MailboxMessage.id.desc()))
    if limit is not None:
        query = query.limit(limit)
    return query.all()
