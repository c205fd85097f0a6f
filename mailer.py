import logging
import smtplib
from email.message import EmailMessage

from errors import MailDeliveryError

logger = logging.getLogger(__name__)


def send_contact_email(config, name, email, message):
    """Relay a contact-form submission to the portal's inbox."""
    server = config.get('MAIL_SERVER')
    username = config.get('MAIL_USERNAME')
    password = config.get('MAIL_PASSWORD')
    recipient = config.get('CONTACT_RECIPIENT') or username
    if not server or not username or not recipient:
        raise MailDeliveryError("Mail relay is not configured")
    if not email or not message:
        raise ValueError("Email and message are required")

    msg = EmailMessage()
    msg['Subject'] = f"Contact form: {name or email}"
    msg['From'] = username
    msg['To'] = recipient
    msg['Reply-To'] = email
    msg.set_content(f"From: {name} <{email}>\n\n{message}")

    try:
        with smtplib.SMTP(server, config.get('MAIL_PORT', 587), timeout=config.get('OUTBOUND_TIMEOUT', 10)) as smtp:
            if config.get('MAIL_USE_TLS', True):
                smtp.starttls()
            if password:
                smtp.login(username, password)
            smtp.send_message(msg)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Contact email from %s not sent: %s", email, e)
        raise MailDeliveryError("Could not send your message")
    logger.info("Contact email from %s relayed", email)
