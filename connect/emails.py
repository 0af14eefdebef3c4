"""
Transactional emails: verification links and one-time passwords.

Messages go out as multipart (plain text plus HTML) through the configured
EMAIL_BACKEND, which is the console backend in development.
"""

import logging
from datetime import datetime

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.template.loader import render_to_string
from django.utils.html import strip_tags


logger = logging.getLogger(__name__)

SITE_NAME = 'ConnectUp'


def verification_link(token):
    return f"{settings.FRONTEND_BASE_URL}/verify/{token}/email"


def _send(subject, html_message, to, ref_id=None):
    headers = {'X-Mailer': 'Django'}
    if ref_id is not None:
        headers['X-Entity-Ref-ID'] = str(ref_id)

    email_msg = EmailMultiAlternatives(
        subject=subject,
        body=strip_tags(html_message),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[to],
        reply_to=[settings.DEFAULT_FROM_EMAIL],
        headers=headers,
    )
    email_msg.attach_alternative(html_message, "text/html")
    email_msg.send(fail_silently=False)


def send_verification_email(user, token):
    link = verification_link(token)
    html_message = render_to_string('connect/emails/verification.html', {
        'name': user.name or user.email,
        'link': link,
        'site_name': SITE_NAME,
        'year': datetime.now().year,
    })
    _send(f"Verify your {SITE_NAME} email", html_message, user.email, ref_id=user.id)
    logger.info(f"send_verification_email: sent to user {user.id}")
    return link


def send_otp_email(email, code):
    html_message = render_to_string('connect/emails/otp.html', {
        'code': code,
        'minutes': settings.OTP_EXPIRY_MINUTES,
        'site_name': SITE_NAME,
    })
    _send(f"{SITE_NAME} password reset code", html_message, email)
    logger.info(f"send_otp_email: sent to {email}")
