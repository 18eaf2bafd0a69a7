"""Best-effort notification email through Resend."""

import html
import logging

import resend

from beautybook.core import config

logger = logging.getLogger(__name__)

resend.api_key = config.RESEND_API_KEY


def send_email(to: str, subject: str, html: str) -> bool:
    """Send one email. Failures are logged and reported as ``False``."""
    if not config.RESEND_API_KEY:
        logger.warning('RESEND_API_KEY not set; skipping email "%s" to %s', subject, to)
        return False

    try:
        resend.Emails.send({
            'from': config.EMAIL_FROM_ADDRESS,
            'to': [to],
            'subject': subject,
            'html': html,
        })
    except Exception:
        logger.exception('Failed to send email "%s" to %s', subject, to)
        return False

    logger.info('Sent email "%s" to %s', subject, to)
    return True


def send_artist_decision_email(artist, approved: bool, reason: str | None = None) -> bool:
    name = html.escape(artist.first_name or artist.email, quote=True)
    if approved:
        subject = 'Your BeautyBook artist profile is approved'
        body = (
            f'<p>Hi {name},</p>'
            '<p>Your artist profile has been approved. Clients can now find you and book your services.</p>'
        )
    else:
        subject = 'Update on your BeautyBook artist application'
        body = f'<p>Hi {name},</p><p>We were not able to approve your artist profile at this time.</p>'
        if reason:
            body += f'<p>Reason: {html.escape(reason, quote=True)}</p>'

    return send_email(artist.email, subject, body)
