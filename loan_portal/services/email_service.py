import logging
from datetime import datetime

from flask import current_app, render_template_string

from loan_portal.utils.mailer import send_email

logger = logging.getLogger(__name__)

LOGIN_OTP_TEMPLATE = """
<p>Hello {{ full_name or "there" }},</p>
<p>Your {{ company_name }} login code is <strong>{{ otp }}</strong>.</p>
<p>It expires in {{ expires_in_minutes }} minutes. If you did not try to sign in,
you can ignore this message.</p>
<p>&copy; {{ year }} {{ company_name }}</p>
"""


def send_login_otp_email(user, otp):
    """Email the one-time login code. Delivery failures are logged, not raised."""
    company_name = current_app.config["EMAIL_FROM_NAME"]
    try:
        html = render_template_string(
            LOGIN_OTP_TEMPLATE,
            full_name=user.full_name,
            otp=otp,
            expires_in_minutes=current_app.config["OTP_EXPIRY_MINUTES"],
            company_name=company_name,
            year=datetime.utcnow().year,
        )
        send_email(
            to=user.email,
            subject=f"Your {company_name} login code",
            html=html,
        )
        logger.info("Login OTP email sent to user_id=%s", user.id)
        return True
    except Exception as e:
        logger.error("Failed to send OTP email to user_id=%s: %s", user.id, e)
        return False
