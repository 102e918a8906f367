import logging
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid
from flask import current_app

logger = logging.getLogger(__name__)


def send_email(to: str, subject: str, html: str):
    cfg = current_app.config
    msg = EmailMessage()
    msg["From"] = f"{cfg['EMAIL_FROM_NAME']} <{cfg['EMAIL_FROM_ADDRESS']}>"
    msg["To"] = to
    msg["Subject"] = subject
    msg["Reply-To"] = cfg["EMAIL_FROM_ADDRESS"]
    msg["Message-ID"] = make_msgid()

    msg.set_content("This is an automated message. Please view in HTML.")
    msg.add_alternative(html, subtype="html")

    logger.debug("Connecting to SMTP %s:%s", cfg["SMTP_HOST"], cfg["SMTP_PORT"])

    with smtplib.SMTP_SSL(cfg["SMTP_HOST"], cfg["SMTP_PORT"], timeout=15) as server:
        if cfg.get("SMTP_USERNAME"):
            server.login(cfg["SMTP_USERNAME"], cfg["SMTP_PASSWORD"])
        server.send_message(msg)

    logger.info("Email sent to %s", to)
