import logging
import smtplib
from email.message import EmailMessage

from flask import current_app

logger = logging.getLogger(__name__)

OTP_SUBJECT = "Your OTP for Account Verification"

OTP_TEMPLATE = """\
<div style="font-family: Arial, 'Helvetica Neue', Helvetica, sans-serif; font-size: 16px; color: #333; line-height: 1.6;">
    <h2 style="color: #0056b3;">Account Verification Required</h2>
    <p>Thank you for starting the registration process. Please use the following One-Time Password (OTP) to complete your registration:</p>
    <p style="background-color: #f0f0f0; border-left: 5px solid #0056b3; padding: 15px; font-size: 24px; font-weight: bold; letter-spacing: 2px; text-align: center;">
        {otp}
    </p>
    <p>This OTP is valid for the next <strong>{minutes} minutes</strong>.</p>
    <hr style="border: none; border-top: 1px solid #eee;" />
    <p style="font-size: 12px; color: #888;">If you did not request this, please disregard this email.</p>
</div>
"""


class MailDeliveryError(Exception):
    pass


def build_otp_message(sender, to, otp, minutes=10):
    message = EmailMessage()
    message["Subject"] = OTP_SUBJECT
    message["From"] = sender
    message["To"] = to
    message.set_content(f"Your OTP is {otp}. It is valid for the next {minutes} minutes.")
    message.add_alternative(OTP_TEMPLATE.format(otp=otp, minutes=minutes), subtype="html")
    return message


def send_otp_email(to, otp):
    config = current_app.config
    minutes = max(1, config.get("OTP_TTL_SECONDS", 600) // 60)

    if config.get("MAIL_SUPPRESS_SEND"):
        logger.info(f"Mail sending suppressed, OTP for {to} is {otp}")
        return

    message = build_otp_message(config.get("MAIL_SENDER"), to, otp, minutes)
    try:
        with smtplib.SMTP(config["MAIL_SERVER"], config["MAIL_PORT"], timeout=10) as smtp:
            if config.get("MAIL_USE_TLS"):
                smtp.starttls()
            if config.get("MAIL_USERNAME"):
                smtp.login(config["MAIL_USERNAME"], config["MAIL_PASSWORD"])
            smtp.send_message(message)
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Error sending OTP email to {to}: {e}")
        raise MailDeliveryError("Could not send OTP email.") from e

    logger.info(f"OTP email sent successfully to: {to}")
