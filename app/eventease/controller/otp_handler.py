import asyncio
import logging
import secrets
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from eventease import constant_file

logger = logging.getLogger(__name__)


def generate_otp():
    return ''.join(secrets.choice('0123456789') for _ in range(6))


async def send_email(email: str, otp: str) -> bool:
    if not constant_file.send_emails:
        logger.info(f"Mail disabled, not sending password reset code to {email}")
        return False

    def send_blocking_email():
        try:
            message = MIMEMultipart()
            message['From'] = constant_file.eventease_email
            message['To'] = email
            message['Subject'] = constant_file.password_reset_subject

            email_message = (
                f"Your password reset code is <b>{otp}</b>. "
                f"It expires in {constant_file.otp_ttl_minutes} minutes."
            )
            message.attach(MIMEText(email_message, 'html'))

            server = smtplib.SMTP(constant_file.smtp_server, constant_file.smtp_port)
            server.starttls()
            server.login(constant_file.eventease_email, constant_file.eventease_email_password)
            server.sendmail(constant_file.eventease_email, email, message.as_string())
            server.quit()
            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP error while sending password reset code: {e}")
            return False

    # Run the blocking SMTP exchange off the event loop
    return await asyncio.to_thread(send_blocking_email)
