import asyncio
import base64
import logging
import smtplib
from datetime import datetime
from email.mime.image import MIMEImage
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from eventease import constant_file

logger = logging.getLogger(__name__)


async def send_ticket_email(email: str, user_name: str, event_title: str,
                            event_location: str, start_date: datetime,
                            ticket_id: str, qr_data: str) -> bool:
    """Mail the ticket with its QR code inlined. Returns False instead of raising."""
    if not constant_file.send_emails:
        logger.info(f"Mail disabled, not sending ticket {ticket_id} to {email}")
        return False

    def send_blocking_email():
        try:
            message = MIMEMultipart("related")
            message['From'] = constant_file.eventease_email
            message['To'] = email
            message['Subject'] = f"{event_title} - Your Ticket {ticket_id}"

            # HTML with embedded QR code via CID
            html_body = f"""
            <html>
            <body style="font-family: 'Segoe UI', Arial, sans-serif; background-color: #f4f6f9; color: #333;">
                <div style="background-color: #fff; border: 2px solid #2563eb; border-radius: 15px;
                            padding: 25px; margin: 30px auto; width: 600px;">
                    <h2 style="text-align: center; color: #2563eb;">{event_title} - Event Ticket</h2>
                    <p>Hi <b>{user_name}</b>,</p>
                    <p>Your registration is confirmed. Ticket <b>{ticket_id}</b>.</p>
                    <p><b>Location:</b> {event_location}<br>
                       <b>Date:</b> {start_date:%A, %B %d, %Y}<br>
                       <b>Time:</b> {start_date:%I:%M %p} UTC</p>
                    <div style="text-align: center; margin: 20px 0;">
                        <img src="cid:qrimage" alt="QR Code {ticket_id}" width="200" height="200"/>
                    </div>
                    <p style="text-align: center; font-size: 14px; color: #666;">
                        Please show this ticket at the event entrance.
                    </p>
                </div>
            </body>
            </html>
            """

            alt = MIMEMultipart("alternative")
            alt.attach(MIMEText(html_body, 'html'))
            message.attach(alt)

            # Decode base64 QR and attach as inline image
            img = MIMEImage(base64.b64decode(qr_data), name=f"{ticket_id}.png")
            img.add_header('Content-ID', '<qrimage>')
            img.add_header('Content-Disposition', 'inline', filename=f"{ticket_id}.png")
            message.attach(img)

            server = smtplib.SMTP(constant_file.smtp_server, constant_file.smtp_port)
            server.starttls()
            server.login(constant_file.eventease_email, constant_file.eventease_email_password)
            server.sendmail(constant_file.eventease_email, email, message.as_string())
            server.quit()

            logger.info(f"Ticket {ticket_id} sent to {email}")
            return True

        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP error while sending ticket {ticket_id}: {e}")
            return False

    return await asyncio.to_thread(send_blocking_email)
