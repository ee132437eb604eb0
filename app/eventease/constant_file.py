from dotenv import load_dotenv
import os

# Load environment variables from .env
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./eventease.db")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if origin.strip()
]

# ------------------ Mail ------------------
eventease_email = os.getenv("EVENTEASE_EMAIL", "")
eventease_email_password = os.getenv("EVENTEASE_EMAIL_PASSWORD", "")
smtp_server = os.getenv("SMTP_SERVER", "smtp.gmail.com")
smtp_port = int(os.getenv("SMTP_PORT", "587"))
send_emails = os.getenv("SEND_EMAILS", "false").lower() == "true"

password_reset_subject = "EventEase password reset code"

# ------------------ Auth ------------------
otp_ttl_minutes = int(os.getenv("OTP_TTL_MINUTES", "5"))
otp_max_attempts = int(os.getenv("OTP_MAX_ATTEMPTS", "5"))
session_ttl_hours = int(os.getenv("SESSION_TTL_HOURS", "168"))
password_hash_iterations = int(os.getenv("PASSWORD_HASH_ITERATIONS", "260000"))
