import asyncio
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional

from salon.core.config import settings
from salon.core.config_loader import load_company_config
from salon.core.logger import logger
from salon.database import SessionLocal
from salon.models.db_models import Appointment

# SMTP Configuration
SMTP_SERVER = settings.SMTP_SERVER
SMTP_PORT = settings.SMTP_PORT
SMTP_USERNAME = settings.SMTP_USERNAME
SMTP_PASSWORD = settings.SMTP_PASSWORD

DEFAULT_SUBJECT = "Confirm your appointment"
DEFAULT_TEMPLATE = (
    "Dear {name},\n\n"
    "You booked an appointment at {company_name}. Please confirm it using the link below:\n\n"
    "Treatment: {treatment}\n"
    "Employee: {employee}\n"
    "Date and time: {date} {time}\n\n"
    "{confirmation_url}\n\n"
    "Did not make this appointment? Then you can ignore this email.\n\n"
    "Kind regards,\n{company_name}"
)


@dataclass
class ConfirmationMessage:
    appointment_id: int
    to_email: str
    subject: str
    body: str


def get_notification_config():
    config = load_company_config()
    return config.get("notifications", {})


def confirmation_url(token: str) -> str:
    return f"{settings.BOOKING_BASE_URL.rstrip('/')}/confirm/{token}"


def build_confirmation_message(appointment: Appointment, business_name: str, config: Optional[dict] = None) -> ConfirmationMessage:
    """
    Renders the confirmation email for a freshly booked appointment:
    treatment, employee, date/time and the confirmation link.
    """
    notifications = (config or {}).get("notifications", {})
    values = {
        "name": appointment.client.name,
        "company_name": business_name,
        "treatment": appointment.treatment.name,
        "employee": appointment.employee.full_name,
        "date": appointment.start_time.strftime("%d-%m-%Y"),
        "time": appointment.start_time.strftime("%H:%M"),
        "confirmation_url": confirmation_url(appointment.confirmation_token),
    }

    return ConfirmationMessage(
        appointment_id=appointment.id,
        to_email=appointment.client.email,
        subject=notifications.get("confirmation_subject", DEFAULT_SUBJECT).format(**values),
        body=notifications.get("confirmation_template", DEFAULT_TEMPLATE).format(**values),
    )


def send_email(subject: str, body: str, to_email: str = None) -> bool:
    """
    Sends an email over SMTP with STARTTLS.
    Defaults `to_email` to the owner_email from the company config.
    Returns: True if successful, False otherwise.
    """
    config = load_company_config()
    notif_config = config.get("notifications", {})

    if not notif_config.get("email_enabled", False):
        logger.info("ℹ️ Email notifications are disabled in config.")
        return False

    if not to_email:
        to_email = config.get("owner_email")
        if not to_email:
            logger.error("❌ No recipient email found (owner_email missing in config).")
            return False

    if not SMTP_USERNAME or not SMTP_PASSWORD:
        logger.error("❌ SMTP credentials missing.")
        return False

    try:
        msg = MIMEMultipart()
        msg['From'] = formataddr((config.get("company_name", settings.BUSINESS_NAME), SMTP_USERNAME))
        msg['To'] = to_email
        msg['Subject'] = subject

        msg.attach(MIMEText(body, 'plain', 'utf-8'))

        with smtplib.SMTP(SMTP_SERVER, SMTP_PORT) as server:
            server.starttls()
            server.login(SMTP_USERNAME, SMTP_PASSWORD)
            server.sendmail(SMTP_USERNAME, to_email, msg.as_string())

        logger.info(f"✅ Email sent to {to_email} with subject: '{subject}'")
        return True
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"❌ Failed to send email to {to_email}: {e}")
        return False


def load_confirmation_message(appointment_id: int, session_factory=None) -> Optional[ConfirmationMessage]:
    session_factory = session_factory or SessionLocal
    db = session_factory()
    try:
        appointment = db.get(Appointment, appointment_id)
        if appointment is None or not appointment.confirmation_token:
            # deleted by staff or already confirmed in the meantime
            return None
        config = load_company_config()
        business_name = config.get("company_name", settings.BUSINESS_NAME)
        return build_confirmation_message(appointment, business_name, config)
    finally:
        db.close()


async def dispatch_confirmation(appointment_id: int, session_factory=None, max_attempts: int = None, retry_delay: float = None) -> bool:
    """
    Background task: sends the confirmation email for a committed appointment,
    retrying with exponential backoff. The appointment itself is never changed here.
    """
    max_attempts = max_attempts or settings.NOTIFICATION_MAX_ATTEMPTS
    retry_delay = settings.NOTIFICATION_RETRY_DELAY if retry_delay is None else retry_delay

    if not get_notification_config().get("email_enabled", False):
        logger.info(f"ℹ️ Email notifications are disabled, no confirmation sent for appointment {appointment_id}")
        return False

    message = await asyncio.to_thread(load_confirmation_message, appointment_id, session_factory)
    if message is None:
        logger.warning(f"⚠️ Appointment {appointment_id} no longer awaits confirmation, skipping email")
        return False

    for attempt in range(1, max_attempts + 1):
        if await asyncio.to_thread(send_email, message.subject, message.body, message.to_email):
            return True
        if attempt < max_attempts:
            delay = retry_delay * (2 ** (attempt - 1))
            logger.warning(f"⚠️ Confirmation email for appointment {appointment_id} failed (attempt {attempt}/{max_attempts}), retrying in {delay:.1f}s")
            await asyncio.sleep(delay)

    logger.error(f"❌ Confirmation email for appointment {appointment_id} could not be delivered after {max_attempts} attempts")
    return False
