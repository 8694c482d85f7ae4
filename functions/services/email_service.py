import os
import uuid
import boto3
import logging
from datetime import datetime, timedelta
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.mime.application import MIMEApplication

from .secret_manager_service import get_aws_credentials

# Set up a module-level logger
log = logging.getLogger(__name__)

DEFAULT_SENDER_EMAIL = "no-reply@rentdesk.app"
TEST_RECIPIENT_EMAIL = "qa@rentdesk.app"
CODE_EXPIRY_MINUTES = 15


def _resolve_recipient(recipient_email: str) -> str:
    # --- Safety net: never mail real users from a test deployment ---
    is_testing = os.environ.get("TESTING_MODE", "true").lower() == "true"
    if is_testing:
        log.warning(f"TESTING_MODE is active. Redirecting email from {recipient_email} to {TEST_RECIPIENT_EMAIL}")
        return TEST_RECIPIENT_EMAIL
    return recipient_email


def send_email(recipient_email: str, subject: str, html_body: str, text_body: str,
               attachment: bytes = None, attachment_name: str = None) -> bool:
    """
    Sends one email through Amazon SES using credentials held in Secret Manager.
    Returns True if successful, False otherwise.
    """
    if not recipient_email:
        log.error("No recipient email given. Skipping email.")
        return False

    aws_region = os.environ.get("AWS_REGION", "us-east-1")
    sender_email = os.environ.get("SENDER_EMAIL", DEFAULT_SENDER_EMAIL)
    recipient_email = _resolve_recipient(recipient_email)

    credentials = get_aws_credentials()
    if credentials is None:
        log.error("Failed to retrieve AWS credentials from Secret Manager.")
        return False
    aws_access_key_id, aws_secret_access_key = credentials

    try:
        ses_client = boto3.client(
            'ses',
            region_name=aws_region,
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key
        )

        # Create the root message and set the headers.
        msg = MIMEMultipart('mixed')
        msg['Subject'] = subject
        msg['From'] = sender_email
        msg['To'] = recipient_email
        msg['X-Entity-Ref-ID'] = str(uuid.uuid4())

        # Create an 'alternative' part for the plain text and HTML.
        msg_alternative = MIMEMultipart('alternative')
        msg.attach(msg_alternative)
        msg_alternative.attach(MIMEText(text_body, 'plain'))
        msg_alternative.attach(MIMEText(html_body, 'html'))

        if attachment:
            name = attachment_name or 'attachment.pdf'
            part = MIMEApplication(attachment, Name=name)
            part['Content-Disposition'] = f'attachment; filename="{name}"'
            msg.attach(part)

        ses_client.send_raw_email(
            Source=sender_email,
            Destinations=[recipient_email],
            RawMessage={'Data': msg.as_string()}
        )

        log.info(f"Successfully sent '{subject}' to {recipient_email}")
        return True
    except Exception as e:
        log.error(f"An unexpected error occurred while sending email: {e}")
        return False


def send_verification_email(request_data: dict, template_env) -> bool:
    """
    Sends the six-digit sign-up verification code.
    Expects a validated request with email, code and optional firstName/lastName.
    """
    email = request_data.get('email')
    code = str(request_data.get('code'))
    first_name = request_data.get('firstName') or 'User'
    last_name = request_data.get('lastName')
    full_name = f"{first_name} {last_name}" if request_data.get('firstName') and last_name else first_name

    generated_at = datetime.now()
    expires_at = generated_at + timedelta(minutes=CODE_EXPIRY_MINUTES)

    template = template_env.get_template('verification_email.html')
    html_body = template.render(
        full_name=full_name,
        code=code,
        email=email,
        expiry_minutes=CODE_EXPIRY_MINUTES,
        generated_at=generated_at.strftime('%H:%M'),
        expires_at=expires_at.strftime('%H:%M'),
        year=generated_at.year,
    )
    # Plain text version as a fallback
    text_body = (
        f"Verify Your RentDesk Account\n\n"
        f"Hi {full_name},\n\n"
        f"Thank you for signing up for RentDesk! Please verify your email address using the code below.\n\n"
        f"Your verification code: {code}\n\n"
        f"This code expires in {CODE_EXPIRY_MINUTES} minutes "
        f"(generated at {generated_at.strftime('%H:%M')}, expires at {expires_at.strftime('%H:%M')}).\n\n"
        f"Security notice: Never share this code with anyone.\n\n"
        f"If you didn't create a RentDesk account, you can safely ignore this email.\n\n"
        f"This email was sent to {email}."
    )

    subject = f"Verify your RentDesk account - Your code: {code}"
    return send_email(email, subject, html_body, text_body)


def send_receipt_email(recipient_email: str, tenant_name: str, receipt_url: str, receipt_pdf: bytes,
                       template_env) -> bool:
    """Emails a payment receipt to the tenant with the PDF attached."""
    template = template_env.get_template('receipt_email.html')
    html_body = template.render(name=tenant_name, receipt_url=receipt_url)
    text_body = (
        f"Hi {tenant_name},\n\n"
        f"Thank you for your payment. Your receipt is attached and also available at:\n{receipt_url}\n\n"
        f"The RentDesk Team"
    )
    return send_email(recipient_email, "Your Payment Receipt", html_body, text_body,
                      attachment=receipt_pdf, attachment_name='receipt.pdf')
