"""
Email Service using custom SMTP or Resend (fallback)
Appointment notifications rendered from MJML templates
"""

import logging
import smtplib
import ssl
from datetime import datetime, timezone
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import (
    EMAIL_FROM_ADDRESS,
    FRONTEND_URL,
    RESEND_API_KEY,
    SMTP_HOST,
    SMTP_PASSWORD,
    SMTP_PORT,
    SMTP_USE_TLS,
    SMTP_USERNAME,
)
from .email_templates import (
    appointment_update_template,
    customer_response_template,
    new_appointment_request_template,
    time_proposal_template,
)

logger = logging.getLogger(__name__)

# Initialize Resend as fallback
resend.api_key = RESEND_API_KEY


def format_viewing_time(value: datetime) -> str:
    """Human readable viewing time, e.g. 'Tuesday, March 11, 2025 at 2:00 PM'"""
    return value.strftime("%A, %B %d, %Y at %I:%M %p").replace(" 0", " ")


def send_via_smtp(
    to: Union[str, list[str]],
    subject: str,
    html_content: str,
    from_address: str,
) -> dict:
    """Send email via the configured SMTP server"""
    try:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = from_address
        msg["To"] = to if isinstance(to, str) else ", ".join(to)
        msg.attach(MIMEText(html_content, "html"))

        recipients = [to] if isinstance(to, str) else to

        if SMTP_PORT == 465:
            context = ssl.create_default_context()
            server = smtplib.SMTP_SSL(SMTP_HOST, SMTP_PORT, context=context, timeout=30)
        else:
            server = smtplib.SMTP(SMTP_HOST, SMTP_PORT, timeout=30)
            if SMTP_USE_TLS:
                context = ssl.create_default_context()
                server.starttls(context=context)

        if SMTP_USERNAME:
            server.login(SMTP_USERNAME, SMTP_PASSWORD or "")
        server.sendmail(from_address.split("<")[-1].rstrip(">"), recipients, msg.as_string())
        server.quit()

        logger.info(f"✅ SMTP email sent successfully via {SMTP_HOST}")
        return {"id": f"smtp-{datetime.now(timezone.utc).timestamp()}", "success": True}

    except Exception as e:
        logger.error(f"❌ SMTP send failed: {e}")
        raise Exception(f"SMTP failed: {str(e)}") from e


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
        if isinstance(result, dict):
            if result.get("errors"):
                logger.warning(f"MJML compilation warnings: {result['errors']}")
            return result.get("html", "")
        html = getattr(result, "html", None)
        if html is not None:
            return html
        return str(result)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email using SMTP (if configured) or Resend (fallback)

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address

    Returns:
        Send response dict
    """
    html_content = compile_mjml_to_html(mjml_content)

    recipients = [to] if isinstance(to, str) else to
    sender = from_address or EMAIL_FROM_ADDRESS

    if SMTP_HOST:
        try:
            logger.info(f"📧 Sending email via SMTP: {SMTP_HOST}")
            return send_via_smtp(
                to=recipients, subject=subject, html_content=html_content, from_address=sender
            )
        except Exception as e:
            logger.warning(f"⚠️ SMTP failed, falling back to Resend: {e}")

    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing and no SMTP host")
        raise Exception("Email service not configured")

    try:
        logger.info(f"📧 Sending email via Resend to: {to}")
        response = resend.Emails.send(
            {"from": sender, "to": recipients, "subject": subject, "html": html_content}
        )
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


# ============================================
# Appointment Emails
# ============================================


async def send_new_appointment_notification(
    agent_email: str,
    agent_name: str,
    customer_name: str,
    customer_email: str,
    customer_phone: str,
    property_address: str,
    property_id: str,
    appointment_times: list[dict],
    appointment_id: str,
    message: Optional[str] = None,
) -> dict:
    """Notify the property's agent about a new viewing request"""
    mjml_content = new_appointment_request_template(
        agent_name=agent_name,
        customer_name=customer_name,
        customer_email=customer_email,
        customer_phone=customer_phone,
        property_address=property_address,
        property_id=property_id,
        appointment_times=appointment_times,
        message=message,
        dashboard_url=f"{FRONTEND_URL}/admin/appointments?highlight={appointment_id}",
    )
    return await send_email(
        to=agent_email,
        subject=f"New Appointment Request - {property_address}",
        mjml_content=mjml_content,
    )


async def send_time_proposal_notification(
    customer_email: str,
    customer_name: str,
    appointment_id: str,
    property_address: str,
    proposed_datetime: datetime,
    agent_name: str,
    agent_email: str,
) -> dict:
    """Send the agent's proposed viewing time to the customer"""
    respond_url = f"{FRONTEND_URL}/api/appointments/{appointment_id}/respond"
    mjml_content = time_proposal_template(
        customer_name=customer_name,
        agent_name=agent_name,
        agent_email=agent_email,
        property_address=property_address,
        proposed_time=format_viewing_time(proposed_datetime),
        accept_url=f"{respond_url}?action=accept",
        decline_url=f"{respond_url}?action=decline",
    )
    return await send_email(
        to=customer_email,
        subject=f"Appointment Time Proposal - {property_address}",
        mjml_content=mjml_content,
    )


async def send_appointment_update_notification(
    customer_email: str, customer_name: str, appointments: list[dict]
) -> dict:
    """
    Send a summary of updated appointments to a customer.

    Each item carries property_address, new_datetime, status and agent_name.
    """
    items = [
        {
            "property_address": item["property_address"],
            "new_time": format_viewing_time(item["new_datetime"]),
            "status": item["status"],
            "agent_name": item["agent_name"],
        }
        for item in appointments
    ]
    count = len(items)
    return await send_email(
        to=customer_email,
        subject=f"Appointment Update - {count} appointment{'s' if count > 1 else ''}",
        mjml_content=appointment_update_template(customer_name, items),
    )


async def send_customer_response_notification(
    agent_email: str,
    agent_name: str,
    customer_name: str,
    customer_email: str,
    property_address: str,
    proposed_datetime: datetime,
    accepted: bool,
) -> dict:
    """Tell the agent whether the customer accepted or declined the proposed time"""
    status_text = "Accepted" if accepted else "Declined"
    mjml_content = customer_response_template(
        agent_name=agent_name,
        customer_name=customer_name,
        customer_email=customer_email,
        property_address=property_address,
        proposed_time=format_viewing_time(proposed_datetime),
        accepted=accepted,
    )
    return await send_email(
        to=agent_email,
        subject=f"Customer {status_text} Appointment - {property_address}",
        mjml_content=mjml_content,
    )
