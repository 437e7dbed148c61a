"""
Email Service using Resend
Provides email functionality using MJML templates for responsive design
"""

import logging
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from .config import ADMIN_EMAIL, EMAIL_FROM_ADDRESS, RESEND_API_KEY
from .email_templates import (
    compliance_driver_alert_template,
    compliance_staff_alert_template,
    inquiry_notification_template,
    proposal_sent_template,
    weekly_marketing_report_template,
)

logger = logging.getLogger(__name__)

resend.api_key = RESEND_API_KEY


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    try:
        result = mjml_to_html(mjml_content)
    except Exception as e:
        logger.error(f"MJML compilation error: {e}")
        raise Exception(f"Failed to compile MJML template: {str(e)}") from e

    if result.errors:
        logger.warning(f"MJML compilation warnings: {result.errors}")
    return result.html


async def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    from_address: Optional[str] = None,
    reply_to: Optional[str] = None,
) -> dict:
    """
    Send an email through Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        from_address: Optional custom from address
        reply_to: Optional reply-to address

    Returns:
        Send response dict
    """
    if not RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing")
        raise Exception("Email service not configured")

    html_content = compile_mjml_to_html(mjml_content)
    recipients = [to] if isinstance(to, str) else to

    try:
        logger.info(f"📧 Sending email via Resend to: {recipients}")
        email_data = {
            "from": from_address or EMAIL_FROM_ADDRESS,
            "to": recipients,
            "subject": subject,
            "html": html_content,
        }
        if reply_to:
            email_data["reply_to"] = reply_to

        response = resend.Emails.send(email_data)
        logger.info(f"✅ Email sent successfully via Resend: {response}")
        return response
    except Exception as e:
        logger.error(f"❌ Email send error to {recipients}: {e}")
        raise Exception(f"Failed to send email: {str(e)}") from e


# ============================================
# Pre-built emails for common events
# ============================================


async def send_proposal_email(
    to: str,
    customer_name: str,
    proposal_number: str,
    trip_title: str,
    total: float,
    valid_until: Optional[str] = None,
) -> dict:
    """Send a trip proposal link to the customer"""
    mjml_content = proposal_sent_template(customer_name, proposal_number, trip_title, total, valid_until)
    return await send_email(
        to=to,
        subject=f"Your Walla Walla trip proposal ({proposal_number})",
        mjml_content=mjml_content,
        reply_to=ADMIN_EMAIL,
    )


async def send_inquiry_notification(
    inquiry_number: str,
    name: str,
    email: str,
    phone: Optional[str],
    tour_date: Optional[str],
    party_size: Optional[int],
    tour_type: str,
    source: str,
    preferences: Optional[str] = None,
) -> dict:
    """Tell the office a new inquiry came in"""
    mjml_content = inquiry_notification_template(
        inquiry_number=inquiry_number,
        name=name,
        email=email,
        phone=phone,
        tour_date=tour_date,
        party_size=party_size,
        tour_type=tour_type,
        source=source,
        preferences=preferences,
    )
    return await send_email(
        to=ADMIN_EMAIL,
        subject=f"New inquiry {inquiry_number}: {name}",
        mjml_content=mjml_content,
        reply_to=email,
    )


async def send_compliance_staff_alert(to: str, severity: str, items: list[dict]) -> dict:
    """Grouped compliance alert for the office"""
    return await send_email(
        to=to,
        subject=f"[Compliance {severity.upper()}] {len(items)} item(s) need attention",
        mjml_content=compliance_staff_alert_template(severity, items),
    )


async def send_compliance_driver_alert(
    to: str, driver_name: str, label: str, expiry_date: str, days_remaining: int, severity: str
) -> dict:
    """Personal reminder to a driver about an expiring document"""
    if days_remaining <= 0:
        subject = f"[{severity.title()}] Your {label} has expired"
    else:
        subject = f"[{severity.title()}] Your {label} expires in {days_remaining} days"
    return await send_email(
        to=to,
        subject=subject,
        mjml_content=compliance_driver_alert_template(driver_name, label, expiry_date, days_remaining),
    )


async def send_weekly_marketing_report(
    to: str,
    start_label: str,
    end_label: str,
    metrics: dict,
    platform_breakdown: list[dict],
    content_gaps: list[str],
    top_post: Optional[dict],
    suggestions: dict,
    ai_summary: str,
) -> dict:
    """Weekly marketing digest"""
    mjml_content = weekly_marketing_report_template(
        period_label=f"{start_label} - {end_label}",
        metrics=metrics,
        platform_breakdown=platform_breakdown,
        content_gaps=content_gaps,
        top_post=top_post,
        suggestions=suggestions,
        ai_summary=ai_summary,
    )
    return await send_email(
        to=to,
        subject=f"Weekly Marketing Report: {start_label} - {end_label}",
        mjml_content=mjml_content,
    )
