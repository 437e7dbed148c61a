"""
MJML Email Templates
Operational emails: proposals, inquiries, compliance alerts and marketing reports
"""

from html import escape
from typing import Optional

from .config import FRONTEND_URL

# Brand colors - Burgundy/Stone wine-country scheme
THEME = {
    "primary": "#7f1d1d",
    "primary_dark": "#5b1414",
    "primary_light": "#fde8e8",
    "background": "#fafaf9",
    "card_bg": "#ffffff",
    "text_primary": "#1c1917",
    "text_secondary": "#44403c",
    "text_muted": "#78716c",
    "border": "#e7e5e4",
    "success": "#15803d",
    "warning": "#d97706",
    "danger": "#dc2626",
}

SEVERITY_COLORS = {
    "expired": THEME["danger"],
    "critical": "#ea580c",
    "urgent": THEME["warning"],
    "warning": "#ca8a04",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['primary']}"
              color="#ffffff"
              font-weight="600"
              border-radius="8px"
              padding="18px 40px"
              font-size="16px">
              {cta_label}
            </mj-button>
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="-apple-system, BlinkMacSystemFont, 'Segoe UI', 'Helvetica Neue', Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="{THEME['primary']}" padding="24px 20px">
          <mj-column>
            <mj-text align="center" font-size="22px" font-weight="700" color="#ffffff" padding="0">
              Walla Walla Travel
            </mj-text>
          </mj-column>
        </mj-section>

        <mj-section background-color="#ffffff" padding="40px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['text_primary']}" line-height="1.3" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#a8a29e" padding="0">
              Walla Walla Travel · Walla Walla, Washington
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


# ============================================
# Customer emails
# ============================================


def proposal_sent_template(
    customer_name: str,
    proposal_number: str,
    trip_title: str,
    total: float,
    valid_until: Optional[str],
) -> str:
    """Trip proposal ready for customer review"""
    expiry_line = f"This proposal is valid until <strong>{valid_until}</strong>." if valid_until else ""
    content = f"""
    <mj-text>
      Hi {escape(customer_name)},
    </mj-text>

    <mj-text>
      Your custom itinerary <strong>{escape(trip_title)}</strong> is ready to review.
    </mj-text>

    <mj-text>
      Proposal: {proposal_number}<br/>
      Estimated total: ${total:,.2f}
    </mj-text>

    <mj-text color="{THEME['text_muted']}">
      {expiry_line} You can accept it online with your signature, or reply to this email with any changes.
    </mj-text>
    """

    return get_base_template(
        title="Your Trip Proposal",
        preview_text=f"Proposal {proposal_number} is ready for you",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/trip-proposals/{proposal_number}",
        cta_label="View Proposal",
    )


# ============================================
# Staff notifications
# ============================================


def inquiry_notification_template(
    inquiry_number: str,
    name: str,
    email: str,
    phone: Optional[str],
    tour_date: Optional[str],
    party_size: Optional[int],
    tour_type: str,
    source: str,
    preferences: Optional[str] = None,
) -> str:
    """New booking inquiry for the office"""
    content = f"""
    <mj-text color="{THEME['text_muted']}" padding="0 0 24px 0">
      A new inquiry arrived via {source}.
    </mj-text>

    <mj-text>
      Reference: {inquiry_number}<br/>
      Name: {escape(name)}<br/>
      Email: {escape(email)}<br/>
      Phone: {escape(phone or "Not provided")}<br/>
      Tour date: {tour_date or "Flexible"}<br/>
      Party size: {party_size or "Unknown"}<br/>
      Tour type: {tour_type.replace("_", " ").title()}
    </mj-text>

    <mj-text>
      {escape(preferences or "")}
    </mj-text>
    """

    return get_base_template(
        title="New Tour Inquiry",
        preview_text=f"{name} asked about a {tour_type.replace('_', ' ')}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/admin/inquiries",
        cta_label="Open Inquiries",
    )


def compliance_staff_alert_template(severity: str, items: list[dict]) -> str:
    """Expiring driver and vehicle documents grouped by severity"""
    color = SEVERITY_COLORS.get(severity, THEME["warning"])
    rows = "".join(
        f"""
        <tr style="border-bottom: 1px solid {THEME['border']};">
          <td style="padding: 8px 0;">{escape(item['name'])}</td>
          <td style="padding: 8px 0;">{item['label']}</td>
          <td style="padding: 8px 0;">{item['expiry_date']}</td>
          <td style="padding: 8px 0; color: {color}; font-weight: 600;">{_days_text(item['days_remaining'])}</td>
        </tr>
        """
        for item in items
    )
    content = f"""
    <mj-text color="{color}" font-weight="600" padding="0 0 16px 0">
      {len(items)} item(s) at {severity.upper()} level
    </mj-text>

    <mj-table font-size="14px" color="{THEME['text_secondary']}">
      <tr style="border-bottom: 2px solid {THEME['border']}; text-align: left;">
        <th style="padding: 8px 0;">Driver / Vehicle</th>
        <th style="padding: 8px 0;">Document</th>
        <th style="padding: 8px 0;">Expires</th>
        <th style="padding: 8px 0;">Status</th>
      </tr>
      {rows}
    </mj-table>
    """

    return get_base_template(
        title="Compliance Alert",
        preview_text=f"{len(items)} compliance item(s) need attention",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/admin/compliance",
        cta_label="Review Compliance",
    )


def compliance_driver_alert_template(driver_name: str, label: str, expiry_date: str, days_remaining: int) -> str:
    """Reminder to a driver about one of their own documents"""
    if days_remaining <= 0:
        lead = f"Your <strong>{label}</strong> expired on {expiry_date}. You cannot be dispatched until it is renewed."
    else:
        lead = f"Your <strong>{label}</strong> expires on {expiry_date} ({_days_text(days_remaining)})."
    content = f"""
    <mj-text>
      Hi {escape(driver_name)},
    </mj-text>

    <mj-text>
      {lead}
    </mj-text>

    <mj-text color="{THEME['text_muted']}">
      Please upload the renewed document or contact the office.
    </mj-text>
    """

    return get_base_template(
        title=f"{label} Reminder",
        preview_text=f"Your {label} needs attention",
        content_sections=content,
    )


def weekly_marketing_report_template(
    period_label: str,
    metrics: dict,
    platform_breakdown: list[dict],
    content_gaps: list[str],
    top_post: Optional[dict],
    suggestions: dict,
    ai_summary: str,
) -> str:
    """Weekly social performance digest"""
    engagement_rate = 0.0
    if metrics.get("total_impressions"):
        engagement_rate = metrics["total_engagement"] / metrics["total_impressions"] * 100

    platform_rows = "".join(
        f"""
        <tr style="border-bottom: 1px solid {THEME['border']};">
          <td style="padding: 6px 0;">{row['platform'].title()}</td>
          <td style="padding: 6px 0; text-align: right;">{row['posts']}</td>
        </tr>
        """
        for row in platform_breakdown
    ) or '<tr><td style="padding: 6px 0;">No published posts</td><td></td></tr>'

    gaps_section = ""
    if content_gaps:
        gaps_section = f"""
    <mj-text color="{THEME['warning']}" font-weight="600" padding="16px 0 0 0">
      No posts this week on: {", ".join(p.title() for p in content_gaps)}
    </mj-text>
    """

    top_post_section = ""
    if top_post:
        top_post_section = f"""
    <mj-text font-weight="600" padding="16px 0 4px 0">Top post ({top_post['platform'].title()}, {top_post['engagement']} engagements)</mj-text>
    <mj-text color="{THEME['text_muted']}" padding="0">{escape(top_post['content'][:280])}</mj-text>
    """

    summary_html = "<br/>".join(escape(line) for line in ai_summary.splitlines())

    content = f"""
    <mj-text color="{THEME['text_muted']}" padding="0 0 16px 0">
      {period_label}
    </mj-text>

    <mj-table font-size="15px" color="{THEME['text_secondary']}">
      <tr>
        <td style="padding: 6px 0;">Posts published</td><td style="text-align: right;"><strong>{metrics.get('posts_published', 0)}</strong></td>
      </tr>
      <tr>
        <td style="padding: 6px 0;">Engagement</td><td style="text-align: right;"><strong>{metrics.get('total_engagement', 0):,}</strong></td>
      </tr>
      <tr>
        <td style="padding: 6px 0;">Impressions</td><td style="text-align: right;"><strong>{metrics.get('total_impressions', 0):,}</strong></td>
      </tr>
      <tr>
        <td style="padding: 6px 0;">Clicks</td><td style="text-align: right;"><strong>{metrics.get('total_clicks', 0):,}</strong></td>
      </tr>
      <tr>
        <td style="padding: 6px 0;">Engagement rate</td><td style="text-align: right;"><strong>{engagement_rate:.1f}%</strong></td>
      </tr>
    </mj-table>

    <mj-text font-weight="600" padding="24px 0 4px 0">By platform</mj-text>
    <mj-table font-size="14px" color="{THEME['text_secondary']}">
      {platform_rows}
    </mj-table>
    {gaps_section}
    {top_post_section}

    <mj-text padding="16px 0 0 0">
      Content suggestions: {suggestions.get('accepted', 0)} of {suggestions.get('generated', 0)} accepted
    </mj-text>

    <mj-text font-weight="600" padding="24px 0 4px 0">Recommendations</mj-text>
    <mj-text>{summary_html}</mj-text>
    """

    return get_base_template(
        title="Weekly Marketing Report",
        preview_text=f"{metrics.get('posts_published', 0)} posts published {period_label}",
        content_sections=content,
        cta_url=f"{FRONTEND_URL}/admin/marketing",
        cta_label="Open Marketing Dashboard",
    )


def _days_text(days_remaining: int) -> str:
    if days_remaining < 0:
        return f"expired {abs(days_remaining)} day(s) ago"
    if days_remaining == 0:
        return "expires today"
    return f"{days_remaining} day(s) left"
