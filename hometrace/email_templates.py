"""
MJML Email Templates
Appointment email templates using MJML for responsive, cross-client compatibility
"""

from typing import Optional

THEME = {
    "primary": "#2563eb",
    "primary_dark": "#1e40af",
    "background": "#f8fafc",
    "text_primary": "#1f2937",
    "text_secondary": "#374151",
    "text_muted": "#6b7280",
    "border": "#e2e8f0",
    "success": "#10b981",
    "warning": "#f59e0b",
    "danger": "#ef4444",
}


def get_base_template(
    title: str,
    preview_text: str,
    content_sections: str,
    cta_url: Optional[str] = None,
    cta_label: Optional[str] = None,
    secondary_url: Optional[str] = None,
    secondary_label: Optional[str] = None,
) -> str:
    """Base MJML template wrapper for all emails"""

    cta_section = ""
    if cta_url and cta_label:
        secondary_button = ""
        if secondary_url and secondary_label:
            secondary_button = f"""
            <mj-button
              href="{secondary_url}"
              background-color="{THEME['danger']}"
              color="#ffffff"
              font-weight="600"
              border-radius="6px"
              padding="8px 0">
              {secondary_label}
            </mj-button>
            """
        cta_section = f"""
        <mj-section padding="20px 0">
          <mj-column>
            <mj-button
              href="{cta_url}"
              background-color="{THEME['success']}"
              color="#ffffff"
              font-weight="600"
              border-radius="6px"
              padding="8px 0">
              {cta_label}
            </mj-button>
            {secondary_button}
          </mj-column>
        </mj-section>
        """

    return f"""
    <mjml>
      <mj-head>
        <mj-title>{title}</mj-title>
        <mj-preview>{preview_text}</mj-preview>
        <mj-attributes>
          <mj-all font-family="Arial, sans-serif" />
          <mj-text font-size="16px" line-height="1.6" color="{THEME['text_secondary']}" />
        </mj-attributes>
      </mj-head>
      <mj-body background-color="{THEME['background']}">
        <mj-section background-color="#ffffff" padding="32px 40px 48px 40px">
          <mj-column>
            <mj-text font-size="24px" font-weight="600" color="{THEME['primary']}" padding="0 0 16px 0">
              {title}
            </mj-text>

            {content_sections}
          </mj-column>
        </mj-section>

        {cta_section}

        <mj-section padding="32px 20px">
          <mj-column>
            <mj-text align="center" font-size="13px" color="#94a3b8" padding="0">
              This email was sent from HomeTrace.
            </mj-text>
          </mj-column>
        </mj-section>
      </mj-body>
    </mjml>
    """


def _detail_block(heading: str, rows: list[tuple[str, str]]) -> str:
    lines = "".join(f"<strong>{label}:</strong> {value}<br/>" for label, value in rows)
    return f"""
    <mj-text padding="12px 0" container-background-color="{THEME['background']}">
      <span style="color: {THEME['primary_dark']}; font-weight: 600;">{heading}</span><br/>
      {lines}
    </mj-text>
    """


def new_appointment_request_template(
    agent_name: str,
    customer_name: str,
    customer_email: str,
    customer_phone: str,
    property_address: str,
    property_id: str,
    appointment_times: list[dict],
    message: Optional[str],
    dashboard_url: str,
) -> str:
    """New viewing request notification for the property's agent"""
    times = [(f"Option {i}", f"{t['date']} at {t['time']}") for i, t in enumerate(appointment_times, 1)]

    content = f"""
    <mj-text>Hi {agent_name},</mj-text>
    <mj-text>You have received a new viewing request.</mj-text>
    {_detail_block("Property Details", [("Address", property_address), ("Property ID", property_id)])}
    {_detail_block("Customer Information", [("Name", customer_name), ("Email", customer_email), ("Phone", customer_phone)])}
    {_detail_block("Preferred Appointment Times", times)}
    """
    if message:
        content += _detail_block("Message", [("Customer", message)])

    return get_base_template(
        title="New Appointment Request",
        preview_text=f"New viewing request from {customer_name}",
        content_sections=content,
        cta_url=dashboard_url,
        cta_label="View Appointments",
    )


def time_proposal_template(
    customer_name: str,
    agent_name: str,
    agent_email: str,
    property_address: str,
    proposed_time: str,
    accept_url: str,
    decline_url: str,
) -> str:
    """Agent-proposed viewing time for the customer, with accept/decline links"""
    content = f"""
    <mj-text>Hi {customer_name},</mj-text>
    <mj-text>
      <strong>{agent_name}</strong> has proposed a time for your property viewing.
    </mj-text>
    {_detail_block("Proposed Viewing", [("Property", property_address), ("Time", proposed_time)])}
    <mj-text color="{THEME['text_muted']}" font-size="14px">
      Please accept or decline this time. Questions can go to {agent_email}.
    </mj-text>
    """
    return get_base_template(
        title="Appointment Time Proposal",
        preview_text=f"Proposed viewing time: {proposed_time}",
        content_sections=content,
        cta_url=accept_url,
        cta_label="Accept",
        secondary_url=decline_url,
        secondary_label="Decline",
    )


def appointment_update_template(customer_name: str, appointments: list[dict]) -> str:
    """Summary of one or more appointment changes for a customer"""
    blocks = "".join(
        _detail_block(
            item["property_address"],
            [
                ("Date & Time", item["new_time"]),
                ("Status", item["status"].upper()),
                ("Agent", item["agent_name"]),
            ],
        )
        for item in appointments
    )
    content = f"""
    <mj-text>Hi {customer_name},</mj-text>
    <mj-text>Your viewing appointment details have been updated.</mj-text>
    {blocks}
    """
    return get_base_template(
        title="Appointment Update",
        preview_text="Your viewing appointment has been updated",
        content_sections=content,
    )


def customer_response_template(
    agent_name: str,
    customer_name: str,
    customer_email: str,
    property_address: str,
    proposed_time: str,
    accepted: bool,
) -> str:
    """Customer accepted or declined the agent's proposed time"""
    verb = "accepted" if accepted else "declined"
    colour = THEME["success"] if accepted else THEME["danger"]
    content = f"""
    <mj-text>Hi {agent_name},</mj-text>
    <mj-text>
      {customer_name} ({customer_email}) has
      <strong style="color: {colour};">{verb}</strong> the proposed viewing time.
    </mj-text>
    {_detail_block("Appointment", [("Property", property_address), ("Time", proposed_time)])}
    """
    return get_base_template(
        title=f"Customer {verb.capitalize()} Appointment",
        preview_text=f"{customer_name} {verb} the proposed time",
        content_sections=content,
    )
