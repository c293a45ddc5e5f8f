# sagleads/processors/outreach.py
from __future__ import annotations
from typing import Dict, List, Optional

from pydantic import BaseModel

from sagleads.utils.schema import Lead


class EmailTemplate(BaseModel):
    id: str
    name: str
    description: str
    subject: str
    body: str


SIGNATURE = "[Your Name]\nSAG-Trash Services"

# Placeholders: {{name}}, {{address}}, {{contactPerson}}
EMAIL_TEMPLATES: List[EmailTemplate] = [
    EmailTemplate(
        id="initial-outreach",
        name="Initial Outreach",
        description="Introduce SAG-Trash services to a new prospect",
        subject="Professional Pool & HOA Services for {{name}}",
        body=(
            "Hi {{contactPerson}},\n\n"
            "I hope this message finds you well! I'm reaching out on behalf of SAG-Trash, "
            "a trusted provider of professional pool and HOA management services.\n\n"
            "We specialize in helping property managers and community associations like {{name}} "
            "maintain pristine aquatic facilities while reducing operational costs.\n\n"
            "Our services include:\n"
            "• Routine pool maintenance and chemical balancing\n"
            "• Equipment repairs and upgrades\n"
            "• Compliance and safety inspections\n"
            "• Emergency service availability\n\n"
            "I'd love to schedule a brief call to discuss how we can support {{name}} in {{address}}. "
            "Are you available for a quick conversation next week?\n\n"
            "Looking forward to connecting!\n\n"
            f"Best regards,\n{SIGNATURE}"
        ),
    ),
    EmailTemplate(
        id="follow-up",
        name="Follow-Up",
        description="Check in after initial contact",
        subject="Following Up - Pool Services for {{name}}",
        body=(
            "Hi {{contactPerson}},\n\n"
            "I hope you had a chance to see my previous message about SAG-Trash services for {{name}}.\n\n"
            "I wanted to reach out again as we often have availability in your area at {{address}}. "
            "Given the seasonal demand for pool services, now is a great time to discuss "
            "partnership opportunities.\n\n"
            "If you're interested in learning more about how we can support your property's "
            "aquatic facilities, I'd be happy to:\n"
            "• Provide a complimentary consultation\n"
            "• Share case studies from similar properties\n"
            "• Discuss our flexible service packages\n\n"
            "Feel free to reply to this email or call at your convenience.\n\n"
            f"Best regards,\n{SIGNATURE}"
        ),
    ),
    EmailTemplate(
        id="seasonal-reminder",
        name="Seasonal Reminder",
        description="Seasonal maintenance offer",
        subject="Prepare {{name}} for the Season - Pool Maintenance Services",
        body=(
            "Hi {{contactPerson}},\n\n"
            "As we head into the busy season, {{name}} at {{address}} should ensure its pool "
            "facilities are in top condition.\n\n"
            "SAG-Trash specializes in seasonal pool preparations including:\n"
            "• Deep cleaning and inspection\n"
            "• Equipment testing and maintenance\n"
            "• Chemical treatment and balancing\n"
            "• Safety compliance verification\n\n"
            "Our team can typically schedule seasonal services within 48 hours of your request.\n\n"
            "Would {{name}} be interested in our seasonal maintenance package? "
            "I'm happy to provide pricing and availability details.\n\n"
            f"Thank you,\n{SIGNATURE}"
        ),
    ),
]


def get_template(template_id: str) -> Optional[EmailTemplate]:
    return next((t for t in EMAIL_TEMPLATES if t.id == template_id), None)


def _placeholders(lead: Lead) -> Dict[str, str]:
    return {
        "name": lead.name or "",
        "address": lead.address or "",
        "contactPerson": lead.contact_person or "there",
    }


def fill_template(template: EmailTemplate, lead: Lead) -> EmailTemplate:
    """Copy of the template with every {{placeholder}} in subject and body replaced from the lead."""
    subject, body = template.subject, template.body
    for key, value in _placeholders(lead).items():
        token = "{{" + key + "}}"
        subject = subject.replace(token, value)
        body = body.replace(token, value)
    return template.model_copy(update={"subject": subject, "body": body})
