from __future__ import annotations

import copy
from typing import Any

PRESETS: dict[str, dict[str, Any]] = {
    "blank": {
        "name": "Blank Form",
        "description": "Start from scratch",
        "fields": [],
    },
    "contact": {
        "name": "Contact Form",
        "description": "Collect contact information from visitors",
        "fields": [
            {"id": "full_name", "type": "text", "label": "Full Name", "required": True},
            {"id": "email", "type": "email", "label": "Email Address", "required": True},
            {"id": "phone", "type": "text", "label": "Phone Number"},
            {"id": "subject", "type": "text", "label": "Subject", "required": True},
            {"id": "message", "type": "textarea", "label": "Message", "required": True},
        ],
    },
    "survey": {
        "name": "Survey",
        "description": "Gather opinions and feedback with structured questions",
        "fields": [
            {"id": "name", "type": "text", "label": "Your Name"},
            {
                "id": "source",
                "type": "select",
                "label": "How did you hear about us?",
                "required": True,
                "options": ["Social Media", "Search Engine", "Friend/Referral", "Advertisement", "Other"],
            },
            {
                "id": "source_other",
                "type": "text",
                "label": "Please specify",
                "conditional": {"field_id": "source", "operator": "equals", "value": "Other", "action": "show"},
            },
            {
                "id": "satisfaction",
                "type": "radio",
                "label": "Overall Satisfaction",
                "required": True,
                "options": ["Very Satisfied", "Satisfied", "Neutral", "Dissatisfied", "Very Dissatisfied"],
            },
            {"id": "comments", "type": "textarea", "label": "Additional Comments"},
        ],
    },
    "feedback": {
        "name": "Feedback Form",
        "description": "Collect product or service feedback",
        "fields": [
            {"id": "email", "type": "email", "label": "Email"},
            {
                "id": "rating",
                "type": "radio",
                "label": "Rating",
                "required": True,
                "options": ["1", "2", "3", "4", "5"],
            },
            {"id": "liked", "type": "textarea", "label": "What did you like?"},
            {
                "id": "improve",
                "type": "textarea",
                "label": "What could be improved?",
                "conditional": {"field_id": "rating", "operator": "less_than", "value": "4", "action": "show"},
            },
            {"id": "follow_up", "type": "checkbox", "label": "I would like a follow-up response"},
        ],
    },
    "registration": {
        "name": "Registration Form",
        "description": "Event or account registration",
        "fields": [
            {"id": "first_name", "type": "text", "label": "First Name", "required": True},
            {"id": "last_name", "type": "text", "label": "Last Name", "required": True},
            {"id": "email", "type": "email", "label": "Email Address", "required": True},
            {"id": "organization", "type": "text", "label": "Organization"},
            {
                "id": "role",
                "type": "select",
                "label": "Role",
                "options": ["Student", "Professional", "Manager", "Executive", "Other"],
            },
            {"id": "birth_date", "type": "date", "label": "Date of Birth"},
            {"id": "terms", "type": "checkbox", "label": "I agree to the terms and conditions", "required": True},
        ],
    },
    "order": {
        "name": "Order Form",
        "description": "Take simple product orders",
        "fields": [
            {"id": "customer", "type": "text", "label": "Name", "required": True},
            {"id": "email", "type": "email", "label": "Email", "required": True},
            {
                "id": "product",
                "type": "select",
                "label": "Product",
                "required": True,
                "options": ["Starter Kit", "Pro Kit", "Custom"],
            },
            {
                "id": "custom_details",
                "type": "textarea",
                "label": "Describe your custom order",
                "required": True,
                "conditional": {"field_id": "product", "operator": "equals", "value": "Custom", "action": "show"},
            },
            {
                "id": "quantity",
                "type": "number",
                "label": "Quantity",
                "required": True,
                "validation": {"min": 1, "max": 100},
            },
            {"id": "delivery_date", "type": "date", "label": "Preferred delivery date"},
            {"id": "gift", "type": "checkbox", "label": "This is a gift"},
        ],
    },
}


def list_presets() -> list[dict[str, Any]]:
    return [
        {"key": key, "name": preset["name"], "description": preset["description"]}
        for key, preset in PRESETS.items()
    ]


def get_preset(key: str) -> dict[str, Any] | None:
    preset = PRESETS.get(key)
    return copy.deepcopy(preset) if preset else None
