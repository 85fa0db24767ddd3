from typing import Any

from httpx import AsyncClient


def contact_fields() -> list[dict[str, Any]]:
    return [
        {"id": "name", "type": "text", "label": "Name", "required": True},
        {"id": "email", "type": "email", "label": "Email", "required": True},
        {
            "id": "topic",
            "type": "select",
            "label": "Topic",
            "options": ["Sales", "Support", "Other"],
        },
        {
            "id": "other",
            "type": "text",
            "label": "Other topic",
            "required": True,
            "conditional": {"field_id": "topic", "operator": "equals", "value": "Other", "action": "show"},
        },
    ]


async def create_published_form(client: AsyncClient, **overrides: Any) -> dict[str, Any]:
    payload = {"name": "Contact", "fields": contact_fields(), **overrides}
    res = await client.post("/api/forms", json=payload)
    assert res.status_code == 201, res.text
    form = res.json()
    res = await client.post(f"/api/forms/{form['id']}/publish")
    assert res.status_code == 200
    return res.json()
