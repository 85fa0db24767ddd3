import orjson

from helpers import create_published_form
from vibeforms.webhook import SIGNATURE_HEADER, verify_signature


async def test_submit_and_list(client, app):
    form = await create_published_form(client)

    res = await client.post(
        f"/api/public/forms/{form['share_id']}/submit",
        json={"data": {"name": "Ada", "email": "ada@example.com", "topic": "Sales", "other": "ignored"}},
        headers={"User-Agent": "pytest-agent"},
    )
    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True

    res = await client.get(f"/api/forms/{form['id']}/submissions")
    items = res.json()
    assert len(items) == 1
    assert items[0]["id"] == body["submissionId"]
    assert items[0]["data"] == {"name": "Ada", "email": "ada@example.com", "topic": "Sales"}
    assert items[0]["metadata"]["user_agent"] == "pytest-agent"

    res = await client.get(f"/api/forms/{form['id']}")
    assert res.json()["submission_count"] == 1


async def test_conditional_required_field(client):
    form = await create_published_form(client)

    res = await client.post(
        f"/api/forms/{form['id']}/submit",
        json={"name": "Ada", "email": "ada@example.com", "topic": "Other"},
    )
    assert res.status_code == 422
    assert res.json() == {
        "error": "validation_failed",
        "violations": [{"field": "other", "reason": "missing"}],
    }


async def test_all_violations_are_returned(client, app):
    form = await create_published_form(client)

    res = await client.post(f"/api/forms/{form['id']}/submit", json={"email": "not-an-email"})
    assert res.status_code == 422
    assert res.json()["violations"] == [
        {"field": "name", "reason": "missing"},
        {"field": "email", "reason": "wrong_type"},
    ]
    assert app.state.storage.submissions.count_submissions(form["id"]) == 0


async def test_unpublished_form_rejects_submissions(client, app):
    res = await client.post("/api/forms", json={"name": "Draft", "fields": []})
    form = res.json()

    res = await client.post(f"/api/forms/{form['id']}/submit", json={})
    assert res.status_code == 403
    assert res.json()["error"] == "not_published"

    res = await client.get(f"/api/public/forms/{form['share_id']}")
    assert res.status_code == 404


async def test_public_form_and_visibility(client):
    form = await create_published_form(
        client,
        settings={"email_notifications": {"enabled": True, "recipients": ["me@example.com"]}},
    )

    res = await client.get(f"/api/public/forms/{form['share_id']}")
    public = res.json()
    assert "email_notifications" not in public["settings"]
    assert public["fields"][1]["input_type"] == "email"

    res = await client.post(f"/api/public/forms/{form['share_id']}/visibility", json={"topic": "Other"})
    assert res.json() == {"visible": ["name", "email", "topic", "other"]}
    res = await client.post(f"/api/public/forms/{form['share_id']}/visibility", json={})
    assert res.json() == {"visible": ["name", "email", "topic"]}


async def test_webhook_receives_signed_payload(client, app, outbound):
    form = await create_published_form(client)
    res = await client.post(f"/api/forms/{form['id']}/webhooks", json={"url": "https://hooks.test/in"})
    assert res.status_code == 201
    webhook = res.json()
    assert webhook["events"] == ["submission.created"]
    assert len(webhook["secret"]) == 64

    await client.post(f"/api/forms/{form['id']}/submit", json={"name": "Ada", "email": "ada@example.com"})
    await app.state.dispatcher.drain()

    assert len(outbound.requests) == 1
    request = outbound.requests[0]
    assert verify_signature(webhook["secret"], request.content, request.headers[SIGNATURE_HEADER])
    payload = orjson.loads(request.content)
    assert payload["formId"] == form["id"]
    assert payload["data"] == {"name": "Ada", "email": "ada@example.com"}


async def test_webhook_management(client):
    form = await create_published_form(client)

    res = await client.post(f"/api/forms/{form['id']}/webhooks", json={"url": "not a url"})
    assert res.status_code == 400

    res = await client.post(f"/api/forms/{form['id']}/webhooks", json={"url": "https://hooks.test/in"})
    webhook_id = res.json()["id"]
    res = await client.get(f"/api/forms/{form['id']}/webhooks")
    assert [item["id"] for item in res.json()] == [webhook_id]

    res = await client.delete(f"/api/forms/{form['id']}/webhooks/{webhook_id}")
    assert res.status_code == 200
    res = await client.delete(f"/api/forms/{form['id']}/webhooks/{webhook_id}")
    assert res.status_code == 404


async def test_pagination_and_bulk_delete(client):
    form = await create_published_form(client)
    for index in range(5):
        res = await client.post(
            f"/api/forms/{form['id']}/submit",
            json={"name": f"user{index}", "email": f"user{index}@example.com"},
        )
        assert res.status_code == 201

    seen: list[str] = []
    cursor = None
    while True:
        params = {"limit": 2}
        if cursor:
            params["cursor"] = cursor
        res = await client.get(f"/api/forms/{form['id']}/submissions", params=params)
        seen.extend(item["id"] for item in res.json())
        cursor = res.headers.get("X-Next-Cursor")
        if not cursor:
            break
    assert len(seen) == 5
    assert len(set(seen)) == 5

    res = await client.post(
        f"/api/forms/{form['id']}/submissions/delete",
        json={"submission_ids": seen[:3]},
    )
    assert res.json() == {"success": True, "deleted": 3}

    res = await client.delete(f"/api/forms/{form['id']}/submissions/{seen[3]}")
    assert res.status_code == 200
    res = await client.get(f"/api/forms/{form['id']}/submissions/{seen[3]}")
    assert res.status_code == 404
    res = await client.get(f"/api/forms/{form['id']}/submissions/{seen[4]}")
    assert res.status_code == 200


async def test_invalid_cursor(client):
    form = await create_published_form(client)
    res = await client.get(f"/api/forms/{form['id']}/submissions", params={"cursor": "%%%"})
    assert res.status_code == 400


async def test_export_and_analytics(client):
    form = await create_published_form(client)
    await client.post(f"/api/forms/{form['id']}/submit", json={"name": "Ada, L.", "email": "ada@example.com", "topic": "Sales"})

    res = await client.get(f"/api/forms/{form['id']}/export")
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/csv")
    assert "attachment" in res.headers["content-disposition"]
    lines = res.text.splitlines()
    assert lines[0] == "Submitted At,Name,Email,Topic,Other topic"
    assert ',"Ada, L.",ada@example.com,Sales,' in lines[1]

    res = await client.get(f"/api/forms/{form['id']}/export", params={"context": "bogus"})
    assert res.status_code == 400

    res = await client.get(f"/api/forms/{form['id']}/analytics")
    analytics = res.json()
    assert analytics["total_responses"] == 1
    topic = next(item for item in analytics["field_summaries"] if item["field_id"] == "topic")
    assert topic["counts"] == {"Sales": 1}


async def test_upload_and_download(client, app):
    form = await create_published_form(
        client,
        fields=[{"id": "cv", "type": "file", "label": "CV", "accept": ".txt", "required": True}],
    )

    res = await client.post(
        "/api/uploads",
        data={"form_id": form["id"], "field_id": "cv"},
        files={"file": ("cv.txt", b"hello", "text/plain")},
    )
    assert res.status_code == 201
    upload = res.json()
    assert upload["url"] == f"/files/{upload['id']}"

    res = await client.post(f"/api/forms/{form['id']}/submit", json={"cv": [upload["id"]]})
    assert res.status_code == 201

    res = await client.get(f"/api/forms/{form['id']}/submissions")
    assert res.json()[0]["data"] == {"cv": [upload["url"]]}

    res = await client.get(upload["url"])
    assert res.status_code == 200
    assert res.content == b"hello"

    res = await client.post(
        "/api/uploads",
        data={"form_id": form["id"], "field_id": "cv"},
        files={"file": ("cv.exe", b"MZ", "application/octet-stream")},
    )
    assert res.status_code == 400


async def test_upload_size_limit(client, app):
    form = await create_published_form(client)
    app.state.settings.upload_max_bytes = 4

    res = await client.post(
        "/api/uploads",
        data={"form_id": form["id"]},
        files={"file": ("big.txt", b"0123456789", "text/plain")},
    )
    assert res.status_code == 413


async def test_field_named_data_is_a_plain_answer(client, app):
    form = await create_published_form(
        client,
        fields=[
            {"id": "data", "type": "text", "label": "Data", "required": True},
            {"id": "name", "type": "text", "label": "Name"},
        ],
    )

    res = await client.post(f"/api/forms/{form['id']}/submit", json={"data": "hello", "name": "Ada"})
    assert res.status_code == 201

    res = await client.get(f"/api/forms/{form['id']}/submissions")
    assert res.json()[0]["data"] == {"data": "hello", "name": "Ada"}

    res = await client.post(f"/api/public/forms/{form['share_id']}/visibility", json={"data": "hello"})
    assert res.json() == {"visible": ["data", "name"]}


async def test_submissions_are_listed_newest_first(client):
    form = await create_published_form(client)
    for index in range(3):
        await client.post(
            f"/api/forms/{form['id']}/submit",
            json={"name": f"user{index}", "email": f"user{index}@example.com"},
        )

    res = await client.get(f"/api/forms/{form['id']}/submissions")
    items = res.json()
    keys = [(item["created_at"], item["id"]) for item in items]
    assert keys == sorted(keys, reverse=True)
    assert items[0]["data"]["name"] == "user2"
