"""
Contact inbox tests: creating messages, read / replied flags, the unread
filter and deletion.
"""
import pytest
from httpx import AsyncClient


async def _send(client: AsyncClient, subject: str) -> dict:
    resp = await client.post("/api/v1/contact-messages", json={
        "name": "Reader",
        "email": "reader@mail.example",
        "subject": subject,
        "message": "Where can I find the sources for this story?",
    })
    assert resp.status_code == 201
    return resp.json()


@pytest.mark.asyncio
async def test_create_message(async_client: AsyncClient):
    message = await _send(async_client, "Sources")
    assert message["subject"] == "Sources"
    assert message["is_read"] is False
    assert message["is_replied"] is False


@pytest.mark.asyncio
async def test_create_message_requires_body(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/contact-messages", json={
        "name": "Reader", "email": "reader@mail.example", "subject": "Empty", "message": "",
    })
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_read_flag_and_unread_filter(async_client: AsyncClient):
    first = await _send(async_client, "First")
    await _send(async_client, "Second")

    resp = await async_client.patch(f"/api/v1/contact-messages/{first['id']}/read", json={})
    assert resp.status_code == 200
    assert resp.json()["is_read"] is True

    unread = (await async_client.get("/api/v1/contact-messages", params={"only_unread": True})).json()
    assert [m["subject"] for m in unread] == ["Second"]

    everything = (await async_client.get("/api/v1/contact-messages")).json()
    assert [m["subject"] for m in everything] == ["Second", "First"]

    resp = await async_client.patch(
        f"/api/v1/contact-messages/{first['id']}/read", json={"value": False}
    )
    assert resp.json()["is_read"] is False


@pytest.mark.asyncio
async def test_replied_flag(async_client: AsyncClient):
    message = await _send(async_client, "Correction")

    resp = await async_client.patch(
        f"/api/v1/contact-messages/{message['id']}/replied", json={"value": True}
    )
    assert resp.status_code == 200
    assert resp.json()["is_replied"] is True
    assert resp.json()["is_read"] is False


@pytest.mark.asyncio
async def test_delete_message(async_client: AsyncClient):
    message = await _send(async_client, "Spam")
    url = f"/api/v1/contact-messages/{message['id']}"

    assert (await async_client.delete(url)).status_code == 204
    assert (await async_client.get(url)).status_code == 404


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "method, path",
    [
        ("get", "/api/v1/contact-messages/99999"),
        ("patch", "/api/v1/contact-messages/99999/read"),
        ("patch", "/api/v1/contact-messages/99999/replied"),
        ("delete", "/api/v1/contact-messages/99999"),
    ],
)
async def test_missing_message_returns_404(async_client: AsyncClient, method, path):
    kwargs = {"json": {"value": True}} if method == "patch" else {}
    resp = await getattr(async_client, method)(path, **kwargs)
    assert resp.status_code == 404
