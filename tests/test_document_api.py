"""
Integration tests for the document store REST API.

Runs the real routes over an in-memory transport with a SQLite file
database, covering the create / read / replace protocol and the
compare-and-swap behaviour of ``If-Match``.
"""

from __future__ import annotations

import pytest
from httpx import AsyncClient

BASE = "/api/v1/documents"
EMPTY = {"users": [], "trips": [], "transactions": []}


async def _create(client: AsyncClient, body: dict | None = None) -> str:
    resp = await client.post(f"{BASE}/create", json=body if body is not None else EMPTY)
    assert resp.status_code == 201
    return resp.headers["Location"].rsplit("/", 1)[-1]


@pytest.mark.asyncio
async def test_health(client: AsyncClient):
    resp = await client.get("/api/v1/admin/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


@pytest.mark.asyncio
async def test_create_returns_location_and_etag(client: AsyncClient):
    resp = await client.post(f"{BASE}/create", json=EMPTY)
    assert resp.status_code == 201
    data = resp.json()
    assert resp.headers["Location"].endswith(f"{BASE}/{data['session_id']}")
    assert resp.headers["ETag"] == '"1"'
    assert data["version"] == 1


@pytest.mark.asyncio
async def test_read_returns_document(client: AsyncClient):
    session_id = await _create(client, {"users": [{"id": "u"}], "trips": [], "transactions": []})
    resp = await client.get(f"{BASE}/{session_id}")
    assert resp.status_code == 200
    assert resp.json()["users"] == [{"id": "u"}]
    assert resp.headers["ETag"] == '"1"'


@pytest.mark.asyncio
async def test_read_unknown_session_is_404(client: AsyncClient):
    resp = await client.get(f"{BASE}/does-not-exist")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_unconditional_replace_bumps_version(client: AsyncClient):
    session_id = await _create(client)
    body = {**EMPTY, "trips": [{"id": "trip_1"}]}
    resp = await client.put(f"{BASE}/{session_id}", json=body)
    assert resp.status_code == 200
    assert resp.headers["ETag"] == '"2"'

    resp = await client.get(f"{BASE}/{session_id}")
    assert resp.json() == body


@pytest.mark.asyncio
async def test_conditional_replace_with_current_version(client: AsyncClient):
    session_id = await _create(client)
    resp = await client.put(
        f"{BASE}/{session_id}", json=EMPTY, headers={"If-Match": '"1"'}
    )
    assert resp.status_code == 200
    assert resp.headers["ETag"] == '"2"'


@pytest.mark.asyncio
async def test_stale_conditional_replace_is_412(client: AsyncClient):
    session_id = await _create(client)
    first = {**EMPTY, "trips": [{"id": "first"}]}
    second = {**EMPTY, "trips": [{"id": "second"}]}

    ok = await client.put(f"{BASE}/{session_id}", json=first, headers={"If-Match": '"1"'})
    stale = await client.put(f"{BASE}/{session_id}", json=second, headers={"If-Match": '"1"'})

    assert ok.status_code == 200
    assert stale.status_code == 412
    resp = await client.get(f"{BASE}/{session_id}")
    assert resp.json() == first


@pytest.mark.asyncio
async def test_unconditional_writes_lose_updates(client: AsyncClient):
    """Without If-Match the last replace silently wins."""
    session_id = await _create(client)
    await client.put(f"{BASE}/{session_id}", json={**EMPTY, "trips": [{"id": "a"}]})
    await client.put(f"{BASE}/{session_id}", json={**EMPTY, "trips": [{"id": "b"}]})

    resp = await client.get(f"{BASE}/{session_id}")
    assert resp.json()["trips"] == [{"id": "b"}]
    assert resp.headers["ETag"] == '"3"'


@pytest.mark.asyncio
async def test_weak_and_wildcard_if_match(client: AsyncClient):
    session_id = await _create(client)
    weak = await client.put(f"{BASE}/{session_id}", json=EMPTY, headers={"If-Match": 'W/"1"'})
    wildcard = await client.put(f"{BASE}/{session_id}", json=EMPTY, headers={"If-Match": "*"})
    assert weak.status_code == 200
    assert wildcard.status_code == 200


@pytest.mark.asyncio
async def test_malformed_if_match_is_400(client: AsyncClient):
    session_id = await _create(client)
    resp = await client.put(
        f"{BASE}/{session_id}", json=EMPTY, headers={"If-Match": '"abc"'}
    )
    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_replace_unknown_session_is_404(client: AsyncClient):
    plain = await client.put(f"{BASE}/nope", json=EMPTY)
    conditional = await client.put(f"{BASE}/nope", json=EMPTY, headers={"If-Match": '"1"'})
    assert plain.status_code == 404
    assert conditional.status_code == 404


@pytest.mark.asyncio
async def test_replace_with_non_object_is_422(client: AsyncClient):
    session_id = await _create(client)
    resp = await client.put(f"{BASE}/{session_id}", json=[1, 2, 3])
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_session_summary(client: AsyncClient):
    session_id = await _create(
        client, {"users": [{"id": "u1"}, {"id": "u2"}], "trips": [{}], "transactions": []}
    )
    resp = await client.get(f"/api/v1/admin/sessions/{session_id}")
    assert resp.status_code == 200
    data = resp.json()
    assert data["users"] == 2
    assert data["trips"] == 1
    assert data["transactions"] == 0
    assert data["version"] == 1


@pytest.mark.asyncio
async def test_session_summary_unknown_is_404(client: AsyncClient):
    resp = await client.get("/api/v1/admin/sessions/missing")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_error_bodies_and_openapi_document_them(client: AsyncClient):
    session_id = await _create(client)
    await client.put(f"{BASE}/{session_id}", json=EMPTY, headers={"If-Match": '"1"'})
    stale = await client.put(f"{BASE}/{session_id}", json=EMPTY, headers={"If-Match": '"1"'})
    assert stale.json() == {"detail": "Document version changed"}

    schema = (await client.get("/openapi.json")).json()
    put = schema["paths"]["/api/v1/documents/{session_id}"]["put"]["responses"]
    ref = put["412"]["content"]["application/json"]["schema"]["$ref"]
    assert ref.endswith("/ErrorResponse")
    assert {"400", "404", "412"} <= set(put)
    summary = schema["paths"]["/api/v1/admin/sessions/{session_id}"]["get"]["responses"]
    assert "404" in summary


@pytest.mark.asyncio
async def test_each_write_gets_its_own_etag(client: AsyncClient):
    session_id = await _create(client)
    etags = [
        (await client.put(f"{BASE}/{session_id}", json=EMPTY)).headers["ETag"]
        for _ in range(3)
    ]
    assert etags == ['"2"', '"3"', '"4"']
