"""
Haiku Notes Backend: Notes API Tests
=====================================

What:  End-to-end tests of the note routes over HTTP (ASGITransport +
       in-memory SQLite).

What we test:
    ✅ Create, list (ordered), detail list, get, update, delete
    ✅ Payload rules: no client id on create, matching id on update, text required
    ✅ Body decoding errors surface with the right status and code
    ✅ Malformed path identifiers are rejected
    ✅ Another user's note cannot be changed, deleted or (by default) read
    ✅ Store failures map to 503 / 500 without leaking details
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import ASGITransport, AsyncClient

from haiku_notes.config import APISettings
from haiku_notes.decoding import MAX_BODY_BYTES
from haiku_notes.exceptions import DatabaseConnectionError, DatabaseError
from haiku_notes.identifiers import generate_id, is_valid_id
from haiku_notes.main import create_app


async def _create_note(client, user_id, text="an old silent pond", order=0.0) -> dict:
    response = await client.post(f"/user/{user_id}/notes", json={"text": text, "order": order})
    assert response.status_code == 201, response.text
    return response.json()


class TestCreateNote:

    @pytest.mark.asyncio
    async def test_buy_milk(self, test_client, created_user_id):
        response = await test_client.post(
            f"/user/{created_user_id}/notes",
            json={"text": "buy milk", "order": 1},
        )

        assert response.status_code == 201
        body = response.json()
        assert len(body["id"]) == 128
        assert body["text"] == "buy milk"
        assert body["order"] == 1

    @pytest.mark.asyncio
    async def test_create_returns_note(self, test_client, created_user_id):
        response = await test_client.post(
            f"/user/{created_user_id}/notes",
            json={"text": "a frog jumps in", "order": 2},
        )

        assert response.status_code == 201
        body = response.json()
        assert is_valid_id(body["id"])
        assert body["text"] == "a frog jumps in"
        assert body["order"] == 2.0
        assert body["created_at"] and body["updated_at"]

    @pytest.mark.asyncio
    async def test_client_supplied_id_rejected(self, test_client, created_user_id):
        response = await test_client.post(
            f"/user/{created_user_id}/notes",
            json={"id": generate_id(), "text": "x"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"
        assert response.json()["message"] == "Cannot create note with a specific id"

    @pytest.mark.asyncio
    async def test_empty_text_rejected(self, test_client, created_user_id):
        response = await test_client.post(f"/user/{created_user_id}/notes", json={"order": 1})

        assert response.status_code == 400
        assert response.json()["message"] == "Cannot create note without data"

    @pytest.mark.asyncio
    async def test_unknown_field_rejected(self, test_client, created_user_id):
        response = await test_client.post(
            f"/user/{created_user_id}/notes",
            json={"text": "x", "extra": True},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "malformed_body"
        assert response.json()["message"] == 'Request body contains unknown field "extra"'

    @pytest.mark.asyncio
    async def test_two_objects_rejected(self, test_client, created_user_id):
        response = await test_client.post(
            f"/user/{created_user_id}/notes",
            content=b'{"text": "a"}{"text": "b"}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Request body must only contain a single JSON object"

    @pytest.mark.asyncio
    async def test_wrong_content_type(self, test_client, created_user_id):
        response = await test_client.post(
            f"/user/{created_user_id}/notes",
            content=b'{"text": "a"}',
            headers={"Content-Type": "text/plain"},
        )

        assert response.status_code == 415
        assert response.json()["error"] == "unsupported_media_type"

    @pytest.mark.asyncio
    async def test_missing_content_type_is_accepted(self, test_client, created_user_id):
        response = await test_client.post(
            f"/user/{created_user_id}/notes",
            content=b'{"text": "no header"}',
        )

        assert response.status_code == 201

    @pytest.mark.asyncio
    async def test_body_over_one_mebibyte(self, test_client, created_user_id):
        response = await test_client.post(
            f"/user/{created_user_id}/notes",
            content=b" " * (MAX_BODY_BYTES + 1),
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 413
        assert response.json()["message"] == "Request body must not be larger than 1MB"

    @pytest.mark.asyncio
    async def test_empty_body(self, test_client, created_user_id):
        response = await test_client.post(
            f"/user/{created_user_id}/notes",
            content=b"",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Request body must not be empty"

    @pytest.mark.asyncio
    async def test_overflowing_order_rejected(self, test_client, created_user_id):
        response = await test_client.post(
            f"/user/{created_user_id}/notes",
            content=b'{"text":"a","order":1e400}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "malformed_body"
        assert body["details"]["field"] == "order"
        listed = (await test_client.get(f"/user/{created_user_id}/notes")).json()
        assert listed["notes"] == []

    @pytest.mark.asyncio
    async def test_deeply_nested_body_is_a_client_error(self, test_client, created_user_id):
        response = await test_client.post(
            f"/user/{created_user_id}/notes",
            content=b'{"text": ' + b"[" * 200_000 + b"]" * 200_000 + b"}",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "Request body contains badly-formed JSON"

    @pytest.mark.asyncio
    async def test_unknown_owner_conflicts(self, test_client, user_id):
        response = await test_client.post(f"/user/{user_id}/notes", json={"text": "orphan"})

        assert response.status_code == 409
        assert response.json()["error"] == "conflict"


class TestListNotes:

    @pytest.mark.asyncio
    async def test_order_follows_updates(self, test_client, created_user_id):
        a = await _create_note(test_client, created_user_id, "a", 1)
        b = await _create_note(test_client, created_user_id, "b", 2)
        c = await _create_note(test_client, created_user_id, "c", 3)

        response = await test_client.put(
            f"/user/{created_user_id}/note/{a['id']}",
            json={"id": a["id"], "text": "a", "order": 2.5},
        )
        assert response.status_code == 200

        listing = (await test_client.get(f"/user/{created_user_id}/notes")).json()
        assert listing["notes"] == [b["id"], a["id"], c["id"]]

    @pytest.mark.asyncio
    async def test_ids_in_ascending_order(self, test_client, created_user_id):
        third = await _create_note(test_client, created_user_id, "third", 30)
        first = await _create_note(test_client, created_user_id, "first", -5)
        second = await _create_note(test_client, created_user_id, "second", 1.5)

        response = await test_client.get(f"/user/{created_user_id}/notes")

        assert response.status_code == 200
        assert response.json() == {"notes": [first["id"], second["id"], third["id"]]}

    @pytest.mark.asyncio
    async def test_user_without_notes(self, test_client, user_id):
        response = await test_client.get(f"/user/{user_id}/notes")

        assert response.status_code == 200
        assert response.json() == {"notes": []}

    @pytest.mark.asyncio
    async def test_detail_list(self, test_client, created_user_id):
        await _create_note(test_client, created_user_id, "later", 2)
        await _create_note(test_client, created_user_id, "sooner", 1)

        response = await test_client.get(f"/user/{created_user_id}/notes/detail")

        assert response.status_code == 200
        assert [n["text"] for n in response.json()["notes"]] == ["sooner", "later"]

    @pytest.mark.asyncio
    async def test_malformed_user_id(self, test_client):
        response = await test_client.get("/user/not-an-id/notes")

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["message"] == "Invalid user id: expected 128 URL-safe characters"
        assert body["details"]["field"] == "user"


class TestGetNote:

    @pytest.mark.asyncio
    async def test_get_own_note(self, test_client, created_user_id):
        note = await _create_note(test_client, created_user_id, "autumn moonlight", 4)

        response = await test_client.get(f"/user/{created_user_id}/note/{note['id']}")

        assert response.status_code == 200
        body = response.json()
        assert (body["id"], body["text"], body["order"]) == (note["id"], "autumn moonlight", 4.0)
        assert set(body) == {"id", "text", "order", "created_at", "updated_at"}

    @pytest.mark.asyncio
    async def test_timestamps_carry_utc_offset(self, test_client, created_user_id):
        note = await _create_note(test_client, created_user_id)

        fetched = (await test_client.get(f"/user/{created_user_id}/note/{note['id']}")).json()
        detail = (await test_client.get(f"/user/{created_user_id}/notes/detail")).json()["notes"][0]

        for body in (note, fetched, detail):
            assert body["created_at"].endswith("Z")
            assert body["updated_at"].endswith("Z")
        assert fetched["created_at"] == note["created_at"]

    @pytest.mark.asyncio
    async def test_unknown_note(self, test_client, created_user_id, note_id):
        response = await test_client.get(f"/user/{created_user_id}/note/{note_id}")

        assert response.status_code == 404
        body = response.json()
        assert body["error"] == "not_found"
        assert body["message"] == "The requested note was not found"

    @pytest.mark.asyncio
    async def test_malformed_note_id(self, test_client, created_user_id):
        response = await test_client.get(f"/user/{created_user_id}/note/{'x' * 127}")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid note id: expected 128 URL-safe characters"

    @pytest.mark.asyncio
    async def test_other_users_note_is_hidden(self, test_client, created_user_id, other_user_id):
        note = await _create_note(test_client, created_user_id)

        response = await test_client.get(f"/user/{other_user_id}/note/{note['id']}")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_other_users_note_visible_when_scoping_disabled(
        self, settings_factory, other_user_id
    ):
        app = create_app(settings_factory(owner_scoped_note_reads=False))
        await app.state.database.create_all()
        try:
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
                owner = (await client.post("/user")).json()["id"]
                note = await _create_note(client, owner, "shared by id")

                response = await client.get(f"/user/{other_user_id}/note/{note['id']}")
        finally:
            await app.state.database.dispose()

        assert response.status_code == 200
        assert response.json()["text"] == "shared by id"


class TestUpdateNote:

    @pytest.mark.asyncio
    async def test_update_round_trips_fetched_note(self, test_client, created_user_id):
        note = await _create_note(test_client, created_user_id, "first draft", 1)
        note["text"] = "second draft"
        note["order"] = 9

        response = await test_client.put(f"/user/{created_user_id}/note/{note['id']}", json=note)

        assert response.status_code == 200
        assert response.content == b""
        fetched = (await test_client.get(f"/user/{created_user_id}/note/{note['id']}")).json()
        assert fetched["text"] == "second draft"
        assert fetched["order"] == 9.0

    @pytest.mark.asyncio
    async def test_id_mismatch(self, test_client, created_user_id):
        note = await _create_note(test_client, created_user_id)

        response = await test_client.put(
            f"/user/{created_user_id}/note/{note['id']}",
            json={"id": generate_id(), "text": "x"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == "payload id does not correspond to endpoint id"

    @pytest.mark.asyncio
    async def test_missing_payload_id_is_a_mismatch(self, test_client, created_user_id):
        note = await _create_note(test_client, created_user_id)

        response = await test_client.put(
            f"/user/{created_user_id}/note/{note['id']}",
            json={"text": "x"},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_empty_text(self, test_client, created_user_id):
        note = await _create_note(test_client, created_user_id)

        response = await test_client.put(
            f"/user/{created_user_id}/note/{note['id']}",
            json={"id": note["id"], "text": ""},
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_other_user_cannot_update(self, test_client, created_user_id, other_user_id):
        note = await _create_note(test_client, created_user_id, "mine")

        response = await test_client.put(
            f"/user/{other_user_id}/note/{note['id']}",
            json={"id": note["id"], "text": "theirs"},
        )

        assert response.status_code == 404
        fetched = (await test_client.get(f"/user/{created_user_id}/note/{note['id']}")).json()
        assert fetched["text"] == "mine"

    @pytest.mark.asyncio
    async def test_wrong_type_reports_field(self, test_client, created_user_id):
        note = await _create_note(test_client, created_user_id)

        response = await test_client.put(
            f"/user/{created_user_id}/note/{note['id']}",
            content=b'{"order": "high"}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["message"] == (
            'Request body contains an invalid value for the "order" field (at position 16)'
        )


class TestDeleteNote:

    @pytest.mark.asyncio
    async def test_delete(self, test_client, created_user_id):
        note = await _create_note(test_client, created_user_id)

        response = await test_client.delete(f"/user/{created_user_id}/note/{note['id']}")

        assert response.status_code == 200
        assert response.content == b""
        assert (await test_client.get(f"/user/{created_user_id}/note/{note['id']}")).status_code == 404
        assert (await test_client.delete(f"/user/{created_user_id}/note/{note['id']}")).status_code == 404
        assert (await test_client.get(f"/user/{created_user_id}/notes")).json() == {"notes": []}

    @pytest.mark.asyncio
    async def test_other_user_cannot_delete(self, test_client, created_user_id, other_user_id):
        note = await _create_note(test_client, created_user_id)

        response = await test_client.delete(f"/user/{other_user_id}/note/{note['id']}")

        assert response.status_code == 404
        listing = (await test_client.get(f"/user/{created_user_id}/notes")).json()
        assert listing["notes"] == [note["id"]]


class TestStoreFailures:

    @pytest.mark.asyncio
    async def test_database_unavailable(self, app, test_client, user_id):
        app.state.note_service = MagicMock()
        app.state.note_service.list_notes = AsyncMock(side_effect=DatabaseConnectionError())

        response = await test_client.get(f"/user/{user_id}/notes")

        assert response.status_code == 503
        assert response.json()["error"] == "database_unavailable"

    @pytest.mark.asyncio
    async def test_database_error_is_generic(self, app, test_client, user_id):
        app.state.note_service = MagicMock()
        app.state.note_service.list_notes = AsyncMock(
            side_effect=DatabaseError(context={"operation": "list_notes", "error_type": "ProgrammingError"})
        )

        response = await test_client.get(f"/user/{user_id}/notes")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "server_error"
        assert body["details"] is None
        assert "ProgrammingError" not in response.text

    @pytest.mark.asyncio
    async def test_unexpected_error(self, app, user_id):
        app.state.note_service = MagicMock()
        app.state.note_service.list_notes = AsyncMock(side_effect=RuntimeError("boom"))

        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get(f"/user/{user_id}/notes")

        assert response.status_code == 500
        assert response.json()["error"] == "internal_server_error"
        assert "boom" not in response.text


class TestHandlerDeadline:

    @pytest.mark.asyncio
    async def test_slow_handler_times_out(self, settings_factory, user_id):
        settings = settings_factory(api=APISettings(read_timeout=5.0, write_timeout=0.05))
        app = create_app(settings)

        async def slow_listing(db, owner):
            await asyncio.sleep(0.5)
            return []

        app.state.note_service = MagicMock()
        app.state.note_service.list_notes = AsyncMock(side_effect=slow_listing)
        try:
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
                response = await client.get(f"/user/{user_id}/notes")
        finally:
            await app.state.database.dispose()

        assert response.status_code == 504
        assert response.json()["message"] == "Request processing exceeded the write timeout"
