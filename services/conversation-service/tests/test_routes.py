import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from dependencies import get_ephemeral_audio, get_handler
from routes import audio_router, conversations_router, languages_router

PATIENT = {"patient_name": "Ana Morales", "doctor_name": "Dr. Reyes"}


@pytest.fixture
def client(handler, ephemeral_audio):
    app = FastAPI()
    app.include_router(conversations_router)
    app.include_router(languages_router)
    app.include_router(audio_router)
    app.dependency_overrides[get_handler] = lambda: handler
    app.dependency_overrides[get_ephemeral_audio] = lambda: ephemeral_audio
    with TestClient(app) as client:
        yield client


def _start(client, owner_id="dr-reyes"):
    response = client.post(
        "/conversations", json={"owner_id": owner_id, "patient_info": PATIENT}
    )
    assert response.status_code == 201
    return response.json()


def _upload(client, conversation_id, audio=b"spoken-audio", **form):
    data = {"target_language": "es", "source_language": "en", **form}
    return client.post(
        f"/conversations/{conversation_id}/recordings",
        files={"audio": ("take.webm", audio, "audio/webm")},
        data=data,
    )


def test_start_and_get_conversation(client):
    created = _start(client)

    response = client.get(f"/conversations/{created['id']}")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "active"
    assert body["patient_info"]["patient_name"] == "Ana Morales"
    assert body["session_info"]["exchange_count"] == 0


def test_unknown_conversation_is_404(client):
    assert client.get("/conversations/missing").status_code == 404
    assert client.post("/conversations/missing/complete").status_code == 404
    assert client.delete("/conversations/missing").status_code == 404
    assert _upload(client, "missing").status_code == 404


def test_submit_recording_is_accepted(client):
    conversation = _start(client)

    response = _upload(
        client,
        conversation["id"],
        duration_seconds="3.5",
        started_at="2026-03-02T09:30:00",
    )

    assert response.status_code == 202
    body = response.json()
    assert body["status"] == "processing"
    assert body["target_language"] == "es"
    assert body["duration_seconds"] == 3.5

    saved = client.get(f"/conversations/{conversation['id']}").json()
    assert saved["session_info"]["exchange_count"] == 1
    assert saved["exchanges"][0]["id"] == body["id"]


def test_empty_recording_is_422(client):
    conversation = _start(client)

    response = _upload(client, conversation["id"], audio=b"")

    assert response.status_code == 422
    saved = client.get(f"/conversations/{conversation['id']}").json()
    assert saved["exchanges"] == []


def test_lifecycle_conflicts_are_409(client):
    conversation_id = _start(client)["id"]

    assert client.post(f"/conversations/{conversation_id}/complete").status_code == 409
    assert client.post(f"/conversations/{conversation_id}/archive").status_code == 409


def test_list_and_delete(client):
    first = _start(client)
    _upload(client, first["id"])
    second = _start(client, owner_id="dr-lee")

    listed = client.get("/conversations", params={"owner_id": "dr-reyes"}).json()
    assert [c["id"] for c in listed] == [first["id"]]

    assert client.delete(f"/conversations/{second['id']}").status_code == 204
    assert client.get(f"/conversations/{second['id']}").status_code == 404


def test_playback_and_playlist_routes(client):
    conversation = _start(client)

    playback = client.get(f"/conversations/{conversation['id']}/playback")
    playlist = client.get(f"/conversations/{conversation['id']}/playlist/es")

    assert playback.status_code == 200
    assert playback.json()["exchanges"] == []
    assert playlist.status_code == 200
    assert playlist.json() == []


def test_languages(client):
    response = client.get("/languages")

    assert response.status_code == 200
    assert len(response.json()) == 11


def test_ephemeral_audio_route(client, ephemeral_audio):
    ref = ephemeral_audio.put(b"mp3-bytes", "audio/mpeg")

    response = client.get(f"/audio/ephemeral/{ref.value}")

    assert response.status_code == 200
    assert response.content == b"mp3-bytes"
    assert response.headers["content-type"] == "audio/mpeg"
    assert client.get("/audio/ephemeral/blob:expired").status_code == 404
