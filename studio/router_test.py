import json
from unittest.mock import AsyncMock

import httpx
import pytest

from conftest import auth_headers, make_user
from core.config import MEDIA_DIR, WEBHOOK_PATH, media_url_prefix
from media.factory import get_media_store
from media.local import LocalMediaStore
from predictions.store import get_prediction
from studio.poller import http_status_check, poll_until_complete

POSE = "The female model from [Image 1] in the [Image 2] outfit is sitting on the steps in [Image 3]; 85mm lens."
IMAGE_URL = "https://cdn.test/final.png"

SYNTHESIS_BODY = {
    "identity_url": "https://cdn.test/me.jpg",
    "outfit_url": "https://cdn.test/outfit.jpg",
    "background_url": "https://cdn.test/bg.jpg",
    "pose_prompt": POSE,
}
DUAL_SYNTHESIS_BODY = {
    "identity_a_url": "https://cdn.test/a.jpg",
    "outfit_a_url": "https://cdn.test/a-outfit.jpg",
    "identity_b_url": "https://cdn.test/b.jpg",
    "outfit_b_url": "https://cdn.test/b-outfit.jpg",
    "background_url": "https://cdn.test/bg.jpg",
    "pose_prompt": "Two models on the steps.",
}


# ---------------------------
# Options
# ---------------------------
def test_options_are_public(client):
    response = client.get("/studio/options")

    assert response.status_code == 200
    data = response.json()
    assert set(data["pose_presets"]) == {
        "casual", "editorial", "commercial", "lifestyle", "power", "romantic", "athletic", "seated",
    }
    assert set(data["gender_options"]) == {"male", "female", "nonbinary"}
    assert data["synthesis_model"] in data["synthesis_models"]
    assert data["poll_interval_ms"] == 3000
    assert data["max_poll_attempts"] == 120


# ---------------------------
# Request gate
# ---------------------------
@pytest.mark.parametrize(
    "method,path,body",
    [
        ("post", "/studio/poses", {"background_url": "https://cdn.test/bg.jpg"}),
        ("post", "/studio/synthesize", SYNTHESIS_BODY),
        ("post", "/studio/synthesize/async", SYNTHESIS_BODY),
        ("post", "/studio/synthesize/dual/async", DUAL_SYNTHESIS_BODY),
        ("get", "/studio/predictions/pred-1", None),
        ("post", "/studio/media", {"image_url": "https://cdn.test/final.png"}),
    ],
)
def test_missing_bearer_token_is_rejected(client, provider, method, path, body):
    kwargs = {"json": body} if body is not None else {}
    response = getattr(client, method)(path, **kwargs)

    assert response.status_code == 401
    assert response.json()["detail"]["error"] == "authentication_failed"
    assert provider.requests == []


def test_invalid_bearer_token_is_rejected(client, provider):
    response = client.post(
        "/studio/synthesize/async",
        json=SYNTHESIS_BODY,
        headers={"Authorization": "Bearer not-a-token"},
    )

    assert response.status_code == 401
    assert provider.requests == []


def test_missing_csrf_token_is_rejected(client, provider, alice):
    headers = auth_headers(alice)
    del headers["X-CSRF-Token"]

    response = client.post("/studio/synthesize/async", json=SYNTHESIS_BODY, headers=headers)

    assert response.status_code == 403
    assert response.json()["detail"]["message"] == "Security check failed."
    assert provider.requests == []


def test_csrf_token_of_another_user_is_rejected(client, provider, alice, bob):
    headers = auth_headers(alice)
    headers["X-CSRF-Token"] = auth_headers(bob)["X-CSRF-Token"]

    response = client.post("/studio/poses", json={"background_url": "https://cdn.test/bg.jpg"}, headers=headers)

    assert response.status_code == 403
    assert provider.requests == []


def test_user_without_upload_capability_is_rejected(client, provider, db):
    viewer = make_user(db, "viewer@example.com", can_upload=False)

    response = client.post("/studio/synthesize", json=SYNTHESIS_BODY, headers=auth_headers(viewer))

    assert response.status_code == 403
    assert response.json()["detail"]["error"] == "permission_denied"
    assert provider.requests == []


def test_blank_pose_prompt_is_rejected(client, provider, alice):
    body = {**SYNTHESIS_BODY, "pose_prompt": "   "}

    response = client.post("/studio/synthesize", json=body, headers=auth_headers(alice))

    assert response.status_code == 422
    assert provider.requests == []


# ---------------------------
# Poses
# ---------------------------
def test_generate_poses(client, provider, alice):
    poses = [POSE] * 5
    provider.sync_response = {
        "id": "c1",
        "status": "succeeded",
        "output": {"choices": [{"message": {"content": "```json\n" + json.dumps(poses) + "\n```"}}]},
    }

    response = client.post(
        "/studio/poses",
        json={"background_url": "https://cdn.test/bg.jpg", "outfit_url": "  ", "gender": "female"},
        headers=auth_headers(alice),
    )

    assert response.status_code == 200
    assert response.json() == {"poses": poses}
    sent = json.loads(provider.requests[-1].content)["input"]
    assert sent["image_input"] == ["https://cdn.test/bg.jpg"]


def test_generate_dual_poses(client, provider, alice):
    poses = [f"The female model from [Image 1] in the [Image 2] outfit is pose {n}" for n in range(5)]
    provider.sync_response = {"id": "c1", "status": "succeeded", "output": json.dumps(poses)}

    response = client.post(
        "/studio/poses/dual",
        json={
            "background_url": "https://cdn.test/bg.jpg",
            "outfit_a_url": "https://cdn.test/a.jpg",
            "outfit_b_url": "https://cdn.test/b.jpg",
            "pose_preset": "lifestyle",
        },
        headers=auth_headers(alice),
    )

    assert response.status_code == 200
    assert response.json()["poses"] == poses


def test_unparseable_poses_return_debug_snippet(client, provider, alice):
    provider.sync_response = {"id": "c1", "status": "succeeded", "output": "Sorry, no poses today."}

    response = client.post("/studio/poses", json={"background_url": "https://cdn.test/bg.jpg"}, headers=auth_headers(alice))

    assert response.status_code == 502
    detail = response.json()["detail"]
    assert detail["error"] == "parse_error"
    assert detail["debug"]["raw_output"] == "Sorry, no poses today."


def test_unknown_pose_preset_is_rejected(client, alice):
    response = client.post(
        "/studio/poses",
        json={"background_url": "https://cdn.test/bg.jpg", "pose_preset": "disco"},
        headers=auth_headers(alice),
    )

    assert response.status_code == 422


# ---------------------------
# Synchronous synthesis
# ---------------------------
def test_synthesize(client, provider, alice):
    response = client.post("/studio/synthesize", json=SYNTHESIS_BODY, headers=auth_headers(alice))

    assert response.status_code == 200
    assert response.json() == {"image_url": "https://cdn.test/out.png"}


def test_synthesize_dual(client, provider, alice):
    response = client.post("/studio/synthesize/dual", json=DUAL_SYNTHESIS_BODY, headers=auth_headers(alice))

    assert response.status_code == 200
    sent = json.loads(provider.requests[-1].content)["input"]
    assert len(sent["image_input"]) == 5


def test_failed_synthesis_maps_to_502(client, provider, alice):
    provider.sync_response = {"id": "s1", "status": "failed", "error": "NSFW content detected"}

    response = client.post("/studio/synthesize", json=SYNTHESIS_BODY, headers=auth_headers(alice))

    assert response.status_code == 502
    assert response.json()["detail"] == {"error": "prediction_failed", "message": "NSFW content detected"}


# ---------------------------
# Asynchronous synthesis
# ---------------------------
def test_submit_then_poll_reports_in_flight(client, provider, alice):
    headers = auth_headers(alice)

    submitted = client.post("/studio/synthesize/async", json=SYNTHESIS_BODY, headers=headers)
    assert submitted.status_code == 200
    prediction_id = submitted.json()["prediction_id"]

    polled = client.get(f"/studio/predictions/{prediction_id}", headers=headers)

    assert polled.status_code == 200
    assert polled.json() == {"status": "starting", "image_url": None, "message": None}


def test_webhook_wins_and_poll_is_answered_locally(client, db, provider, alice):
    headers = auth_headers(alice)

    submitted = client.post("/studio/synthesize/async", json=SYNTHESIS_BODY, headers=headers)
    prediction_id = submitted.json()["prediction_id"]
    body = json.loads(provider.requests[-1].content)
    assert body["input"]["prompt"].startswith(POSE)
    assert body["webhook"] == "https://studio.test" + WEBHOOK_PATH

    provider.set_status(prediction_id, "processing")
    first_poll = client.get(f"/studio/predictions/{prediction_id}", headers=headers)
    assert first_poll.json() == {"status": "processing", "image_url": None, "message": None}

    delivered = client.post(WEBHOOK_PATH, json={"id": prediction_id, "status": "succeeded", "output": [IMAGE_URL]})
    assert delivered.json() == {"success": True}

    second_poll = client.get(f"/studio/predictions/{prediction_id}", headers=headers)

    assert second_poll.json() == {"status": "succeeded", "image_url": IMAGE_URL, "message": None}
    assert len(provider.calls("GET", "/predictions/")) == 1
    db.expire_all()
    assert get_prediction(db, prediction_id).user_id == alice.id


def test_poll_resolves_when_webhook_never_arrives(client, db, provider, alice):
    headers = auth_headers(alice)
    prediction_id = client.post("/studio/synthesize/async", json=SYNTHESIS_BODY, headers=headers).json()["prediction_id"]

    provider.complete(prediction_id, output=IMAGE_URL)
    polled = client.get(f"/studio/predictions/{prediction_id}", headers=headers)

    assert polled.json()["image_url"] == IMAGE_URL
    db.expire_all()
    assert get_prediction(db, prediction_id).status == "succeeded"

    # Late webhook with a different output does not change the result
    client.post(WEBHOOK_PATH, json={"id": prediction_id, "status": "succeeded", "output": ["https://cdn.test/late.png"]})
    again = client.get(f"/studio/predictions/{prediction_id}", headers=headers)
    assert again.json()["image_url"] == IMAGE_URL


def test_failed_prediction_message(client, provider, alice):
    headers = auth_headers(alice)
    prediction_id = client.post("/studio/synthesize/dual/async", json=DUAL_SYNTHESIS_BODY, headers=headers).json()["prediction_id"]

    client.post(WEBHOOK_PATH, json={"id": prediction_id, "status": "failed", "error": "Out of memory"})
    polled = client.get(f"/studio/predictions/{prediction_id}", headers=headers)

    assert polled.json() == {"status": "failed", "image_url": None, "message": "Out of memory"}


def test_other_user_gets_not_found(client, provider, alice, bob):
    prediction_id = client.post(
        "/studio/synthesize/async", json=SYNTHESIS_BODY, headers=auth_headers(alice)
    ).json()["prediction_id"]
    provider.complete(prediction_id, output=[IMAGE_URL])
    client.post(WEBHOOK_PATH, json={"id": prediction_id, "status": "succeeded", "output": [IMAGE_URL]})

    polled = client.get(f"/studio/predictions/{prediction_id}", headers=auth_headers(bob))

    assert polled.status_code == 404
    assert polled.json()["detail"] == {"error": "not_found", "message": "Prediction not found."}
    assert provider.calls("GET", "/predictions/") == []


def test_unknown_prediction_maps_provider_error(client, provider, alice):
    response = client.get("/studio/predictions/does-not-exist", headers=auth_headers(alice))

    assert response.status_code == 502
    assert response.json()["detail"]["debug"] == {"provider_status": 404}


@pytest.mark.asyncio
async def test_client_poll_loop_against_app(client, provider, alice):
    headers = auth_headers(alice)
    prediction_id = client.post("/studio/synthesize/async", json=SYNTHESIS_BODY, headers=headers).json()["prediction_id"]
    views = []

    def on_progress(status, attempt):
        views.append(status)
        if attempt == 2:
            provider.complete(prediction_id, output=[IMAGE_URL])

    transport = httpx.ASGITransport(app=client.app)
    async with httpx.AsyncClient(transport=transport, base_url="http://studio.test") as http:
        view = await poll_until_complete(
            http_status_check(http, prediction_id, headers=headers),
            on_progress=on_progress,
            sleep=AsyncMock(),
        )

    assert views == ["starting", "starting"]
    assert view["image_url"] == IMAGE_URL


# ---------------------------
# Media library
# ---------------------------
PNG_BYTES = b"\x89PNG\r\n\x1a\nimage-data"


@pytest.fixture
def image_host():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        if request.url.path.endswith("/missing.png"):
            return httpx.Response(404, content=b"gone")
        return httpx.Response(200, content=PNG_BYTES, headers={"Content-Type": "image/png"})

    store = LocalMediaStore(MEDIA_DIR, media_url_prefix(), transport=httpx.MockTransport(handler))
    from app.main import app
    app.dependency_overrides[get_media_store] = lambda: store
    yield requests
    app.dependency_overrides.pop(get_media_store, None)


def test_save_to_media(client, image_host, alice):
    response = client.post("/studio/media", json={"image_url": IMAGE_URL}, headers=auth_headers(alice))

    assert response.status_code == 200
    data = response.json()
    assert data["url"].startswith("https://studio.test/static/media/ai-influencer-")
    assert str(image_host[0].url) == IMAGE_URL

    served = client.get(data["url"].replace("https://studio.test", ""))
    assert served.status_code == 200
    assert served.content == PNG_BYTES


def test_save_to_media_requires_image_url(client, image_host, alice):
    response = client.post("/studio/media", json={"image_url": "  "}, headers=auth_headers(alice))

    assert response.status_code == 422
    assert image_host == []


def test_save_to_media_source_error(client, image_host, alice):
    response = client.post(
        "/studio/media", json={"image_url": "https://cdn.test/missing.png"}, headers=auth_headers(alice)
    )

    assert response.status_code == 502
    assert response.json()["detail"] == {
        "error": "media_error",
        "message": "Failed to save image to the media library.",
        "debug": {"source_status": 404},
    }


def test_save_to_media_needs_upload_capability(client, image_host, db):
    viewer = make_user(db, "viewer@example.com", can_upload=False)

    response = client.post("/studio/media", json={"image_url": IMAGE_URL}, headers=auth_headers(viewer))

    assert response.status_code == 403
    assert image_host == []
