"""
HTTP contract: camelCase payloads, error codes and statuses.

The lifespan is not entered (no `with TestClient(...)`), so dependencies are
swapped for in-memory fakes through app.dependency_overrides.
"""
import pytest
from fastapi.testclient import TestClient

from conftest import FREE_HACKATHON_ID, PAID_HACKATHON_ID, FakeEvaluator, FakeGateway
from hackhub import config, deps
from hackhub.main import app
from hackhub.payment_client import compute_signature


@pytest.fixture
def client(storage):
    app.dependency_overrides[deps.get_storage] = lambda: storage
    app.dependency_overrides[deps.get_gateway] = FakeGateway
    app.dependency_overrides[deps.get_evaluator] = lambda: FakeEvaluator(scores=[80, 100])
    yield TestClient(app)
    app.dependency_overrides.clear()


def _register(client, hackathon_id=PAID_HACKATHON_ID, user_id="u1", **extra):
    body = {"userId": user_id, "name": "Meera", "email": f"{user_id}@campus.edu", **extra}
    return client.post(f"/api/hackathons/{hackathon_id}/participants", json=body)


def test_health_reports_storage_mode(client):
    resp = client.get("/health")

    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "storage": "durable"}


def test_storage_diagnostics(client):
    body = client.get("/api/diag/storage").json()

    assert body["mode"] == "durable"
    assert body["fallbackReason"] is None


def test_config_diagnostics_hide_secrets(client):
    body = client.get("/api/diag/config").json()

    assert "has_razorpay_key_secret" in body
    assert not any("secret" in str(v).lower() for v in body.values() if isinstance(v, str))


def test_get_hackathon(client):
    resp = client.get(f"/api/hackathons/{PAID_HACKATHON_ID}")

    assert resp.status_code == 200
    assert resp.json()["paymentRequired"] is True
    assert resp.json()["upiId"] == "x@bank"


def test_register_paid_hackathon(client):
    resp = _register(client)

    assert resp.status_code == 201
    body = resp.json()
    assert body["hackathonPaymentRequired"] is True
    assert body["upiId"] == "x@bank"
    assert body["paymentStatus"] == "pending"
    assert body["userId"] == "u1"


def test_duplicate_registration_is_409(client):
    _register(client)
    resp = _register(client)

    assert resp.status_code == 409
    assert resp.json()["error"] == "duplicate_registration"


def test_unknown_hackathon_is_404(client):
    resp = _register(client, hackathon_id="nope")

    assert resp.status_code == 404
    assert resp.json()["error"] == "not_found"


def test_unknown_request_fields_are_rejected(client):
    resp = _register(client, isAdmin=True)

    assert resp.status_code == 422
    body = resp.json()
    assert body["error"] == "validation_error"
    assert body["details"][0]["loc"][-1] == "isAdmin"


def test_missing_required_field_uses_error_envelope(client):
    resp = client.post(
        f"/api/hackathons/{FREE_HACKATHON_ID}/participants",
        json={"name": "Meera", "email": "m@campus.edu"},
    )

    assert resp.status_code == 422
    body = resp.json()
    assert body["error"] == "validation_error"
    assert isinstance(body["detail"], str)
    assert any(d["loc"][-1] == "userId" for d in body["details"])


def test_register_accepts_client_built_participant(client):
    body = {
        "id": "participant-1718000000000",
        "userId": "u9",
        "name": "Meera",
        "email": "u9@campus.edu",
        "phone": "9999999999",
        "college": "NIT",
        "skills": ["python", "react"],
        "experience": "2 years",
        "teamName": "Byte Club",
        "teammates": ["Ravi"],
        "submissionDate": "2024-06-10T08:30:00.000Z",
        "status": "approved",
    }

    resp = client.post(f"/api/hackathons/{FREE_HACKATHON_ID}/participants", json=body)

    assert resp.status_code == 201
    assert resp.json()["id"] == "participant-1718000000000"
    assert resp.json()["submissionDate"] == "2024-06-10T08:30:00.000Z"


def test_withdraw(client):
    participant_id = _register(client, FREE_HACKATHON_ID).json()["id"]

    resp = client.delete(f"/api/hackathons/{FREE_HACKATHON_ID}/participants/{participant_id}")

    assert resp.status_code == 200
    assert resp.json()["participantId"] == participant_id
    assert client.get(f"/api/hackathons/{FREE_HACKATHON_ID}").json()["participants"] == []


def test_update_payment_details(client):
    resp = client.put(
        f"/api/hackathons/{FREE_HACKATHON_ID}/payment-details",
        json={"upiId": "club@upi", "paymentRequired": True},
    )

    assert resp.status_code == 200
    assert resp.json()["upiId"] == "club@upi"
    assert resp.json()["paymentRequired"] is True


def test_payment_flow(client):
    participant_id = _register(client).json()["id"]

    created = client.post(f"/api/payments/create/{PAID_HACKATHON_ID}/{participant_id}", json={"amount": 499})
    assert created.status_code == 201
    order = created.json()["order"]
    assert order["amount"] == 499
    assert created.json()["payment"]["status"] == "pending"

    bad = client.post(
        "/api/payments/verify",
        json={"paymentId": "pay_1", "orderId": order["id"], "signature": "forged"},
    )
    assert bad.status_code == 400
    assert bad.json()["error"] == "invalid_signature"

    signature = compute_signature(config.gateway_secret(), order["id"], "pay_1")
    ok = client.post(
        "/api/payments/verify",
        json={"paymentId": "pay_1", "orderId": order["id"], "signature": signature},
    )
    assert ok.status_code == 200
    assert ok.json()["success"] is True

    payment = client.get(f"/api/payments/{order['id']}").json()
    assert payment["status"] == "completed"
    participant = client.get(f"/api/hackathons/{PAID_HACKATHON_ID}").json()["participants"][0]
    assert participant["paymentStatus"] == "completed"
    assert participant["paymentId"] == "pay_1"


def test_invalid_amount_is_validation_error(client):
    participant_id = _register(client).json()["id"]

    resp = client.post(f"/api/payments/create/{PAID_HACKATHON_ID}/{participant_id}", json={"amount": -10})

    assert resp.status_code == 400
    assert resp.json()["error"] == "validation_error"


def test_payment_for_free_hackathon(client):
    participant_id = _register(client, FREE_HACKATHON_ID).json()["id"]

    resp = client.post(f"/api/payments/create/{FREE_HACKATHON_ID}/{participant_id}", json={"amount": 100})

    assert resp.status_code == 400
    assert resp.json()["error"] == "payment_not_required"


def test_mark_failed(client):
    participant_id = _register(client).json()["id"]
    order_id = client.post(
        f"/api/payments/create/{PAID_HACKATHON_ID}/{participant_id}", json={"amount": 499}
    ).json()["order"]["id"]

    resp = client.post("/api/payments/fail", json={"orderId": order_id, "reason": "timeout"})

    assert resp.status_code == 200
    assert resp.json()["status"] == "failed"
    again = client.post("/api/payments/fail", json={"orderId": order_id})
    assert again.status_code == 409
    assert again.json()["error"] == "invalid_payment_state"


def test_unknown_payment_is_404(client):
    resp = client.get("/api/payments/order_missing")

    assert resp.status_code == 404


def test_project_flow(client):
    first = _register(client, FREE_HACKATHON_ID, user_id="u1", university="IIT Bombay").json()["id"]
    second = _register(client, FREE_HACKATHON_ID, user_id="u2", university="IIT Bombay").json()["id"]
    base = f"/api/hackathons/{FREE_HACKATHON_ID}"

    for pid, link in ((first, "https://github.com/a/one"), (second, "https://github.com/b/two")):
        resp = client.post(
            f"{base}/submit-project",
            json={"participantId": pid, "githubLink": link, "projectDescription": "A useful tool"},
        )
        assert resp.status_code == 200
        assert resp.json()["projectSubmission"]["githubLink"] == link

    evaluated = client.post(f"{base}/evaluate-project", json={"participantId": first, "userId": "judge-1"})
    assert evaluated.status_code == 200
    assert evaluated.json()["evaluation"]["evaluatedBy"] == "judge-1"

    ranked = client.post(f"{base}/rank-projects")
    assert ranked.status_code == 200
    assert sorted(r["rank"] for r in ranked.json()["rankings"]) == [1, 2]

    analytics = client.get(f"{base}/analytics").json()
    assert analytics["totalParticipants"] == 2
    assert analytics["universities"] == {"IIT Bombay": 2}
    assert analytics["submissionStats"] == {"total": 2, "evaluated": 1, "averageScore": 80}


def test_rank_without_submissions_is_400(client):
    resp = client.post(f"/api/hackathons/{FREE_HACKATHON_ID}/rank-projects")

    assert resp.status_code == 400
    assert resp.json()["error"] == "no_submissions"


def test_metrics_endpoint(client):
    resp = client.get("/metrics/")

    assert resp.status_code == 200
    assert "registrations_total" in resp.text
