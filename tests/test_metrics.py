from gymflow.config import Settings

settings = Settings()
HEADERS = {
    "X-API-Key": settings.api_key,
    "X-API-Ver": "v1",
}


def test_checkin_metrics(client):
    resp = client.post(
        "/v1/attendance/check", headers=HEADERS, json={"scanned_value": "unknown-card"}
    )
    assert resp.status_code == 200
    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    body = metrics.text
    assert 'checkin_decisions_total{status="denied",reason="unknown_qr"}' in body
    assert "checkin_latency_seconds_bucket" in body


def test_lifecycle_metrics(client):
    member = client.post(
        "/v1/members",
        headers=HEADERS,
        json={"name": "Metric", "phone": "01001234567", "gender": "female"},
    ).json()
    subscription = client.post(
        "/v1/subscriptions", headers=HEADERS, json={"member_id": member["id"], "plan_months": 1}
    ).json()
    client.post(f"/v1/subscriptions/{subscription['id']}/freeze", headers=HEADERS, json={"days": 1})
    client.post("/v1/guest-passes", headers=HEADERS, json={"name": "Guest"})

    body = client.get("/metrics").text
    assert 'subscription_changes_total{action="create"}' in body
    assert "freezes_created_total" in body
    assert "guest_passes_created_total" in body
