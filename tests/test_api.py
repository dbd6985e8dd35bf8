import base64
import csv
import io
import json


def _upload(client, session_id, jpeg_bytes, content_type="image/jpeg"):
    return client.post(
        f"/api/v1/sessions/{session_id}/analyses",
        files={"image": ("site.jpg", jpeg_bytes, content_type)},
    )


def test_health(client):
    res = client.get("/api/health")
    assert res.status_code == 200
    assert res.json()["status"] == "ok"


def test_request_id_is_echoed(client):
    res = client.get("/api/health", headers={"X-Request-ID": "abc-123"})
    assert res.headers["x-request-id"] == "abc-123"
    assert client.get("/api/health").headers["x-request-id"]


def test_session_lifecycle(client):
    created = client.post("/api/v1/sessions").json()
    assert created["recordCount"] == 0

    sid = created["id"]
    assert client.get(f"/api/v1/sessions/{sid}").status_code == 200
    assert client.delete(f"/api/v1/sessions/{sid}").status_code == 204
    assert client.get(f"/api/v1/sessions/{sid}").status_code == 404
    assert client.delete(f"/api/v1/sessions/{sid}").status_code == 404


def test_unknown_session(client):
    res = client.get("/api/v1/sessions/nope/dashboard")
    assert res.status_code == 404
    assert res.json() == {"error": "Session not found"}


def test_empty_dashboard_shows_demo_figures(client, session_id):
    body = client.get(f"/api/v1/sessions/{session_id}/dashboard").json()
    assert body["isDemo"] is True
    assert body["averageScore"] == 87.4
    assert body["averageProgress"] == 42
    assert len(body["trendSeries"]) == 7


def test_upload_analysis_is_recorded(client, session_id, fake_gemini, analysis_json, jpeg_bytes):
    fake_gemini(text=analysis_json)
    res = _upload(client, session_id, jpeg_bytes)
    assert res.status_code == 201
    record = res.json()
    assert record["safetyScore"] == 72
    assert record["complianceStatus"] == "Minor Violations"
    assert record["imageUrl"] == "data:image/jpeg;base64," + base64.b64encode(jpeg_bytes).decode()

    history = client.get(f"/api/v1/sessions/{session_id}/analyses").json()
    assert [h["id"] for h in history] == [record["id"]]

    dash = client.get(f"/api/v1/sessions/{session_id}/dashboard").json()
    assert dash["isDemo"] is False
    assert dash["averageScore"] == 72.0
    assert dash["totalHazards"] == 2
    assert {(c["name"], c["count"]) for c in dash["hazardBreakdown"]} == {("PPE", 1), ("Housekeeping", 1)}
    assert dash["trendSeries"] == [{"label": "Scan 1", "score": 72}]


def test_capture_analysis(client, session_id, fake_gemini, analysis_json, jpeg_bytes):
    fake_gemini(text=analysis_json)
    data_url = "data:image/png;base64," + base64.b64encode(jpeg_bytes).decode()
    res = client.post(f"/api/v1/sessions/{session_id}/analyses/capture", json={"image": data_url})
    assert res.status_code == 201
    assert res.json()["imageUrl"] == data_url


def test_capture_rejects_bad_base64(client, session_id, fake_gemini):
    res = client.post(f"/api/v1/sessions/{session_id}/analyses/capture", json={"image": "data:image/png;base64,@@"})
    assert res.status_code == 400


def test_provider_failure_leaves_history_untouched(client, session_id, fake_gemini, jpeg_bytes):
    fake_gemini(text="{\"safetyScore\": 10}")
    res = _upload(client, session_id, jpeg_bytes)
    assert res.status_code == 502
    assert res.json() == {"error": "Analysis failed"}
    assert client.get(f"/api/v1/sessions/{session_id}/analyses").json() == []
    assert client.get(f"/api/v1/sessions/{session_id}/dashboard").json()["isDemo"] is True


def test_upload_validation(client, session_id, fake_gemini, jpeg_bytes):
    res = _upload(client, session_id, b"%PDF-1.4", content_type="application/pdf")
    assert res.status_code == 400
    res = _upload(client, session_id, b"")
    assert res.status_code == 400


def test_upload_too_large(client, session_id, fake_gemini, monkeypatch):
    from app.core.config import settings

    monkeypatch.setattr(settings, "MAX_FILE_SIZE", 8)
    res = _upload(client, session_id, b"\xff\xd8" * 10)
    assert res.status_code == 413


def test_three_scans_average(client, session_id, fake_gemini, analysis_payload, jpeg_bytes):
    for score in (80, 90, 70):
        fake_gemini(text=json.dumps({**analysis_payload, "safetyScore": score}))
        assert _upload(client, session_id, jpeg_bytes).status_code == 201

    dash = client.get(f"/api/v1/sessions/{session_id}/dashboard").json()
    assert dash["averageScore"] == 80.0
    assert dash["totalHazards"] == 6
    assert dash["scanCount"] == 3


def test_ask_about_recorded_analysis(client, session_id, fake_gemini, analysis_json, jpeg_bytes):
    models = fake_gemini(text=analysis_json)
    record_id = _upload(client, session_id, jpeg_bytes).json()["id"]

    models.text = "The worker near the stairs has no hard hat."
    res = client.post(
        f"/api/v1/sessions/{session_id}/analyses/{record_id}/ask",
        json={"question": "Where is the PPE issue?"},
    )
    assert res.status_code == 200
    assert res.json()["answer"] == "The worker near the stairs has no hard hat."
    assert res.json()["recordId"] == record_id
    assert models.calls[-1]["contents"][0]["inline_data"]["data"] == jpeg_bytes


def test_ask_unknown_record(client, session_id):
    res = client.post(f"/api/v1/sessions/{session_id}/analyses/missing/ask", json={"question": "?"})
    assert res.status_code == 404


def test_chat_upload(client, fake_gemini, jpeg_bytes):
    fake_gemini(text="Scaffolding looks complete.")
    res = client.post(
        "/api/v1/chat",
        files={"image": ("site.jpg", jpeg_bytes, "image/jpeg")},
        data={"question": "Is the scaffolding finished?"},
    )
    assert res.status_code == 200
    assert res.json()["answer"] == "Scaffolding looks complete."


def test_chat_failure_is_502(client, fake_gemini, jpeg_bytes):
    fake_gemini(error=RuntimeError("down"))
    res = client.post(
        "/api/v1/chat",
        files={"image": ("site.jpg", jpeg_bytes, "image/jpeg")},
        data={"question": "Anything wrong?"},
    )
    assert res.status_code == 502
    assert res.json() == {"error": "Question could not be answered"}


def test_generate_image_fallback(client, fake_gemini):
    fake_gemini(error=RuntimeError("quota"))
    body = client.post("/api/v1/images/generate").json()
    assert body["fallback"] is True
    assert body["imageUrl"].startswith("data:image/svg+xml;base64,")


def test_reports_search_and_print(client, session_id, fake_gemini, analysis_payload, jpeg_bytes):
    fake_gemini(text=json.dumps({**analysis_payload, "hazards": ["Exposed wire"], "safetyScore": 45,
                                 "complianceStatus": "Critical Risk"}))
    critical = _upload(client, session_id, jpeg_bytes).json()
    fake_gemini(text=json.dumps({**analysis_payload, "hazards": [], "safetyScore": 95,
                                 "complianceStatus": "Compliant", "recommendations": []}))
    clean = _upload(client, session_id, jpeg_bytes).json()

    listing = client.get(f"/api/v1/sessions/{session_id}/reports").json()
    assert listing["total"] == 2
    assert [i["id"] for i in listing["items"]] == [clean["id"], critical["id"]]

    wire = client.get(f"/api/v1/sessions/{session_id}/reports", params={"q": "WIRE"}).json()
    assert [i["id"] for i in wire["items"]] == [critical["id"]]
    assert wire["items"][0]["scoreBand"] == "critical"

    report = client.get(f"/api/v1/sessions/{session_id}/reports/{clean['id']}").json()
    assert report["reportId"] == clean["id"][:8].upper()
    assert report["scoreBand"] == "good"
    assert report["hazards"] == []
    assert report["hazardsNote"] == "No specific hazards detected."
    assert report["evidenceImageUrl"] == clean["imageUrl"]


def test_report_export(client, session_id, fake_gemini, analysis_json, jpeg_bytes):
    fake_gemini(text=analysis_json)
    record = _upload(client, session_id, jpeg_bytes).json()

    res = client.get(f"/api/v1/sessions/{session_id}/reports/export")
    assert res.status_code == 200
    assert res.headers["content-type"].startswith("text/csv")
    rows = list(csv.reader(io.StringIO(res.text)))
    assert rows[0][0] == "id"
    assert rows[1][0] == record["id"]
    assert rows[1][5] == "Worker missing hard hat; Debris on walkway"

    res = client.get(f"/api/v1/sessions/{session_id}/reports/export", params={"format": "json"})
    exported = res.json()
    assert exported[0]["id"] == record["id"]
    assert "imageUrl" not in exported[0]

    assert client.get(f"/api/v1/sessions/{session_id}/reports/export", params={"format": "xml"}).status_code == 422


def test_analysis_finishing_after_session_end_is_dropped(client, session_id, fake_gemini, analysis_json, jpeg_bytes, monkeypatch):
    from app.api.v1 import analyses

    fake_gemini(text=analysis_json)
    registry = client.app.state.sessions
    session = registry.get(session_id)
    real_analyze = analyses.analyze_construction_image

    async def analyze_then_end_session(*args, **kwargs):
        registry.discard(session_id)
        return await real_analyze(*args, **kwargs)

    monkeypatch.setattr(analyses, "analyze_construction_image", analyze_then_end_session)
    res = _upload(client, session_id, jpeg_bytes)

    assert res.status_code == 404
    assert res.json() == {"error": "Session not found"}
    assert len(session.history) == 0
