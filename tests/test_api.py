# =============================================================================
# API Tests — FastAPI TestClient
# =============================================================================
#
# Exercises the routes end to end: session cookie, credential management,
# chat, ingestion jobs, processed files and insights. Simulated latency is
# disabled; background ingestion tasks finish before TestClient returns.
# =============================================================================

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

from fastapi.testclient import TestClient

from finsage.config import Settings
from finsage.main import create_app
from finsage.services.ingestion import IngestionPipeline

SAMPLE_CSV = b"description,amount\nRent,1200\nCoffee,4.50\nBooks,30\n"


def _client(**app_kwargs) -> TestClient:
    app = create_app(config=Settings(simulate_latency=False), **app_kwargs)
    return TestClient(app)


def _client_with_key(**app_kwargs) -> TestClient:
    client = _client(**app_kwargs)
    response = client.put("/settings/api-key", json={"api_key": "test-key"})
    assert response.status_code == 200
    return client


def _upload(client: TestClient, name: str, content: bytes, content_type: str):
    return client.post("/ingest", files={"file": (name, content, content_type)})


class TestHealth:
    def test_health(self):
        response = _client().get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
        assert response.json()["service"] == "FinancialSage"


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


class TestApiKeyEndpoints:
    def test_status_without_key(self):
        response = _client().get("/settings/api-key")
        assert response.json() == {"has_api_key": False, "message": None}

    def test_set_then_status(self):
        client = _client_with_key()
        assert client.get("/settings/api-key").json()["has_api_key"] is True

    def test_session_cookie_issued(self):
        client = _client()
        client.get("/settings/api-key")
        assert client.cookies.get("finsage_session")

    def test_custom_cookie_name(self):
        app = create_app(config=Settings(simulate_latency=False, session_cookie_name="sid"))
        client = TestClient(app)
        client.get("/settings/api-key")
        assert client.cookies.get("sid")
        assert client.cookies.get("finsage_session") is None

    def test_forged_cookie_is_replaced(self):
        app = create_app(config=Settings(simulate_latency=False))
        for i in range(5):
            response = TestClient(app).get(
                "/settings/api-key", headers={"Cookie": f"finsage_session=forged-{i}"},
            )
            issued = response.cookies.get("finsage_session")
            assert issued and issued != f"forged-{i}"
        assert not any(f"forged-{i}" in app.state.registry for i in range(5))

    def test_blank_key_rejected(self):
        response = _client().put("/settings/api-key", json={"api_key": "   "})
        assert response.status_code == 400
        assert response.json()["error"] == "EmptyInput"

    def test_remove_key(self):
        client = _client_with_key()
        response = client.delete("/settings/api-key")
        assert response.status_code == 200
        assert client.get("/settings/api-key").json()["has_api_key"] is False

    def test_sessions_do_not_share_keys(self):
        app = create_app(config=Settings(simulate_latency=False))
        first, second = TestClient(app), TestClient(app)
        first.put("/settings/api-key", json={"api_key": "test-key"})
        assert second.get("/settings/api-key").json()["has_api_key"] is False


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class TestChat:
    def test_hello(self):
        response = _client_with_key().post("/chat", json={"message": "hello"})
        assert response.status_code == 200
        body = response.json()
        assert body["message"]["content"] == (
            "Hello! I'm your financial assistant. How can I help you today?"
        )
        assert body["message"]["confidence"] == 0.98
        assert body["message"]["role"] == "assistant"
        assert body["rule"] == "exact"

    def test_without_key_returns_401(self):
        response = _client().post("/chat", json={"message": "hello"})
        assert response.status_code == 401
        assert response.json()["error"] == "CredentialMissing"

    def test_after_removing_key_returns_401(self):
        client = _client_with_key()
        client.delete("/settings/api-key")
        response = client.post("/chat", json={"message": "show me total"})
        assert response.status_code == 401
        assert response.json()["error"] == "CredentialMissing"

    def test_blank_message_returns_400(self):
        client = _client_with_key()
        response = client.post("/chat", json={"message": "   "})
        assert response.status_code == 400
        assert response.json()["error"] == "EmptyInput"
        assert client.get("/chat/history").json()["messages"] == []

    def test_history_records_both_turns(self):
        client = _client_with_key()
        client.post("/chat", json={"message": "hello"})
        messages = client.get("/chat/history").json()["messages"]
        assert [m["role"] for m in messages] == ["user", "assistant"]
        assert messages[0]["content"] == "hello"
        assert messages[0]["confidence"] is None

    def test_follow_up_uses_history(self):
        client = _client_with_key()
        client.post("/chat", json={"message": "show me expenses"})
        response = client.post("/chat", json={"message": "why did that go up"})
        assert response.json()["rule"] == "context_expense_followup"
        assert response.json()["message"]["confidence"] == 0.85

    def test_clear_history(self):
        client = _client_with_key()
        client.post("/chat", json={"message": "hello"})
        assert client.delete("/chat/history").status_code == 200
        assert client.get("/chat/history").json()["messages"] == []


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


class TestIngest:
    def test_csv_upload_completes(self):
        client = _client_with_key()
        response = _upload(client, "statement.csv", SAMPLE_CSV, "text/csv")
        assert response.status_code == 202
        task_id = response.json()["task_id"]

        status = client.get(f"/ingest/{task_id}").json()
        assert status["status"] == "SUCCESS"
        assert status["progress"] == 100
        data = status["result"]["financial_data"]
        assert len(data["descriptions"]) == 4
        assert len(data["descriptions"]) == len(data["amounts"])
        assert status["result"]["metadata"]["ocr_used"] is False
        assert status["result"]["charts"]["recommended"] == ["pie", "bar", "line"]

    def test_pdf_upload_uses_ocr(self):
        client = _client_with_key()
        response = _upload(client, "statement.pdf", b"%PDF-1.4", "application/pdf")
        status = client.get(f"/ingest/{response.json()['task_id']}").json()
        assert status["status"] == "SUCCESS"
        assert status["result"]["metadata"]["ocr_used"] is True
        assert "FINANCIAL STATEMENT - Q2 2023" in status["result"]["text"]

    def test_oversized_upload_rejected_before_ingestion(self):
        pipeline = MagicMock(spec=IngestionPipeline)
        pipeline.ingest = AsyncMock()
        client = _client_with_key(pipeline=pipeline)

        big = b"0" * (15 * 1024 * 1024)
        response = _upload(client, "huge.csv", big, "text/csv")

        assert response.status_code == 413
        assert "10 MB" in response.json()["detail"]
        pipeline.ingest.assert_not_called()
        assert client.get("/files").json()["files"] == []

    def test_upload_limit_follows_app_config(self):
        pipeline = MagicMock(spec=IngestionPipeline)
        pipeline.ingest = AsyncMock()
        app = create_app(
            config=Settings(simulate_latency=False, max_upload_mb=1),
            pipeline=pipeline,
        )
        client = TestClient(app)
        client.put("/settings/api-key", json={"api_key": "test-key"})

        response = _upload(client, "big.csv", b"0" * (2 * 1024 * 1024), "text/csv")

        assert response.status_code == 413
        assert "1 MB" in response.json()["detail"]
        pipeline.ingest.assert_not_called()

    def test_unsupported_type_rejected(self):
        client = _client_with_key()
        response = _upload(client, "notes.txt", b"hello", "text/plain")
        assert response.status_code == 415
        assert response.json()["error"] == "UnsupportedFileType"

    def test_upload_without_key_rejected(self):
        response = _upload(_client(), "statement.csv", SAMPLE_CSV, "text/csv")
        assert response.status_code == 401

    def test_failed_csv_job_reports_failure(self):
        client = _client_with_key()
        response = _upload(client, "broken.csv", b"\xff\xfe\xfa", "text/csv")
        assert response.status_code == 202
        status = client.get(f"/ingest/{response.json()['task_id']}").json()
        assert status["status"] == "FAILURE"
        assert status["error"] == "Failed to process CSV file"
        assert status["result"] is None

    def test_unknown_task_returns_404(self):
        assert _client().get("/ingest/does-not-exist").status_code == 404

    def test_files_lists_processed_uploads(self):
        client = _client_with_key()
        _upload(client, "a.csv", SAMPLE_CSV, "text/csv")
        _upload(client, "b.csv", SAMPLE_CSV, "text/csv")
        files = client.get("/files").json()["files"]
        assert [f["metadata"]["filename"] for f in files] == ["a.csv", "b.csv"]


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------


class TestInsights:
    def test_sample_insights_without_uploads(self):
        body = _client().get("/insights").json()
        assert body["source_filename"] is None
        assert len(body["insights"]) == 8
        assert body["insights"][0] == {
            "title": "Total Amount",
            "value": "$12,345.67",
            "description": "Sum of all transactions",
            "icon": "dollar-sign",
            "trend": None,
        }

    def test_insights_follow_latest_upload(self):
        client = _client_with_key()
        _upload(client, "statement.csv", SAMPLE_CSV, "text/csv")
        body = client.get("/insights").json()
        assert body["source_filename"] == "statement.csv"
        insights = {i["title"]: i for i in body["insights"]}
        # 1200 + 4.50 + 30 + the blank fourth row
        assert insights["Total Amount"]["value"] == "$1,234.50"
        assert insights["Transaction Count"]["value"] == 4
