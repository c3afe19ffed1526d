from unittest.mock import MagicMock

from fastapi.testclient import TestClient

from retail_assistant.api.main import create_app


def _train(client: TestClient, question: str, answer: str) -> dict:
    response = client.post("/faq/train", json={"question": question, "answer": answer})
    assert response.status_code == 200
    return response.json()


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["components"]["assistant"] == "ready"


def test_uninitialized_service_returns_503() -> None:
    client = TestClient(create_app())
    assert client.get("/health").json()["status"] == "unhealthy"
    assert client.get("/faq/stats").status_code == 503


def test_train_then_update_same_question(client: TestClient) -> None:
    first = _train(client, "What are your store hours?", "9 to 9")
    second = _train(client, "  What are your store hours?  ", "10 to 8")

    assert first["action"] == "created"
    assert second == {"id": first["id"], "action": "updated"}
    assert client.get(f"/faq/{first['id']}").json()["answer"] == "10 to 8"


def test_train_rejects_blank_fields(client: TestClient) -> None:
    response = client.post("/faq/train", json={"question": "   ", "answer": "x"})
    assert response.status_code == 400


def test_bulk_train(client: TestClient) -> None:
    faqs = [
        {"question": "Do you deliver?", "answer": "Yes, within the city."},
        {"question": "Do you ship abroad?"},
    ]
    response = client.post("/faq/train/bulk", json={"faqs": faqs})
    assert response.status_code == 200
    data = response.json()
    assert data["created"] == 1
    assert data["failed"] == 1
    assert data["errors"][0]["index"] == 1


def test_bulk_train_rejects_oversized_request(client: TestClient) -> None:
    faqs = [{"question": f"q{i}", "answer": "a"} for i in range(101)]
    response = client.post("/faq/train/bulk", json={"faqs": faqs})
    assert response.status_code == 400
    assert client.get("/faq/stats").json()["total"] == 0


def test_ask(client: TestClient) -> None:
    _train(client, "Do you deliver?", "Yes, within the city.")

    faq = client.post("/faq/ask", json={"question": "Do you deliver?"}).json()
    greeting = client.post("/faq/ask", json={"question": "hello"}).json()
    template = client.post("/faq/ask", json={"question": "what is the discount impact"}).json()

    assert faq["type"] == "faq"
    assert faq["answer"] == "Yes, within the city."
    assert faq["trace"] == ["faq"]
    assert greeting["type"] == "greeting"
    assert template["type"] == "template"
    assert template["score"] is None


def test_ask_empty_question(client: TestClient) -> None:
    assert client.post("/faq/ask", json={"question": "  "}).status_code == 400


def test_list_and_search(client: TestClient) -> None:
    for i in range(3):
        _train(client, f"Question {i}", f"Answer {i}")

    page = client.get("/faq", params={"page": 1, "limit": 2}).json()
    search = client.get("/faq", params={"search": "answer 1"}).json()

    assert page["total_results"] == 3
    assert page["total_pages"] == 2
    assert page["has_next"] is True
    assert len(page["results"]) == 2
    assert "embedding" not in page["results"][0]
    assert [r["question"] for r in search["results"]] == ["Question 1"]


def test_entry_lifecycle(client: TestClient) -> None:
    entry_id = _train(client, "Do you deliver?", "Yes")["id"]

    patched = client.patch(f"/faq/{entry_id}", json={"answer": "Yes, daily."})
    assert patched.status_code == 200
    assert patched.json()["answer"] == "Yes, daily."

    assert client.delete(f"/faq/{entry_id}").json() == {"deleted": entry_id}
    assert client.get(f"/faq/{entry_id}").status_code == 404
    assert client.delete(f"/faq/{entry_id}").status_code == 404
    assert client.patch(f"/faq/{entry_id}", json={"answer": "x"}).status_code == 404


def test_clear_all(client: TestClient) -> None:
    _train(client, "q1", "a1")
    _train(client, "q2", "a2")

    assert client.delete("/faq").json() == {"deleted": 2}
    assert client.get("/faq/stats").json()["total"] == 0


def test_stats(client: TestClient) -> None:
    _train(client, "q1", "a1")
    client.post("/faq/ask", json={"question": "hi"})

    data = client.get("/stats").json()

    assert data["assistant_stats"]["faq_entries"] == 1
    assert data["assistant_stats"]["templates"] == 33
    assert data["assistant_stats"]["latency"]["total"]["count"] == 1
    assert "faq_similarity_tau" in data["config"]


def test_templates(client: TestClient) -> None:
    all_templates = client.get("/templates").json()
    replenishment = client.get("/templates", params={"category": "replenishment"}).json()

    assert all_templates["count"] == 33
    assert replenishment["count"] == 4
    assert client.get("/templates", params={"category": "weather"}).status_code == 400


def test_template_match(client: TestClient) -> None:
    data = client.post("/templates/match", json={"text": "top item in pune"}).json()
    assert data["match"]["template"]["action_id"] == "getTopPerformingItem"
    assert data["match"]["extracted_params"]["location"] == "pune"
    assert data["match"]["strategy"] == "location"

    assert client.post("/templates/match", json={"text": "xyzzy"}).json()["match"] is None


def test_unexpected_error_hides_details(service) -> None:
    service.matcher = MagicMock()
    service.matcher.match.side_effect = RuntimeError("index file /srv/data/templates.bin corrupted")
    client = TestClient(create_app(service), raise_server_exceptions=False)

    response = client.post("/templates/match", json={"text": "top products"})

    assert response.status_code == 500
    assert response.json() == {"detail": "Internal server error"}


def test_update_to_existing_question_is_rejected(client: TestClient) -> None:
    _train(client, "Do you deliver?", "Yes")
    other = _train(client, "Do you ship abroad?", "No")["id"]

    response = client.patch(f"/faq/{other}", json={"question": "Do you deliver?"})

    assert response.status_code == 400
    assert client.get(f"/faq/{other}").json()["question"] == "Do you ship abroad?"
