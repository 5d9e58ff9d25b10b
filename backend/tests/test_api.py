import pytest

from memopad import config, llm


def _body(memo):
    return {"memoId": memo.id, "title": memo.title, "content": memo.content}


class TestSummaryEndpoint:
    def test_generates_and_persists(self, client, repository, make_memo, fake_llm):
        memo = repository.add_memo(make_memo())
        fake_llm.reply = "Two short sentences."

        response = client.post("/api/summary", json=_body(memo))

        assert response.status_code == 200
        assert response.json() == {"summary": "Two short sentences."}
        stored = repository.get_memo_by_id(memo.id)
        assert stored.summary == "Two short sentences."
        assert stored.updated_at > memo.updated_at

    def test_missing_content_is_rejected_without_llm_call(self, client, fake_llm):
        response = client.post("/api/summary", json={"memoId": "m1", "title": "T"})

        assert response.status_code == 400
        assert response.json()["error"]
        assert fake_llm.calls == []

    def test_empty_body_is_rejected(self, client, fake_llm):
        response = client.post("/api/summary")

        assert response.status_code == 400
        assert fake_llm.calls == []

    def test_missing_credential(self, client, monkeypatch, make_memo):
        monkeypatch.setattr(config, "LLM_API_KEY", None)

        response = client.post("/api/summary", json=_body(make_memo()))

        assert response.status_code == 500
        assert "LLM_API_KEY" in response.json()["error"]

    def test_llm_failure(self, client, repository, make_memo, fake_llm):
        memo = repository.add_memo(make_memo())
        fake_llm.error = llm.LLMError("LLM request failed: timeout")

        response = client.post("/api/summary", json=_body(memo))

        assert response.status_code == 500
        assert response.json() == {"error": "LLM request failed: timeout"}
        assert repository.get_memo_by_id(memo.id).summary is None

    def test_write_back_failure_still_returns_summary(self, client, make_memo, fake_llm):
        fake_llm.reply = "Summary for a memo that is not stored."

        response = client.post("/api/summary", json=_body(make_memo()))

        assert response.status_code == 200
        assert response.json()["summary"] == "Summary for a memo that is not stored."


class TestTagsEndpoint:
    def test_generates_and_persists(self, client, repository, make_memo, fake_llm):
        memo = repository.add_memo(make_memo(tags=["old"]))
        fake_llm.reply = 'Sure! ["travel", "japan", "food"]'

        response = client.post("/api/tags", json=_body(memo))

        assert response.status_code == 200
        assert response.json() == {"tags": ["travel", "japan", "food"]}
        assert repository.get_memo_by_id(memo.id).tags == ["travel", "japan", "food"]

    def test_unparseable_reply_yields_empty_tags(self, client, repository, make_memo, fake_llm):
        memo = repository.add_memo(make_memo(tags=["old"]))
        fake_llm.reply = ""

        response = client.post("/api/tags", json=_body(memo))

        assert response.json() == {"tags": []}
        assert repository.get_memo_by_id(memo.id).tags == []

    def test_missing_fields(self, client, fake_llm):
        response = client.post("/api/tags", json={"memoId": "", "title": "T", "content": "C"})

        assert response.status_code == 400
        assert fake_llm.calls == []

    def test_write_back_failure_still_returns_tags(self, client, make_memo, fake_llm):
        fake_llm.reply = "a, b"

        response = client.post("/api/tags", json=_body(make_memo()))

        assert response.status_code == 200
        assert response.json() == {"tags": ["a", "b"]}


class TestMemoEndpoints:
    def test_crud_round(self, client):
        created = client.post(
            "/api/memos",
            json={"title": "T", "content": "C", "category": "idea", "tags": []},
        )
        assert created.status_code == 201
        memo = created.json()
        assert memo["id"]
        assert memo["createdAt"] == memo["updatedAt"]

        updated = client.put(
            f"/api/memos/{memo['id']}",
            json={"title": "T2", "content": "C2", "category": "work", "tags": ["x"]},
        )
        assert updated.status_code == 200
        assert updated.json()["title"] == "T2"
        assert updated.json()["updatedAt"] > memo["updatedAt"]
        assert updated.json()["createdAt"] == memo["createdAt"]

        assert client.get(f"/api/memos/{memo['id']}").json()["category"] == "work"

        assert client.delete(f"/api/memos/{memo['id']}").status_code == 204
        assert client.get(f"/api/memos/{memo['id']}").status_code == 404

    def test_invalid_category_rejected(self, client):
        response = client.post("/api/memos", json={"title": "T", "category": "all"})

        assert response.status_code == 422

    def test_list_with_filters(self, client, repository, make_memo):
        repository.add_memo(make_memo(title="Buy milk", category="personal"))
        repository.add_memo(make_memo(title="Quarterly plan", category="work", tags=["milk-run"]))
        repository.add_memo(make_memo(title="Unrelated", category="work"))

        assert len(client.get("/api/memos").json()) == 3
        assert len(client.get("/api/memos", params={"category": "work"}).json()) == 2
        assert len(client.get("/api/memos", params={"q": "MILK"}).json()) == 2
        both = client.get("/api/memos", params={"q": "milk", "category": "work"}).json()
        assert [memo["title"] for memo in both] == ["Quarterly plan"]

    def test_categories(self, client):
        keys = [item["key"] for item in client.get("/api/categories").json()]

        assert "idea" in keys
        assert "all" not in keys


@pytest.mark.parametrize("path", ["/api/summary", "/api/tags"])
@pytest.mark.parametrize("body", [[], "text", 5, ["memoId", "title", "content"]])
def test_non_object_json_body_is_rejected(client, fake_llm, path, body):
    response = client.post(path, json=body)

    assert response.status_code == 400
    assert response.json() == {"error": "memoId, title and content are required."}
    assert fake_llm.calls == []


@pytest.mark.parametrize("path", ["/api/summary", "/api/tags"])
def test_malformed_json_body_is_rejected(client, fake_llm, path):
    response = client.post(path, content=b"{not json", headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert "error" in response.json()
    assert fake_llm.calls == []
