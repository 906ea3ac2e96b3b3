import pytest

from prefix_trie import IGNORE_CASE, Trie
from trie_service import SEED_WORDS, create_app


@pytest.fixture
def trie():
    return Trie({"cat": 1, "car": 2, "cart": 3})


@pytest.fixture
def client(trie):
    app = create_app(trie, seed=False)
    app.config["TESTING"] = True
    return app.test_client()


def test_index_lists_endpoints(client):
    body = client.get("/").get_json()
    assert body["service"] == "Trie Lookup Service"
    assert "POST /clear" in body["endpoints"]


def test_health(client):
    body = client.get("/health").get_json()
    assert body["status"] == "healthy"
    assert body["trie_size"] == 3


def test_stats(client):
    body = client.get("/stats").get_json()
    assert body["total_keys"] == 3
    assert body["seed_words"] == 0
    assert body["comparer"] == "ordinal"


def test_seeded_app():
    app = create_app(Trie(comparer=IGNORE_CASE), seed=True)
    client = app.test_client()
    assert client.get("/health").get_json()["trie_size"] == len(SEED_WORDS)
    body = client.get("/search?q=Docker").get_json()
    assert body["found"] is True
    assert body["value"] == "docker"


def test_search(client):
    body = client.get("/search?q=car").get_json()
    assert body == {"key": "car", "found": True, "value": 2}
    body = client.get("/search?q=ca").get_json()
    assert body["found"] is False
    assert body["value"] is None


def test_missing_query_is_bad_request(client):
    assert client.get("/search").status_code == 400
    assert client.get("/prefix?q=").status_code == 400
    assert client.delete("/delete").status_code == 400


def test_prefix_is_sorted_and_limited(client):
    body = client.get("/prefix?q=ca").get_json()
    assert body["matches"] == ["car", "cart", "cat"]
    assert body["entries"][0] == {"key": "car", "value": 2}
    body = client.get("/prefix?q=ca&limit=2").get_json()
    assert body["count"] == 2
    assert body["matches"] == ["car", "cart"]
    body = client.get("/prefix?q=ca&limit=bogus").get_json()
    assert body["count"] == 3
    body = client.get("/prefix?q=dog").get_json()
    assert body["matches"] == []


def test_insert(client, trie):
    resp = client.post("/insert", json={"key": "cab", "value": 4})
    assert resp.status_code == 201
    assert resp.get_json()["trie_size"] == 4
    assert trie["cab"] == 4


def test_insert_value_defaults_to_key(client, trie):
    client.post("/insert", json={"key": " cow "})
    assert trie["cow"] == "cow"


def test_insert_duplicate_conflicts(client, trie):
    resp = client.post("/insert", json={"key": "cat", "value": 9})
    assert resp.status_code == 409
    assert resp.get_json()["type"] == "DuplicateKeyError"
    assert trie["cat"] == 1


def test_insert_replace(client, trie):
    resp = client.post("/insert", json={"key": "cat", "value": 9, "replace": True})
    assert resp.status_code == 201
    assert trie["cat"] == 9
    assert len(trie) == 3


def test_insert_rejects_bad_keys(client):
    assert client.post("/insert", json={}).status_code == 400
    assert client.post("/insert", json={"key": "x" * 257}).status_code == 400
    resp = client.post("/insert", json={"key": 12})
    assert resp.status_code == 400
    assert resp.get_json()["type"] == "InvalidKeyError"


def test_delete(client, trie):
    resp = client.delete("/delete?q=car")
    assert resp.status_code == 200
    assert resp.get_json() == {"key": "car", "deleted": True, "trie_size": 2}
    assert "cart" in trie
    assert client.delete("/delete?q=car").status_code == 404


def test_clear(client, trie):
    body = client.post("/clear").get_json()
    assert body == {"cleared": 3, "trie_size": 0}
    assert len(trie) == 0


def test_insert_rejects_non_object_body(client, trie):
    resp = client.post("/insert", json=[1])
    assert resp.status_code == 400
    assert len(trie) == 3
