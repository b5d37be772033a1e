from conftest import sign_in


def auth_headers(data):
    return {"Authorization": f"Bearer {data['token']}"}


def conversation(cid="c1", title="Launch plan", **extra):
    body = {
        "id": cid,
        "title": title,
        "messages": [{"role": "user", "content": "Draft a PRD"}],
        "files": [],
    }
    body.update(extra)
    return body


def test_requires_authentication(client):
    assert client.get("/api/conversations").status_code == 401
    assert client.post("/api/conversations", json={"conversation": conversation()}).status_code == 401
    resp = client.get("/api/conversations/c1")
    assert resp.status_code == 401
    assert resp.json()["kind"] == "unauthenticated"


def test_save_and_read_back(client, sender):
    headers = auth_headers(sign_in(client, sender))

    resp = client.post("/api/conversations", json={"conversation": conversation()}, headers=headers)
    assert resp.status_code == 201
    saved = resp.json()["data"]["conversation"]
    assert saved["id"] == "c1"
    assert saved["messages"] == [{"role": "user", "content": "Draft a PRD"}]

    listed = client.get("/api/conversations", headers=headers).json()["data"]["conversations"]
    assert [c["id"] for c in listed] == ["c1"]

    one = client.get("/api/conversations/c1", headers=headers)
    assert one.status_code == 200
    assert one.json()["data"]["conversation"]["title"] == "Launch plan"


def test_bare_object_and_camel_case_timestamps(client, sender):
    headers = auth_headers(sign_in(client, sender))
    body = conversation(createdAt="2024-04-01T09:00:00", updatedAt="2024-04-02T09:00:00")

    resp = client.post("/api/conversations", json=body, headers=headers)
    assert resp.status_code == 201
    saved = resp.json()["data"]["conversation"]
    assert saved["created_at"].startswith("2024-04-01T09:00:00")
    assert saved["updated_at"].startswith("2024-04-02T09:00:00")


def test_update_keeps_created_at(client, sender, clock):
    headers = auth_headers(sign_in(client, sender))
    first = client.post("/api/conversations", json=conversation(), headers=headers).json()["data"]["conversation"]

    clock.advance(minutes=5)
    resp = client.put("/api/conversations/c1", json=conversation(title="Launch plan v2"), headers=headers)
    assert resp.status_code == 200
    updated = resp.json()["data"]["conversation"]
    assert updated["title"] == "Launch plan v2"
    assert updated["created_at"] == first["created_at"]
    assert updated["updated_at"] != first["updated_at"]


def test_title_is_required(client, sender):
    headers = auth_headers(sign_in(client, sender))
    resp = client.post("/api/conversations", json={"conversation": {"id": "c1"}}, headers=headers)
    assert resp.status_code == 400
    assert resp.json()["kind"] == "invalid_input"


def test_other_users_conversation_is_hidden(client, sender):
    alice = auth_headers(sign_in(client, sender, "alice@example.com"))
    bob = auth_headers(sign_in(client, sender, "bob@example.com"))
    client.post("/api/conversations", json={"conversation": conversation()}, headers=alice)

    assert client.get("/api/conversations", headers=bob).json()["data"]["conversations"] == []
    resp = client.get("/api/conversations/c1", headers=bob)
    assert resp.status_code == 404
    assert resp.json()["kind"] == "not_found"

    resp = client.put("/api/conversations/c1", json=conversation(title="hijack"), headers=bob)
    assert resp.status_code == 403
    assert resp.json()["kind"] == "forbidden"

    assert client.delete("/api/conversations/c1", headers=bob).status_code == 204
    assert client.get("/api/conversations/c1", headers=alice).json()["data"]["conversation"]["title"] == "Launch plan"


def test_delete_one_and_all(client, sender):
    headers = auth_headers(sign_in(client, sender))
    for cid in ("c1", "c2", "c3"):
        client.post("/api/conversations", json={"conversation": conversation(cid)}, headers=headers)

    assert client.delete("/api/conversations/c1", headers=headers).status_code == 204
    assert client.get("/api/conversations/c1", headers=headers).status_code == 404

    assert client.delete("/api/conversations", headers=headers).status_code == 204
    assert client.get("/api/conversations", headers=headers).json()["data"]["conversations"] == []
