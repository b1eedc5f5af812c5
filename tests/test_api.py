"""HTTP-level tests for the community endpoints."""
from community.core.security import create_access_token

from conftest import auth_headers

BASE = "/api/v1/community"


async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test_write_requires_auth(client, post):
    resp = await client.post(f"{BASE}/comments/{post.id}", json={"contents": "hi"})
    assert resp.status_code == 401
    assert resp.json()["code"] == "unauthorized"
    assert resp.headers["www-authenticate"] == "Bearer"


async def test_garbage_token_rejected(client, post):
    resp = await client.post(
        f"{BASE}/comments/{post.id}",
        json={"contents": "hi"},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert resp.status_code == 401
    assert resp.json()["code"] == "invalid_token"


async def test_token_for_unknown_user_rejected(client, post):
    headers = {"Authorization": f"Bearer {create_access_token(424242)}"}
    resp = await client.post(f"{BASE}/comments/{post.id}", json={"contents": "hi"}, headers=headers)
    assert resp.status_code == 401


async def test_comment_and_reply_flow(client, post, alice, bob):
    resp = await client.post(f"{BASE}/comments/{post.id}", json={"contents": "C1"}, headers=auth_headers(alice))
    assert resp.status_code == 201
    c1 = resp.json()
    assert c1["parent_comment_id"] is None
    assert c1["user"]["username"] == alice.username
    assert c1["like_count"] == 0

    resp = await client.post(f"{BASE}/replies/{c1['id']}", json={"contents": "R1"}, headers=auth_headers(bob))
    assert resp.status_code == 201
    r1 = resp.json()
    assert r1["parent_comment_id"] == c1["id"]
    assert r1["post_id"] == post.id

    resp = await client.post(f"{BASE}/replies/{r1['id']}", json={"contents": "R1a"}, headers=auth_headers(alice))
    assert resp.status_code == 409
    assert resp.json()["code"] == "nesting_depth_exceeded"

    resp = await client.get(f"{BASE}/comments/{post.id}")
    body = resp.json()
    assert resp.status_code == 200
    assert body["page_info"] == {"current_page": 0, "current_size": 1, "total_pages": 1, "total_size": 1}
    assert body["items"][0]["replies_count"] == 1

    resp = await client.get(f"{BASE}/replies/{c1['id']}")
    assert [item["id"] for item in resp.json()["items"]] == [r1["id"]]


async def test_blank_contents_rejected(client, post, alice):
    resp = await client.post(f"{BASE}/comments/{post.id}", json={"contents": "   "}, headers=auth_headers(alice))
    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == "bad_input"
    assert body["errors"][0]["field"] == "body.contents"


async def test_missing_body_rejected(client, post, alice):
    resp = await client.post(f"{BASE}/comments/{post.id}", json={}, headers=auth_headers(alice))
    assert resp.status_code == 400
    assert resp.json()["code"] == "bad_input"


async def test_non_integer_page_params(client, post):
    resp = await client.get(f"{BASE}/comments/{post.id}", params={"page": "two"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "bad_input"

    resp = await client.get(f"{BASE}/comments/{post.id}", params={"size": "lots"})
    assert resp.status_code == 400


async def test_missing_post_is_404(client, alice):
    resp = await client.post(f"{BASE}/comments/9999", json={"contents": "hi"}, headers=auth_headers(alice))
    assert resp.status_code == 404
    assert resp.json()["code"] == "post_not_found"


async def test_restricted_user_forbidden(client, post, banned):
    resp = await client.post(f"{BASE}/comments/{post.id}", json={"contents": "spam"}, headers=auth_headers(banned))
    assert resp.status_code == 403
    assert resp.json()["code"] == "user_restricted"


async def test_bad_page_params(client, post):
    resp = await client.get(f"{BASE}/comments/{post.id}", params={"page": -1})
    assert resp.status_code == 400
    assert resp.json()["code"] == "invalid_page"

    resp = await client.get(f"{BASE}/comments/{post.id}", params={"size": 0})
    assert resp.status_code == 400


async def test_like_roundtrip_and_double_like(client, post, alice, bob):
    resp = await client.post(f"{BASE}/comments/{post.id}", json={"contents": "C1"}, headers=auth_headers(alice))
    comment_id = resp.json()["id"]

    resp = await client.post(f"{BASE}/comments/likes/{comment_id}", headers=auth_headers(bob))
    assert resp.status_code == 200
    assert resp.json() == {"target_id": comment_id, "like_count": 1, "is_liked": True, "message": "Liked"}

    resp = await client.post(f"{BASE}/comments/likes/{comment_id}", headers=auth_headers(bob))
    assert resp.status_code == 409
    assert resp.json()["code"] == "already_liked"

    resp = await client.get(f"{BASE}/comments/{post.id}", headers=auth_headers(bob))
    assert resp.json()["items"][0]["is_liked"] is True
    resp = await client.get(f"{BASE}/comments/{post.id}")
    assert resp.json()["items"][0]["is_liked"] is False

    resp = await client.delete(f"{BASE}/comments/likes/{comment_id}", headers=auth_headers(bob))
    assert resp.status_code == 200
    assert resp.json()["like_count"] == 0

    resp = await client.delete(f"{BASE}/comments/likes/{comment_id}", headers=auth_headers(bob))
    assert resp.status_code == 404


async def test_edit_comment(client, post, alice, bob):
    resp = await client.post(f"{BASE}/comments/{post.id}", json={"contents": "typo"}, headers=auth_headers(alice))
    comment_id = resp.json()["id"]

    resp = await client.patch(f"{BASE}/comments/{comment_id}", json={"contents": "fixed"}, headers=auth_headers(bob))
    assert resp.status_code == 403

    resp = await client.patch(f"{BASE}/comments/{comment_id}", json={"contents": "fixed"}, headers=auth_headers(alice))
    assert resp.status_code == 200
    assert resp.json()["contents"] == "fixed"


async def test_delete_reports_cascade(client, post, alice, bob):
    resp = await client.post(f"{BASE}/comments/{post.id}", json={"contents": "C1"}, headers=auth_headers(alice))
    c1_id = resp.json()["id"]
    for text in ("R1", "R2"):
        await client.post(f"{BASE}/replies/{c1_id}", json={"contents": text}, headers=auth_headers(bob))

    resp = await client.delete(f"{BASE}/comments/{c1_id}", headers=auth_headers(bob))
    assert resp.status_code == 403

    resp = await client.delete(f"{BASE}/comments/{c1_id}", headers=auth_headers(alice))
    assert resp.status_code == 200
    assert resp.json() == {"deleted_count": 2, "message": "Comment and 2 replies deleted"}

    resp = await client.delete(f"{BASE}/comments/{c1_id}", headers=auth_headers(alice))
    assert resp.status_code == 404

    resp = await client.get(f"{BASE}/replies/{c1_id}")
    assert resp.status_code == 404


async def test_delete_single_comment_message(client, post, alice):
    resp = await client.post(f"{BASE}/comments/{post.id}", json={"contents": "C1"}, headers=auth_headers(alice))
    resp = await client.delete(f"{BASE}/comments/{resp.json()['id']}", headers=auth_headers(alice))
    assert resp.json() == {"deleted_count": 0, "message": "Comment deleted"}


async def test_post_likes(client, post, alice, bob):
    resp = await client.post(f"{BASE}/posts/likes/{post.id}", headers=auth_headers(alice))
    assert resp.status_code == 403
    assert resp.json()["code"] == "self_like"

    resp = await client.post(f"{BASE}/posts/likes/{post.id}", headers=auth_headers(bob))
    assert resp.status_code == 200
    assert resp.json()["like_count"] == 1

    resp = await client.delete(f"{BASE}/posts/likes/{post.id}", headers=auth_headers(bob))
    assert resp.json()["like_count"] == 0
