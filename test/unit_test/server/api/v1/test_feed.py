"""
Unit tests for the social feed endpoints.

Tests cover post creation and validation, visibility rules, reaction
toggling, threaded comments and the anonymous and member feeds.
"""

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio


async def _post(client: AsyncClient, headers, **payload):
    return await client.post("/api/v1/feed/posts", json=payload, headers=headers)


class TestCreatePost:
    async def test_create_extracts_hashtags_and_mentions(self, client: AsyncClient, register):
        _, headers = await register("alice@example.com", display_name="Alice")
        bob, bob_headers = await register("bob@example.com")

        response = await _post(client, headers, content="Hello @bob! #Careers #careers #mob")
        assert response.status_code == 201
        body = response.json()
        assert body["author_name"] == "Alice"
        assert body["hashtags"] == ["careers", "mob"]
        assert body["mentions"] == ["bob"]
        assert body["like_count"] == 0
        assert body["visibility"] == "public"

        notifications = (await client.get("/api/v1/notifications", headers=bob_headers)).json()
        assert notifications["unread_count"] == 1
        assert notifications["data"][0]["type"] == "MENTION"
        assert notifications["data"][0]["data"] == {"post_id": body["id"]}

    async def test_mention_pushed_after_it_is_stored(self, client: AsyncClient, register, pushed_notifications):
        _, headers = await register("alice@example.com")
        bob, bob_headers = await register("bob@example.com")

        await _post(client, headers, content="Thanks @bob")
        stored = (await client.get("/api/v1/notifications", headers=bob_headers)).json()["data"]
        assert [(user_id, payload["id"]) for user_id, payload in pushed_notifications] == [(bob["id"], stored[0]["id"])]

    async def test_self_mention_does_not_notify(self, client: AsyncClient, register):
        _, headers = await register("alice@example.com")
        await _post(client, headers, content="Note to @alice")
        count = await client.get("/api/v1/notifications/unread-count", headers=headers)
        assert count.json() == {"count": 0}

    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"content": "   "},
            {"content": "x" * 2001},
            {"content": "pics", "media_urls": ["a", "b", "c", "d"]},
            {"media_urls": [" "]},
        ],
    )
    async def test_invalid_posts_rejected(self, client: AsyncClient, register, payload):
        _, headers = await register("alice@example.com")
        response = await _post(client, headers, **payload)
        assert response.status_code == 400

    async def test_media_only_post_allowed(self, client: AsyncClient, register):
        _, headers = await register("alice@example.com")
        response = await _post(client, headers, type="image", media_urls=["https://cdn.example.com/a.png"])
        assert response.status_code == 201

    async def test_post_rate_limit(self, client: AsyncClient, register):
        _, headers = await register("alice@example.com")
        assert (await _post(client, headers, content="one")).status_code == 201
        assert (await _post(client, headers, content="two")).status_code == 201

        limited = await _post(client, headers, content="three")
        assert limited.status_code == 429
        assert "Retry-After" in limited.headers

    async def test_requires_authentication(self, client: AsyncClient):
        response = await client.post("/api/v1/feed/posts", json={"content": "hi"})
        assert response.status_code == 401


class TestVisibility:
    async def test_private_post_hidden_from_others(self, client: AsyncClient, register):
        _, alice_headers = await register("alice@example.com")
        _, bob_headers = await register("bob@example.com")
        post_id = (await _post(client, alice_headers, content="diary", visibility="private")).json()["id"]

        assert (await client.get(f"/api/v1/feed/posts/{post_id}", headers=alice_headers)).status_code == 200
        assert (await client.get(f"/api/v1/feed/posts/{post_id}", headers=bob_headers)).status_code == 404
        assert (await client.get(f"/api/v1/feed/posts/{post_id}")).status_code == 404

    async def test_connections_post_visible_after_accept(self, client: AsyncClient, register):
        alice, alice_headers = await register("alice@example.com")
        _, bob_headers = await register("bob@example.com")
        post_id = (await _post(client, alice_headers, content="friends only", visibility="connections")).json()["id"]
        assert (await client.get(f"/api/v1/feed/posts/{post_id}", headers=bob_headers)).status_code == 404

        request = await client.post(
            "/api/v1/connections/request", json={"addressee_id": alice["id"]}, headers=bob_headers
        )
        await client.put(f"/api/v1/connections/{request.json()['id']}/accept", headers=alice_headers)

        assert (await client.get(f"/api/v1/feed/posts/{post_id}", headers=bob_headers)).status_code == 200
        feed = (await client.get("/api/v1/feed", headers=bob_headers)).json()
        assert [p["id"] for p in feed["posts"]] == [post_id]

    async def test_view_count_increments(self, client: AsyncClient, register):
        _, headers = await register("alice@example.com")
        post_id = (await _post(client, headers, content="hello")).json()["id"]
        await client.get(f"/api/v1/feed/posts/{post_id}")
        second = await client.get(f"/api/v1/feed/posts/{post_id}")
        assert second.json()["view_count"] == 2


class TestDeletePost:
    async def test_only_author_can_delete(self, client: AsyncClient, register):
        _, alice_headers = await register("alice@example.com")
        _, bob_headers = await register("bob@example.com")
        post_id = (await _post(client, alice_headers, content="mine")).json()["id"]

        assert (await client.delete(f"/api/v1/feed/posts/{post_id}", headers=bob_headers)).status_code == 403
        assert (await client.delete(f"/api/v1/feed/posts/{post_id}", headers=alice_headers)).status_code == 204
        assert (await client.get(f"/api/v1/feed/posts/{post_id}")).status_code == 404


class TestReactions:
    async def test_toggle_and_switch(self, client: AsyncClient, register):
        _, alice_headers = await register("alice@example.com")
        _, bob_headers = await register("bob@example.com")
        post_id = (await _post(client, alice_headers, content="react to me")).json()["id"]
        url = f"/api/v1/feed/posts/{post_id}/react"

        first = await client.post(url, json={"type": "like"}, headers=bob_headers)
        assert first.json() == {"reaction": "like", "like_count": 1}

        switched = await client.post(url, json={"type": "celebrate"}, headers=bob_headers)
        assert switched.json() == {"reaction": "celebrate", "like_count": 1}

        post = (await client.get(f"/api/v1/feed/posts/{post_id}", headers=bob_headers)).json()
        assert post["reaction_counts"] == {"celebrate": 1}
        assert post["user_reaction"] == "celebrate"

        removed = await client.post(url, json={"type": "celebrate"}, headers=bob_headers)
        assert removed.json() == {"reaction": None, "like_count": 0}

        # Only the first reaction notifies the author
        count = await client.get("/api/v1/notifications/unread-count", headers=alice_headers)
        assert count.json() == {"count": 1}

    async def test_unknown_reaction_type(self, client: AsyncClient, register):
        _, headers = await register("alice@example.com")
        post_id = (await _post(client, headers, content="hello")).json()["id"]
        response = await client.post(f"/api/v1/feed/posts/{post_id}/react", json={"type": "angry"}, headers=headers)
        assert response.status_code == 400

    async def test_react_to_missing_post(self, client: AsyncClient, register):
        _, headers = await register("alice@example.com")
        response = await client.post("/api/v1/feed/posts/missing/react", json={}, headers=headers)
        assert response.status_code == 404


class TestComments:
    async def test_comments_and_replies(self, client: AsyncClient, register):
        _, alice_headers = await register("alice@example.com")
        _, bob_headers = await register("bob@example.com", display_name="Bob")
        post_id = (await _post(client, alice_headers, content="thoughts?")).json()["id"]
        url = f"/api/v1/feed/posts/{post_id}/comments"

        top = await client.post(url, json={"content": "Great post"}, headers=bob_headers)
        assert top.status_code == 201
        assert top.json()["author_name"] == "Bob"
        top_id = top.json()["id"]

        reply = await client.post(url, json={"content": "Thanks", "parent_id": top_id}, headers=alice_headers)
        assert reply.status_code == 201
        assert reply.json()["parent_id"] == top_id

        top_level = (await client.get(url)).json()
        assert top_level["total"] == 1
        assert top_level["comments"][0]["reply_count"] == 1

        replies = (await client.get(url, params={"parent_id": top_id})).json()
        assert [c["content"] for c in replies["comments"]] == ["Thanks"]

        post = (await client.get(f"/api/v1/feed/posts/{post_id}")).json()
        assert post["comment_count"] == 2

    async def test_reply_to_unknown_parent(self, client: AsyncClient, register):
        _, headers = await register("alice@example.com")
        post_id = (await _post(client, headers, content="hello")).json()["id"]
        response = await client.post(
            f"/api/v1/feed/posts/{post_id}/comments", json={"content": "x", "parent_id": "nope"}, headers=headers
        )
        assert response.status_code == 404

    async def test_empty_comment_rejected(self, client: AsyncClient, register):
        _, headers = await register("alice@example.com")
        post_id = (await _post(client, headers, content="hello")).json()["id"]
        response = await client.post(f"/api/v1/feed/posts/{post_id}/comments", json={"content": ""}, headers=headers)
        assert response.status_code == 422


class TestFeed:
    async def test_anonymous_feed_shows_public_posts_by_likes(self, client: AsyncClient, register):
        _, alice_headers = await register("alice@example.com")
        _, bob_headers = await register("bob@example.com")
        quiet = (await _post(client, alice_headers, content="quiet")).json()["id"]
        popular = (await _post(client, bob_headers, content="popular")).json()["id"]
        await _post(client, alice_headers, content="hidden", visibility="connections")
        await client.post(f"/api/v1/feed/posts/{popular}/react", json={"type": "like"}, headers=alice_headers)

        feed = (await client.get("/api/v1/feed")).json()
        assert [p["id"] for p in feed["posts"]] == [popular, quiet]
        assert feed["has_more"] is False
        assert all(p["user_reaction"] is None for p in feed["posts"])

    async def test_member_feed_pagination(self, client: AsyncClient, register):
        for index in range(3):
            _, headers = await register(f"author{index}@example.com")
            await _post(client, headers, content=f"post {index}")
        _, viewer = await register("viewer@example.com")

        first = (await client.get("/api/v1/feed", params={"page": 1, "limit": 2}, headers=viewer)).json()
        assert len(first["posts"]) == 2
        assert first["has_more"] is True

        second = (await client.get("/api/v1/feed", params={"page": 2, "limit": 2}, headers=viewer)).json()
        assert len(second["posts"]) == 1
        assert second["has_more"] is False

    async def test_blocked_authors_hidden(self, client: AsyncClient, register):
        alice, alice_headers = await register("alice@example.com")
        _, bob_headers = await register("bob@example.com")
        await _post(client, alice_headers, content="hello")
        await client.post("/api/v1/connections/block", json={"blocked_id": alice["id"]}, headers=bob_headers)

        feed = (await client.get("/api/v1/feed", headers=bob_headers)).json()
        assert feed["posts"] == []

    async def test_limit_above_maximum(self, client: AsyncClient):
        response = await client.get("/api/v1/feed", params={"limit": 101})
        assert response.status_code == 422
