"""
Tests for posts endpoints.
"""
import pytest

from app.models.comment import Comment
from app.models.enums import Tier
from app.models.like import Like
from app.models.post import Post
from app.models.share import Share


def create_post(client, headers, content="Test post content", **fields):
    response = client.post("/api/posts", headers=headers, json={"content": content, **fields})
    assert response.status_code == 201, response.text
    return response.json()["post"]


class TestCreatePost:
    """Test post creation."""

    def test_create_post(self, client, test_user, auth_headers, db):
        """Test creating a post."""
        response = client.post(
            "/api/posts",
            headers=auth_headers,
            json={
                "content": "Test post content",
                "media_url": "https://example.com/cat.png",
                "media_type": "image",
            },
        )
        assert response.status_code == 201
        post = response.json()["post"]
        assert post["content"] == "Test post content"
        assert post["visibility"] == "public"
        assert post["media_type"] == "image"
        assert post["user_id"] == test_user.id
        assert post["author"]["username"] == "testuser"
        assert post["likes_count"] == 0
        assert post["comments_count"] == 0
        assert post["shares_count"] == 0

        db.refresh(test_user)
        assert test_user.posts_count == 1

    def test_create_post_unauthenticated(self, client):
        """Test creating a post without auth fails."""
        response = client.post("/api/posts", json={"content": "Test content"})
        assert response.status_code == 401

    @pytest.mark.parametrize("payload", [
        {},
        {"content": ""},
        {"content": "   "},
        {"content": "x" * 5001},
        {"content": "ok", "visibility": "friends"},
        {"content": "ok", "media_type": "audio"},
    ])
    def test_create_post_invalid(self, client, auth_headers, db, payload):
        response = client.post("/api/posts", headers=auth_headers, json=payload)
        assert response.status_code == 400
        assert response.json()["error"] == "Validation failed"
        assert db.query(Post).count() == 0

    def test_create_post_max_length(self, client, auth_headers):
        post = create_post(client, auth_headers, content="x" * 5000)
        assert len(post["content"]) == 5000


class TestPostVisibility:
    """Single-post reads honour visibility."""

    def test_public_post_readable_anonymously(self, client, auth_headers):
        post = create_post(client, auth_headers)
        response = client.get(f"/api/posts/{post['id']}")
        assert response.status_code == 200
        assert response.json()["id"] == post["id"]

    def test_missing_post(self, client):
        response = client.get("/api/posts/9999")
        assert response.status_code == 404
        assert response.json() == {"error": "Post not found"}

    def test_private_post(self, client, test_user, make_user, headers):
        owner_headers = headers(test_user)
        other_headers = headers(make_user())
        post = create_post(client, owner_headers, visibility="private")

        assert client.get(f"/api/posts/{post['id']}").status_code == 401
        assert client.get(f"/api/posts/{post['id']}", headers=other_headers).status_code == 403
        assert client.get(f"/api/posts/{post['id']}", headers=owner_headers).status_code == 200

    def test_followers_only_post(self, client, test_user, make_user, headers):
        owner_headers = headers(test_user)
        fan = make_user()
        fan_headers = headers(fan)
        post = create_post(client, owner_headers, visibility="followers_only")

        assert client.get(f"/api/posts/{post['id']}", headers=fan_headers).status_code == 403

        client.patch(f"/api/users/{test_user.id}/follow", headers=fan_headers)
        assert client.get(f"/api/posts/{post['id']}", headers=fan_headers).status_code == 200

    def test_invalid_token_treated_as_anonymous_on_reads(self, client, auth_headers):
        post = create_post(client, auth_headers)
        response = client.get(f"/api/posts/{post['id']}", headers={"Authorization": "Bearer nope"})
        assert response.status_code == 200


class TestListPosts:
    """Test the post listing."""

    def test_get_posts_empty(self, client, db):
        """Test getting posts when none exist."""
        response = client.get("/api/posts")
        assert response.status_code == 200
        data = response.json()
        assert data["posts"] == []
        assert data["pagination"] == {
            "limit": 20,
            "offset": 0,
            "sort": "recent",
            "visibility": "public",
            "count": 0,
        }

    def test_recent_is_newest_first(self, client, auth_headers):
        ids = [create_post(client, auth_headers, content=f"post {i}")["id"] for i in range(3)]
        response = client.get("/api/posts")
        assert [p["id"] for p in response.json()["posts"]] == list(reversed(ids))

    def test_only_requested_visibility_listed(self, client, auth_headers):
        public = create_post(client, auth_headers)
        create_post(client, auth_headers, visibility="private")
        response = client.get("/api/posts")
        assert [p["id"] for p in response.json()["posts"]] == [public["id"]]

    def test_popular_sort(self, client, make_user, headers):
        author_headers = headers(make_user())
        quiet = create_post(client, author_headers, content="quiet")
        loud = create_post(client, author_headers, content="loud")
        middling = create_post(client, author_headers, content="middling")

        fans = [headers(make_user()) for _ in range(3)]
        for fan in fans:
            client.post(f"/api/posts/{loud['id']}/like", headers=fan)
        client.post(f"/api/posts/{middling['id']}/like", headers=fans[0])

        response = client.get("/api/posts", params={"sort": "popular"})
        assert [p["id"] for p in response.json()["posts"]] == [loud["id"], middling["id"], quiet["id"]]

    def test_trending_sort_counts_all_engagement(self, client, make_user, headers):
        author_headers = headers(make_user())
        liked = create_post(client, author_headers, content="liked once")
        discussed = create_post(client, author_headers, content="discussed")
        older = create_post(client, author_headers, content="nothing")

        fan = headers(make_user())
        client.post(f"/api/posts/{liked['id']}/like", headers=fan)
        client.post(f"/api/posts/{discussed['id']}/comment", headers=fan, json={"content": "one"})
        client.post(f"/api/posts/{discussed['id']}/comment", headers=fan, json={"content": "two"})

        response = client.get("/api/posts", params={"sort": "trending"})
        assert [p["id"] for p in response.json()["posts"]] == [discussed["id"], liked["id"], older["id"]]

    def test_invalid_sort(self, client):
        response = client.get("/api/posts", params={"sort": "random"})
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid sort mode"

    @pytest.mark.parametrize("requested,effective", [(500, 100), (0, 1), (-3, 1), (5, 5)])
    def test_limit_is_clamped(self, client, requested, effective):
        response = client.get("/api/posts", params={"limit": requested})
        assert response.status_code == 200
        assert response.json()["pagination"]["limit"] == effective

    def test_negative_offset_rejected(self, client):
        response = client.get("/api/posts", params={"offset": -1})
        assert response.status_code == 400

    def test_pagination(self, client, auth_headers):
        ids = [create_post(client, auth_headers, content=f"post {i}")["id"] for i in range(5)]
        response = client.get("/api/posts", params={"limit": 2, "offset": 2})
        assert [p["id"] for p in response.json()["posts"]] == [ids[2], ids[1]]

    def test_filter_by_author(self, client, make_user, headers):
        alice, bob = make_user(), make_user()
        create_post(client, headers(alice), content="alice")
        bobs = create_post(client, headers(bob), content="bob")
        response = client.get("/api/posts", params={"user_id": bob.id})
        assert [p["id"] for p in response.json()["posts"]] == [bobs["id"]]

    def test_private_listing_requires_auth(self, client):
        response = client.get("/api/posts", params={"visibility": "private"})
        assert response.status_code == 401

    def test_private_listing_only_own_posts(self, client, make_user, headers):
        alice, bob = make_user(), make_user()
        mine = create_post(client, headers(alice), visibility="private")
        create_post(client, headers(bob), visibility="private")

        response = client.get("/api/posts", headers=headers(alice), params={"visibility": "private"})
        assert [p["id"] for p in response.json()["posts"]] == [mine["id"]]

    def test_followers_only_listing(self, client, make_user, headers):
        alice, bob, carol = make_user(), make_user(), make_user()
        bobs = create_post(client, headers(bob), visibility="followers_only")
        create_post(client, headers(carol), visibility="followers_only")
        client.patch(f"/api/users/{bob.id}/follow", headers=headers(alice))

        response = client.get("/api/posts", headers=headers(alice), params={"visibility": "followers_only"})
        assert [p["id"] for p in response.json()["posts"]] == [bobs["id"]]


class TestUpdatePost:
    """Test post updates."""

    def test_owner_updates(self, client, auth_headers):
        post = create_post(client, auth_headers, content="Original")
        response = client.put(
            f"/api/posts/{post['id']}",
            headers=auth_headers,
            json={"content": "Updated", "visibility": "private"},
        )
        assert response.status_code == 200
        updated = response.json()["post"]
        assert updated["content"] == "Updated"
        assert updated["visibility"] == "private"

    def test_absent_fields_untouched(self, client, auth_headers):
        post = create_post(
            client, auth_headers,
            content="Original", media_url="https://example.com/a.gif", media_type="gif",
        )
        response = client.put(f"/api/posts/{post['id']}", headers=auth_headers, json={"content": "Edited"})
        updated = response.json()["post"]
        assert updated["media_url"] == "https://example.com/a.gif"
        assert updated["media_type"] == "gif"

    def test_media_can_be_cleared(self, client, auth_headers):
        post = create_post(client, auth_headers, media_url="https://example.com/a.gif", media_type="gif")
        response = client.put(
            f"/api/posts/{post['id']}",
            headers=auth_headers,
            json={"media_url": None, "media_type": None},
        )
        assert response.status_code == 200
        assert response.json()["post"]["media_url"] is None

    def test_non_owner_forbidden(self, client, test_user, make_user, headers, db):
        post = create_post(client, headers(test_user), content="Original")
        response = client.put(
            f"/api/posts/{post['id']}",
            headers=headers(make_user()),
            json={"content": "Hijacked"},
        )
        assert response.status_code == 403
        assert db.get(Post, post["id"]).content == "Original"

    def test_admin_cannot_edit_others(self, client, auth_headers, admin_user, headers):
        post = create_post(client, auth_headers)
        response = client.put(f"/api/posts/{post['id']}", headers=headers(admin_user), json={"content": "x"})
        assert response.status_code == 403

    def test_missing_post_is_404_for_anyone(self, client, auth_headers):
        response = client.put("/api/posts/9999", headers=auth_headers, json={"content": "x"})
        assert response.status_code == 404

    def test_empty_update_rejected(self, client, auth_headers):
        post = create_post(client, auth_headers)
        response = client.put(f"/api/posts/{post['id']}", headers=auth_headers, json={})
        assert response.status_code == 400
        assert response.json()["error"] == "No valid fields to update"

    @pytest.mark.parametrize("payload", [{"content": None}, {"content": ""}, {"visibility": None}])
    def test_invalid_update_rejected(self, client, auth_headers, payload):
        post = create_post(client, auth_headers)
        response = client.put(f"/api/posts/{post['id']}", headers=auth_headers, json=payload)
        assert response.status_code == 400


class TestDeletePost:
    """Test post deletion."""

    def test_owner_deletes(self, client, test_user, auth_headers, db):
        post = create_post(client, auth_headers)
        response = client.delete(f"/api/posts/{post['id']}", headers=auth_headers)
        assert response.status_code == 200
        assert client.get(f"/api/posts/{post['id']}").status_code == 404

        db.refresh(test_user)
        assert test_user.posts_count == 0

    def test_non_owner_forbidden(self, client, auth_headers, make_user, headers):
        post = create_post(client, auth_headers)
        response = client.delete(f"/api/posts/{post['id']}", headers=headers(make_user()))
        assert response.status_code == 403
        assert client.get(f"/api/posts/{post['id']}").status_code == 200

    def test_admin_deletes_any_post(self, client, test_user, auth_headers, admin_user, headers, db):
        post = create_post(client, auth_headers)
        response = client.delete(f"/api/posts/{post['id']}", headers=headers(admin_user))
        assert response.status_code == 200

        db.refresh(test_user)
        assert test_user.posts_count == 0

    def test_missing_post(self, client, auth_headers):
        assert client.delete("/api/posts/9999", headers=auth_headers).status_code == 404

    def test_engagement_removed_with_post(self, client, auth_headers, make_user, headers, db):
        post = create_post(client, auth_headers)
        fan = headers(make_user(tier=Tier.PREMIUM))
        client.post(f"/api/posts/{post['id']}/like", headers=fan)
        first = client.post(f"/api/posts/{post['id']}/comment", headers=fan, json={"content": "hi"}).json()
        client.post(
            f"/api/posts/{post['id']}/comment",
            headers=auth_headers,
            json={"content": "reply", "parent_comment_id": first["comment"]["id"]},
        )
        client.patch(f"/api/posts/{post['id']}/share", headers=fan)

        client.delete(f"/api/posts/{post['id']}", headers=auth_headers)

        db.expire_all()
        assert db.query(Comment).filter(Comment.post_id == post["id"]).count() == 0
        assert db.query(Like).filter(Like.post_id == post["id"]).count() == 0
        assert db.query(Share).filter(Share.post_id == post["id"]).count() == 0
