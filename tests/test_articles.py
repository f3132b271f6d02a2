"""
Article endpoint tests: CRUD lifecycle, pagination and filters, slug
generation, category links, editorial status and the featured flag.

Each test creates the users and articles it needs through the API, so
test order does not matter.
"""
import pytest
from httpx import AsyncClient


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

async def _create_user(client: AsyncClient, username: str) -> int:
    resp = await client.post("/api/v1/users", json={
        "username": username,
        "email": f"{username}@newsdesk.example",
        "role": "author",
    })
    assert resp.status_code == 201
    return resp.json()["id"]


async def _create_category(client: AsyncClient, name: str) -> int:
    resp = await client.post("/api/v1/categories", json={"name": name})
    assert resp.status_code == 201
    return resp.json()["id"]


async def _create_article(client: AsyncClient, user_id: int, title: str, **extra) -> dict:
    payload = {"title": title, "content": f"Body of {title}", "user_id": user_id, **extra}
    resp = await client.post("/api/v1/articles", json=payload)
    assert resp.status_code == 201
    return resp.json()


# ---------------------------------------------------------------------------
# Infrastructure / health
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_health(async_client: AsyncClient):
    """Health endpoint returns 200 with status=healthy."""
    resp = await async_client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


# ---------------------------------------------------------------------------
# List articles
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_list_articles_empty(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/articles")
    assert resp.status_code == 200
    data = resp.json()
    assert data["items"] == []
    assert data["total"] == 0
    assert data["pages"] == 0


@pytest.mark.asyncio
async def test_list_articles_includes_every_status(async_client: AsyncClient):
    """The admin list shows drafts and archived articles too."""
    user_id = await _create_user(async_client, "lister")
    await _create_article(async_client, user_id, "Published one", status="published")
    await _create_article(async_client, user_id, "Draft one")
    await _create_article(async_client, user_id, "Archived one", status="archived")

    resp = await async_client.get("/api/v1/articles")
    assert resp.json()["total"] == 3


@pytest.mark.asyncio
async def test_list_articles_filter_by_status(async_client: AsyncClient):
    user_id = await _create_user(async_client, "statusfilter")
    await _create_article(async_client, user_id, "Live", status="published")
    await _create_article(async_client, user_id, "Hidden")

    resp = await async_client.get("/api/v1/articles", params={"status": "published"})
    data = resp.json()
    assert data["total"] == 1
    assert data["items"][0]["title"] == "Live"


@pytest.mark.asyncio
async def test_list_articles_filter_by_featured_author_and_category(async_client: AsyncClient):
    alice = await _create_user(async_client, "alice")
    bob = await _create_user(async_client, "bob")
    sport = await _create_category(async_client, "Sport")

    await _create_article(async_client, alice, "Alice featured", featured=True)
    await _create_article(async_client, alice, "Alice sport", category_ids=[sport])
    await _create_article(async_client, bob, "Bob sport", category_ids=[sport])

    featured = (await async_client.get("/api/v1/articles", params={"featured": True})).json()
    assert [a["title"] for a in featured["items"]] == ["Alice featured"]

    by_bob = (await async_client.get("/api/v1/articles", params={"author_id": bob})).json()
    assert [a["title"] for a in by_bob["items"]] == ["Bob sport"]

    in_sport = (await async_client.get("/api/v1/articles", params={"category_id": sport})).json()
    assert {a["title"] for a in in_sport["items"]} == {"Alice sport", "Bob sport"}


@pytest.mark.asyncio
async def test_list_articles_pagination(async_client: AsyncClient):
    user_id = await _create_user(async_client, "pager")
    for i in range(5):
        await _create_article(async_client, user_id, f"Paged {i}")

    resp = await async_client.get("/api/v1/articles", params={"page": 2, "page_size": 2})
    data = resp.json()
    assert data["total"] == 5
    assert data["page"] == 2
    assert data["page_size"] == 2
    assert data["pages"] == 3
    assert len(data["items"]) == 2


@pytest.mark.asyncio
async def test_list_articles_sort_by_title(async_client: AsyncClient):
    user_id = await _create_user(async_client, "sorter")
    for title in ("Charlie", "Alpha", "Bravo"):
        await _create_article(async_client, user_id, title)

    resp = await async_client.get(
        "/api/v1/articles", params={"sort_by": "title", "sort_order": "asc"}
    )
    assert [a["title"] for a in resp.json()["items"]] == ["Alpha", "Bravo", "Charlie"]


@pytest.mark.asyncio
async def test_list_articles_rejects_bad_sort_order(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/articles", params={"sort_order": "sideways"})
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Create + get article
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_create_and_get_article(async_client: AsyncClient):
    user_id = await _create_user(async_client, "creator")
    politics = await _create_category(async_client, "Politics")
    world = await _create_category(async_client, "World")

    article = await _create_article(
        async_client, user_id, "Test Article",
        excerpt="Summary", status="published", category_ids=[politics, world],
    )
    assert article["slug"] == "test-article"
    assert article["status"] == "published"
    assert article["published_at"] is not None
    assert article["comment_count"] == 0
    assert article["view_count"] == 0
    assert article["author"]["username"] == "creator"

    resp = await async_client.get(f"/api/v1/articles/{article['id']}")
    assert resp.status_code == 200
    detail = resp.json()
    assert detail["content"] == "Body of Test Article"
    assert {c["name"] for c in detail["categories"]} == {"Politics", "World"}
    assert detail["comments"] == []


@pytest.mark.asyncio
async def test_draft_has_no_published_at(async_client: AsyncClient):
    user_id = await _create_user(async_client, "drafter")
    article = await _create_article(async_client, user_id, "Draft")
    assert article["status"] == "draft"
    assert article["published_at"] is None


@pytest.mark.asyncio
async def test_create_article_ignores_comment_count(async_client: AsyncClient):
    """comment_count is not part of the create payload."""
    user_id = await _create_user(async_client, "counter")
    article = await _create_article(async_client, user_id, "Counted", comment_count=42)
    assert article["comment_count"] == 0


@pytest.mark.asyncio
async def test_create_article_slug_is_url_safe(async_client: AsyncClient):
    user_id = await _create_user(async_client, "slugger")
    article = await _create_article(async_client, user_id, "Élection à Paris: 2026 Results!")
    assert article["slug"] == "election-a-paris-2026-results"


@pytest.mark.asyncio
async def test_duplicate_title_gets_unique_slug(async_client: AsyncClient):
    user_id = await _create_user(async_client, "dupslug")
    first = await _create_article(async_client, user_id, "Same Title")
    second = await _create_article(async_client, user_id, "Same Title")
    assert first["slug"] == "same-title"
    assert second["slug"] != first["slug"]
    assert second["slug"].startswith("same-title-")


@pytest.mark.asyncio
async def test_get_article_counts_views(async_client: AsyncClient):
    user_id = await _create_user(async_client, "viewer")
    article = await _create_article(async_client, user_id, "Viewed")

    await async_client.get(f"/api/v1/articles/{article['id']}")
    resp = await async_client.get(f"/api/v1/articles/{article['id']}")
    assert resp.json()["view_count"] == 2


@pytest.mark.asyncio
async def test_get_article_not_found(async_client: AsyncClient):
    resp = await async_client.get("/api/v1/articles/99999")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_create_article_missing_fields(async_client: AsyncClient):
    resp = await async_client.post("/api/v1/articles", json={"title": "No body"})
    assert resp.status_code == 422


# ---------------------------------------------------------------------------
# Update
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_update_article(async_client: AsyncClient):
    user_id = await _create_user(async_client, "updater")
    culture = await _create_category(async_client, "Culture")
    article = await _create_article(async_client, user_id, "Original Title")

    resp = await async_client.put(f"/api/v1/articles/{article['id']}", json={
        "title": "Updated Title",
        "category_ids": [culture],
    })
    assert resp.status_code == 200
    updated = resp.json()
    assert updated["title"] == "Updated Title"
    assert updated["slug"] == "updated-title"
    assert updated["content"] == "Body of Original Title"
    assert [c["name"] for c in updated["categories"]] == ["Culture"]


@pytest.mark.asyncio
async def test_update_article_clears_categories(async_client: AsyncClient):
    user_id = await _create_user(async_client, "clearer")
    science = await _create_category(async_client, "Science")
    article = await _create_article(async_client, user_id, "Tagged", category_ids=[science])

    resp = await async_client.put(f"/api/v1/articles/{article['id']}", json={"category_ids": []})
    assert resp.json()["categories"] == []


@pytest.mark.asyncio
async def test_update_article_not_found(async_client: AsyncClient):
    resp = await async_client.put("/api/v1/articles/99999", json={"title": "x"})
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_update_article_status(async_client: AsyncClient):
    user_id = await _create_user(async_client, "publisher")
    article = await _create_article(async_client, user_id, "To publish")

    resp = await async_client.patch(
        f"/api/v1/articles/{article['id']}/status", json={"status": "published"}
    )
    assert resp.status_code == 200
    assert resp.json()["status"] == "published"
    assert resp.json()["published_at"] is not None

    archived = await async_client.patch(
        f"/api/v1/articles/{article['id']}/status", json={"status": "archived"}
    )
    assert archived.json()["status"] == "archived"

    bad = await async_client.patch(
        f"/api/v1/articles/{article['id']}/status", json={"status": "deleted"}
    )
    assert bad.status_code == 422


@pytest.mark.asyncio
async def test_update_article_featured(async_client: AsyncClient):
    user_id = await _create_user(async_client, "featurer")
    article = await _create_article(async_client, user_id, "Front page")

    resp = await async_client.patch(
        f"/api/v1/articles/{article['id']}/featured", json={"featured": True}
    )
    assert resp.status_code == 200
    assert resp.json()["featured"] is True

    missing = await async_client.patch("/api/v1/articles/99999/featured", json={"featured": True})
    assert missing.status_code == 404


# ---------------------------------------------------------------------------
# Delete
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_delete_article_with_comments_and_categories(async_client: AsyncClient):
    user_id = await _create_user(async_client, "deleter")
    health = await _create_category(async_client, "Health")
    article = await _create_article(async_client, user_id, "Short lived", category_ids=[health])
    comment = await async_client.post(
        f"/api/v1/articles/{article['id']}/comments",
        json={"content": "Bye", "user_name": "Reader", "status": "APPROVED"},
    )
    assert comment.status_code == 201

    resp = await async_client.delete(f"/api/v1/articles/{article['id']}")
    assert resp.status_code == 204

    assert (await async_client.get(f"/api/v1/articles/{article['id']}")).status_code == 404
    assert (await async_client.get(f"/api/v1/comments/{comment.json()['id']}")).status_code == 404
    category = (await async_client.get(f"/api/v1/categories/{health}")).json()
    assert category["article_count"] == 0


@pytest.mark.asyncio
async def test_delete_article_not_found(async_client: AsyncClient):
    resp = await async_client.delete("/api/v1/articles/99999")
    assert resp.status_code == 404
