"""Concurrent moderation check against a running newsdesk API.

Creates one article with N pending comments, then fires random
approve / reject / delete requests at them from many concurrent clients.
Afterwards the article's ``comment_count`` must equal its number of
APPROVED comments; the script exits non-zero when it does not.

Point it at a Postgres-backed instance: SQLite serialises writers and
would not exercise the row locks.
"""
import argparse
import asyncio
import random
import statistics
import sys
import time

import httpx

BASE_URL = "http://localhost:8000"

ACTIONS = ("approve", "reject", "delete")


async def _setup(client: httpx.AsyncClient, comments: int) -> tuple[int, list[int]]:
    suffix = int(time.time() * 1000)
    user = await client.post("/api/v1/users", json={
        "username": f"stress_{suffix}",
        "email": f"stress_{suffix}@newsdesk.example",
        "role": "editor",
    })
    user.raise_for_status()

    article = await client.post("/api/v1/articles", json={
        "title": f"Moderation stress {suffix}",
        "content": "Stress test article",
        "status": "published",
        "user_id": user.json()["id"],
    })
    article.raise_for_status()
    article_id = article.json()["id"]

    comment_ids = []
    for i in range(comments):
        resp = await client.post(
            f"/api/v1/articles/{article_id}/comments",
            json={"content": f"comment {i}", "user_name": f"reader_{i}"},
        )
        resp.raise_for_status()
        comment_ids.append(resp.json()["id"])
    return article_id, comment_ids


async def _worker(client: httpx.AsyncClient, comment_ids: list[int], requests: int, stats: dict):
    for _ in range(requests):
        action = random.choice(ACTIONS)
        comment_id = random.choice(comment_ids)
        start = time.perf_counter()
        if action == "delete":
            resp = await client.delete(f"/api/v1/comments/{comment_id}")
        else:
            resp = await client.post(f"/api/v1/comments/{comment_id}/{action}")
        stats["latencies"].append((time.perf_counter() - start) * 1000)
        stats[resp.status_code] = stats.get(resp.status_code, 0) + 1


async def run(comments: int, workers: int, requests: int) -> bool:
    async with httpx.AsyncClient(base_url=BASE_URL, timeout=30) as client:
        article_id, comment_ids = await _setup(client, comments)
        print(f"Article {article_id} with {len(comment_ids)} pending comments")

        stats: dict = {"latencies": []}
        start = time.perf_counter()
        await asyncio.gather(*(
            _worker(client, comment_ids, requests, stats) for _ in range(workers)
        ))
        elapsed = time.perf_counter() - start

        article = (await client.get(f"/api/v1/articles/{article_id}")).json()
        approved = sum(1 for c in article["comments"] if c["status"] == "APPROVED")

    latencies = sorted(stats.pop("latencies"))
    print(f"{workers * requests} requests in {elapsed:.1f}s")
    print(f"  status codes: {dict(sorted(stats.items()))}")
    print(f"  avg {statistics.mean(latencies):.1f}ms, p95 {latencies[int(len(latencies) * 0.95)]:.1f}ms")
    print(f"  comment_count={article['comment_count']} approved={approved}")

    consistent = article["comment_count"] == approved
    print("OK: counter consistent" if consistent else "FAIL: counter drifted")
    return consistent


def main():
    global BASE_URL
    parser = argparse.ArgumentParser(description="Concurrent moderation consistency check")
    parser.add_argument("--comments", type=int, default=20, help="Comments on the test article")
    parser.add_argument("--workers", type=int, default=10, help="Concurrent clients")
    parser.add_argument("-n", "--requests", type=int, default=50, help="Requests per client")
    parser.add_argument("--base-url", default=BASE_URL, help="API base URL")
    args = parser.parse_args()

    BASE_URL = args.base_url
    ok = asyncio.run(run(args.comments, args.workers, args.requests))
    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
