"""Tests for the leaderboard endpoints."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest
from httpx import AsyncClient

from backend.api.main import app
from backend.api.services.leaderboard_store import LeaderboardStore, get_leaderboard_store
from backend.api.services.record_store import FileRecordStore


def _submission(**overrides: object) -> dict[str, object]:
    body: dict[str, object] = {
        "name": "Player",
        "score": 5,
        "difficulty": "medium",
        "timer": 30,
        "totalTime": 120,
    }
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_empty_leaderboard(client: AsyncClient, leaderboard_path: Path) -> None:
    """No stored file yet is an empty board, not an error."""
    response = await client.get("/api/leaderboard")
    assert response.status_code == 200
    assert response.json() == []
    assert not leaderboard_path.exists()


@pytest.mark.asyncio
async def test_submit_returns_ranked_board(client: AsyncClient) -> None:
    response = await client.post(
        "/api/leaderboard",
        json={"name": "A", "score": 10, "difficulty": "easy", "timer": 45, "totalTime": 60},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    (entry,) = data["leaderboard"]
    assert entry["name"] == "A"
    assert entry["score"] == 10
    assert entry["difficulty"] == "easy"
    assert entry["timer"] == 45
    assert entry["totalTime"] == 60
    assert entry["compositeScore"] == 994
    assert entry["date"].endswith("Z")


@pytest.mark.asyncio
async def test_a_before_b(client: AsyncClient) -> None:
    await client.post(
        "/api/leaderboard",
        json={"name": "A", "score": 10, "difficulty": "easy", "timer": 45, "totalTime": 60},
    )
    await client.post(
        "/api/leaderboard",
        json={"name": "B", "score": 8, "difficulty": "hard", "timer": 20, "totalTime": 60},
    )

    response = await client.get("/api/leaderboard")
    board = response.json()
    assert [e["name"] for e in board] == ["A", "B"]
    assert [e["compositeScore"] for e in board] == [994, 794]


@pytest.mark.asyncio
async def test_name_trimmed_and_truncated(client: AsyncClient) -> None:
    response = await client.post(
        "/api/leaderboard", json=_submission(name="   A very long player name indeed  ")
    )
    assert response.json()["leaderboard"][0]["name"] == "A very long player n"


@pytest.mark.asyncio
async def test_fractional_time_floored(client: AsyncClient) -> None:
    response = await client.post("/api/leaderboard", json=_submission(score=3, totalTime=69.9))
    entry = response.json()["leaderboard"][0]
    assert entry["totalTime"] == 69
    assert entry["compositeScore"] == 294


@pytest.mark.asyncio
@pytest.mark.parametrize("missing", ["name", "score", "difficulty", "timer", "totalTime"])
async def test_missing_field_leaves_file_unchanged(
    client: AsyncClient, leaderboard_path: Path, missing: str
) -> None:
    await client.post("/api/leaderboard", json=_submission(name="Seed"))
    before = leaderboard_path.read_bytes()

    body = _submission()
    del body[missing]
    response = await client.post("/api/leaderboard", json=body)

    assert response.status_code == 400
    assert missing in response.json()["detail"]
    assert leaderboard_path.read_bytes() == before


@pytest.mark.asyncio
async def test_blank_name_rejected(client: AsyncClient, leaderboard_path: Path) -> None:
    response = await client.post("/api/leaderboard", json=_submission(name="   "))
    assert response.status_code == 400
    assert not leaderboard_path.exists()


@pytest.mark.asyncio
async def test_null_field_rejected(client: AsyncClient) -> None:
    response = await client.post("/api/leaderboard", json=_submission(difficulty=None))
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_zero_score_accepted(client: AsyncClient) -> None:
    response = await client.post("/api/leaderboard", json=_submission(score=0, totalTime=0))
    assert response.status_code == 200
    assert response.json()["leaderboard"][0]["compositeScore"] == 0


@pytest.mark.asyncio
async def test_wrong_type_rejected(client: AsyncClient) -> None:
    response = await client.post("/api/leaderboard", json=_submission(score="lots"))
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_board_capped_at_20(client: AsyncClient) -> None:
    for i in range(25):
        response = await client.post(
            "/api/leaderboard", json=_submission(name=f"p{i}", score=i % 11, totalTime=i * 7)
        )
        assert len(response.json()["leaderboard"]) <= 20

    board = (await client.get("/api/leaderboard")).json()
    assert len(board) == 20
    composites = [e["compositeScore"] for e in board]
    assert composites == sorted(composites, reverse=True)


@pytest.mark.asyncio
async def test_concurrent_submissions_both_kept(client: AsyncClient) -> None:
    responses = await asyncio.gather(
        client.post("/api/leaderboard", json=_submission(name="left", score=4)),
        client.post("/api/leaderboard", json=_submission(name="right", score=6)),
    )
    assert all(r.status_code == 200 for r in responses)

    board = (await client.get("/api/leaderboard")).json()
    assert sorted(e["name"] for e in board) == ["left", "right"]


@pytest.mark.asyncio
async def test_corrupt_file_is_500(client: AsyncClient, leaderboard_path: Path) -> None:
    leaderboard_path.write_text("{not json", encoding="utf-8")
    response = await client.get("/api/leaderboard")
    assert response.status_code == 500
    assert "corrupt" in response.json()["detail"]


@pytest.mark.asyncio
async def test_write_failure_is_500(client: AsyncClient, tmp_path: Path) -> None:
    """A store that cannot write reports failure instead of claiming success."""
    blocker = tmp_path / "blocker"
    blocker.write_text("a file, not a directory", encoding="utf-8")
    broken = LeaderboardStore(FileRecordStore(blocker / "leaderboard.json"))

    app.dependency_overrides[get_leaderboard_store] = lambda: broken
    response = await client.post("/api/leaderboard", json=_submission())
    assert response.status_code == 500


@pytest.mark.asyncio
async def test_infinite_total_time_rejected(client: AsyncClient, leaderboard_path: Path) -> None:
    """1e400 is valid JSON but overflows to infinity."""
    body = b'{"name": "A", "score": 3, "difficulty": "easy", "timer": 30, "totalTime": 1e400}'
    response = await client.post(
        "/api/leaderboard", content=body, headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert "finite" in response.json()["detail"]
    assert not leaderboard_path.exists()
