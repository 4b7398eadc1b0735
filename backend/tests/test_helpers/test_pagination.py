"""Tests for page/limit handling and the envelope helpers."""

from helpers.pagination import PageParams, build_meta, clamp_limit, get_page_params
from helpers.responses import error_body, paginated, success
from models.schemas import QueueStats


class TestClampLimit:
    def test_default_when_missing(self):
        assert clamp_limit(None) == 20

    def test_within_range(self):
        assert clamp_limit(35) == 35

    def test_clamped_to_maximum(self):
        assert clamp_limit(500) == 50

    def test_never_below_one(self):
        assert clamp_limit(0) == 1


class TestPageParams:
    def test_offset(self):
        assert PageParams(page=3, limit=20).offset == 40

    def test_dependency(self):
        params = get_page_params(page=2, limit=999)

        assert params == PageParams(page=2, limit=50)


class TestBuildMeta:
    def test_has_more(self):
        meta = build_meta(PageParams(page=1, limit=20), total=21)

        assert meta == {"page": 1, "limit": 20, "total": 21, "hasMore": True}

    def test_last_page(self):
        assert build_meta(PageParams(page=2, limit=20), total=40)["hasMore"] is False

    def test_empty(self):
        assert build_meta(PageParams(page=1, limit=20), total=0)["hasMore"] is False


class TestEnvelope:
    def test_success_dumps_models(self):
        stats = QueueStats(urgent=1, high=0, medium=0, low=2, total=3)

        body = success(stats)

        assert body == {
            "success": True,
            "data": {"urgent": 1, "high": 0, "medium": 0, "low": 2, "total": 3},
        }

    def test_success_without_data(self):
        assert success() == {"success": True, "data": None}

    def test_paginated(self):
        body = paginated(["a", "b"], PageParams(page=1, limit=2), total=5)

        assert body["data"] == ["a", "b"]
        assert body["meta"]["hasMore"] is True

    def test_error_body(self):
        body = error_body("NOT_FOUND", "Post not found", correlation_id="abc123")

        assert body == {
            "success": False,
            "error": {
                "code": "NOT_FOUND",
                "message": "Post not found",
                "correlation_id": "abc123",
            },
        }
