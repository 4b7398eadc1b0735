"""Tests for the report queue queries and the unit-of-work helper."""

from datetime import datetime, timezone

import pytest

from repositories.database import atomic
from repositories.db_models import Report, ReportStatus, TargetType, Tag
from repositories.report_repository import ReportRepository


@pytest.fixture
def queue(test_post, test_comment, post_factory, test_user, user_factory, report_factory):
    """Three targets with 5, 2 and 1 pending reports."""
    reporters = [user_factory(f"reporter{i}") for i in range(5)]
    second_post = post_factory(test_user, title="Another question about parsing")

    for reporter in reporters:
        report_factory(reporter, post=test_post)
    for reporter in reporters[:2]:
        report_factory(reporter, post=second_post)
    report_factory(reporters[0], comment=test_comment)
    return {"hot": test_post, "warm": second_post, "comment": test_comment}


class TestPendingQueue:
    def test_groups_ranked_by_priority(self, db_session, queue):
        rows, total = ReportRepository(db_session).get_pending_queue(page=1, limit=10)

        assert total == 3
        assert [(row.post_id, row.comment_id, row.report_count) for row in rows] == [
            (queue["hot"].id, None, 5),
            (queue["warm"].id, None, 2),
            (None, queue["comment"].id, 1),
        ]

    def test_counts_do_not_depend_on_page(self, db_session, queue):
        repo = ReportRepository(db_session)

        first, total = repo.get_pending_queue(page=1, limit=1)
        second, _ = repo.get_pending_queue(page=2, limit=1)

        assert total == 3
        assert first[0].report_count == 5
        assert second[0].report_count == 2

    def test_ties_on_timestamp_page_deterministically(
        self, db_session, post_factory, test_user, other_user, report_factory
    ):
        posts = [
            post_factory(test_user, title=f"Question number {i} about parsing")
            for i in range(3)
        ]
        for post in posts:
            report_factory(other_user, post=post)
        stamp = datetime(2024, 1, 1, tzinfo=timezone.utc)
        db_session.query(Report).update({Report.created_at: stamp})
        db_session.commit()

        repo = ReportRepository(db_session)
        paged = [repo.get_pending_queue(page=p, limit=1)[0][0].post_id for p in (1, 2, 3)]

        assert paged == sorted(post.id for post in posts)

    def test_priority_rank_filter(self, db_session, queue):
        rows, total = ReportRepository(db_session).get_pending_queue(
            page=1, limit=10, priority_rank=2
        )

        assert total == 1
        assert rows[0].post_id == queue["warm"].id

    def test_target_type_filter(self, db_session, queue):
        rows, total = ReportRepository(db_session).get_pending_queue(
            page=1, limit=10, target_type=TargetType.COMMENT
        )

        assert total == 1
        assert rows[0].comment_id == queue["comment"].id

    def test_latest_pending_reason(self, db_session, queue):
        latest = ReportRepository(db_session).get_latest_pending_reason(
            [queue["hot"].id], [queue["comment"].id]
        )

        assert set(latest) == {
            (TargetType.POST, queue["hot"].id),
            (TargetType.COMMENT, queue["comment"].id),
        }

    def test_resolve_pending_for_target(self, db_session, queue, moderator_user):
        repo = ReportRepository(db_session)

        updated = repo.resolve_pending_for_target(
            TargetType.POST, queue["hot"].id, moderator_user.id, "handled"
        )
        db_session.commit()

        assert updated == 5
        assert repo.count_by_status(ReportStatus.RESOLVED) == 5
        assert repo.count_by_status(ReportStatus.PENDING) == 3
        again = repo.resolve_pending_for_target(
            TargetType.POST, queue["hot"].id, moderator_user.id, "handled"
        )
        assert again == 0

    def test_urgent_targets(self, db_session, queue):
        assert ReportRepository(db_session).count_urgent_targets() == 1


class TestAtomic:
    def test_commits_on_success(self, db_session):
        with atomic(db_session):
            db_session.add(Tag(name="rust", slug="rust"))

        db_session.rollback()
        assert db_session.query(Tag).filter_by(slug="rust").count() == 1

    def test_rolls_back_on_error(self, db_session):
        with pytest.raises(RuntimeError):
            with atomic(db_session):
                db_session.add(Tag(name="rust", slug="rust"))
                db_session.flush()
                raise RuntimeError("boom")

        assert db_session.query(Tag).filter_by(slug="rust").count() == 0
