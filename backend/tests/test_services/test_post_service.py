"""Tests for PostService and TagService."""

import pytest

import repositories.db_models as db_models
from helpers.pagination import PageParams
from models.exceptions import (
    ConflictException,
    PermissionDeniedException,
    PostNotFoundException,
    ValidationException,
)
from services.post_service import PostService
from services.tag_service import TagService

PAGE = PageParams(page=1, limit=20)
CONTENT = "A body that is comfortably longer than thirty characters."


class TestCreatePost:
    def test_slug_and_tag_count(self, db_session, test_post, test_tag) -> None:
        """Slug comes from the title and the tag counter goes up."""
        db_session.refresh(test_tag)
        assert test_post.slug == "how-do-i-parse-json"
        assert [t.id for t in test_post.tags] == [test_tag.id]
        assert test_tag.post_count == 1

    def test_duplicate_titles_get_suffix(self, post_factory, test_user) -> None:
        first = post_factory(test_user, title="Same title for both posts")
        second = post_factory(test_user, title="Same title for both posts")

        assert first.slug == "same-title-for-both-posts"
        assert second.slug == "same-title-for-both-posts-2"

    def test_tag_limits(self, db_session, test_user, test_tag) -> None:
        """Between one and five existing tags."""
        with pytest.raises(ValidationException):
            PostService.create_post(db_session, test_user.id, "No tags on this post", CONTENT, [])
        with pytest.raises(ValidationException):
            PostService.create_post(
                db_session, test_user.id, "Unknown tag on this post", CONTENT, [test_tag.id, 9999]
            )


    def test_title_stored_as_plain_text(self, db_session, test_user, test_tag) -> None:
        post = PostService.create_post(
            db_session, test_user.id, "<b>Bold</b> question about decorators", CONTENT, [test_tag.id]
        )
        assert post.title == "Bold question about decorators"

    @pytest.mark.parametrize(
        "title",
        ["<img src=x onerror=alert(1)>", "<svg onload=alert(1)></svg>", "<b>Tiny</b>"],
    )
    def test_markup_only_title_rejected(self, db_session, test_user, test_tag, title) -> None:
        with pytest.raises(ValidationException):
            PostService.create_post(db_session, test_user.id, title, CONTENT, [test_tag.id])
        assert db_session.query(db_models.Post).count() == 0

class TestReadPosts:
    def test_view_counter(self, db_session, test_post) -> None:
        post = PostService.get_post_by_slug(db_session, test_post.slug)
        post = PostService.get_post_by_slug(db_session, test_post.slug)
        assert post.views == 2

    def test_hidden_post_only_for_staff(
        self, db_session, test_post, other_user, moderator_user
    ) -> None:
        test_post.is_hidden = True
        db_session.commit()

        with pytest.raises(PostNotFoundException):
            PostService.get_post_by_slug(db_session, test_post.slug, other_user)
        assert PostService.get_post_by_slug(db_session, test_post.slug, moderator_user).id == test_post.id

    def test_listing_hides_hidden_posts(self, db_session, post_factory, test_user) -> None:
        visible = post_factory(test_user, title="A visible question here")
        hidden = post_factory(test_user, title="A hidden question here")
        hidden.is_hidden = True
        db_session.commit()

        posts, total = PostService.list_posts(db_session, PAGE)

        assert total == 1
        assert posts[0].id == visible.id

    def test_unanswered_and_tag_filters(
        self, db_session, test_post, test_comment, post_factory, test_user, test_tag
    ) -> None:
        open_question = post_factory(test_user, title="Nobody answered this yet")

        unanswered, _ = PostService.list_posts(db_session, PAGE, sort="unanswered")
        tagged, tagged_total = PostService.list_posts(db_session, PAGE, tag=test_tag.slug)

        assert [p.id for p in unanswered] == [open_question.id]
        assert tagged_total == 2

    def test_invalid_sort(self, db_session) -> None:
        with pytest.raises(ValidationException):
            PostService.list_posts(db_session, PAGE, sort="random")


class TestEditPost:
    def test_author_edits_keep_slug(self, db_session, test_post, test_user) -> None:
        post = PostService.update_post(
            db_session, test_post.id, test_user, title="How do I parse JSON safely?"
        )
        assert post.title == "How do I parse JSON safely?"
        assert post.slug == "how-do-i-parse-json"

    def test_markup_only_title_rejected_on_update(self, db_session, test_post, test_user) -> None:
        with pytest.raises(ValidationException):
            PostService.update_post(
                db_session, test_post.id, test_user, title="<svg onload=alert(document.cookie)>"
            )
        db_session.refresh(test_post)
        assert test_post.title == "How do I parse JSON?"

    def test_moderator_cannot_edit(self, db_session, test_post, moderator_user) -> None:
        """Only the author or an ADMIN edits posts."""
        with pytest.raises(PermissionDeniedException):
            PostService.update_post(db_session, test_post.id, moderator_user, content=CONTENT)

    def test_admin_deletes_post(self, db_session, test_post, test_comment, admin_user, test_tag) -> None:
        PostService.delete_post(db_session, test_post.id, admin_user)

        assert db_session.query(db_models.Post).count() == 0
        assert db_session.query(db_models.Comment).count() == 0
        db_session.refresh(test_tag)
        assert test_tag.post_count == 0


class TestTags:
    def test_create_tag(self, db_session) -> None:
        tag = TagService.create_tag(db_session, "Machine Learning", "ML questions")
        assert tag.slug == "machine-learning"

    def test_duplicate_tag(self, db_session, test_tag) -> None:
        with pytest.raises(ConflictException):
            TagService.create_tag(db_session, "Python")

    def test_used_tag_cannot_be_deleted(self, db_session, test_post, test_tag) -> None:
        db_session.refresh(test_tag)
        with pytest.raises(ValidationException):
            TagService.delete_tag(db_session, test_tag.id)

    def test_unused_tag_deleted(self, db_session, test_tag) -> None:
        TagService.delete_tag(db_session, test_tag.id)
        assert db_session.query(db_models.Tag).count() == 0
