"""Tests for sanitization, slugs and time helpers."""

from datetime import datetime, timedelta, timezone

from helpers.sanitization import sanitize_html, sanitize_plain_text
from helpers.slug import slugify, unique_slug
from helpers.time_utils import days_ago, ensure_utc, format_iso8601, start_of_day


class TestSanitizeHtml:
    def test_keeps_whitelisted_tags(self):
        html = "<p>Use <code>json.loads</code> and <strong>check</strong> types</p>"

        assert sanitize_html(html) == html

    def test_strips_scripts(self):
        cleaned = sanitize_html("<p>Hi</p><script>alert(1)</script>")

        assert "<script>" not in cleaned
        assert cleaned.startswith("<p>Hi</p>")

    def test_drops_javascript_links(self):
        assert sanitize_html('<a href="javascript:alert(1)">x</a>') == "<a>x</a>"

    def test_keeps_https_links(self):
        html = '<a href="https://docs.python.org">docs</a>'

        assert sanitize_html(html) == html

    def test_none(self):
        assert sanitize_html(None) is None


class TestSanitizePlainText:
    def test_strips_all_tags(self):
        assert sanitize_plain_text("<b>Bold</b> title") == "Bold title"

    def test_trims_whitespace(self):
        assert sanitize_plain_text("  spaced  ") == "spaced"

    def test_none(self):
        assert sanitize_plain_text(None) is None


class TestSlugify:
    def test_basic(self):
        assert slugify("How do I parse JSON?") == "how-do-i-parse-json"

    def test_folds_accents(self):
        assert slugify("Café résumé") == "cafe-resume"

    def test_collapses_separators(self):
        assert slugify("a  --  b__c") == "a-b-c"

    def test_only_symbols(self):
        assert slugify("???") == ""


class TestUniqueSlug:
    def test_free_slug(self):
        assert unique_slug("Hello World", lambda slug: False) == "hello-world"

    def test_appends_counter(self):
        taken = {"hello-world", "hello-world-2"}

        assert unique_slug("Hello World", taken.__contains__) == "hello-world-3"

    def test_empty_title_gets_random_slug(self):
        slug = unique_slug("!!!", lambda candidate: False)

        assert len(slug) == 8


class TestTimeUtils:
    def test_ensure_utc_naive(self):
        naive = datetime(2024, 5, 1, 12, 0)

        assert ensure_utc(naive) == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    def test_ensure_utc_converts_offsets(self):
        plus_two = datetime(2024, 5, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))

        assert ensure_utc(plus_two) == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        assert ensure_utc(plus_two).tzinfo == timezone.utc

    def test_start_of_day(self):
        now = datetime(2024, 5, 1, 15, 42, 7, tzinfo=timezone.utc)

        assert start_of_day(now) == datetime(2024, 5, 1, tzinfo=timezone.utc)

    def test_days_ago(self):
        now = datetime(2024, 5, 8, tzinfo=timezone.utc)

        assert days_ago(7, now) == datetime(2024, 5, 1, tzinfo=timezone.utc)

    def test_format_iso8601(self):
        dt = datetime(2024, 5, 1, 12, 30)

        assert format_iso8601(dt) == "2024-05-01T12:30:00Z"
        assert format_iso8601(None) is None
