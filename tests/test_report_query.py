# tests/test_report_query.py
from datetime import datetime, timedelta, timezone

from bson import ObjectId

from app.models.report import ReportQuery
from app.services.report_query import (
    build_pagination,
    build_report_filter,
    build_search_filter,
    build_sort,
    get_pagination_params,
    to_naive_utc,
)


class TestReportFilter:
    def test_empty_query_matches_everything(self):
        assert build_report_filter(ReportQuery()) == {}

    def test_criteria_are_combined(self):
        reporter_id = ObjectId()
        query = ReportQuery(status="pending", content_type="image", reason="spam", priority="high")

        mongo_filter = build_report_filter(query, reporter_id=reporter_id)

        assert mongo_filter == {
            "reporter_id": reporter_id,
            "status": "pending",
            "content_type": "image",
            "reason": "spam",
            "priority": "high",
        }

    def test_date_range_is_inclusive_and_naive(self):
        start = datetime(2024, 5, 1, 3, 0, tzinfo=timezone(timedelta(hours=3)))
        end = datetime(2024, 5, 2)

        mongo_filter = build_report_filter(ReportQuery(date_from=start, date_to=end))

        assert mongo_filter["created_at"] == {"$gte": datetime(2024, 5, 1, 0, 0), "$lte": end}

    def test_search_escapes_regex_characters(self):
        search = build_search_filter("a+b (c)")

        pattern = search["$or"][0]["description"]["$regex"]
        assert pattern == r"a\+b\ \(c\)"
        assert search["$or"][1]["metadata.content_title"]["$options"] == "i"

    def test_blank_search_is_ignored(self):
        assert build_search_filter("   ") is None
        assert build_search_filter(None) is None


class TestSortAndPagination:
    def test_default_sort_is_newest_first(self):
        assert build_sort(ReportQuery()) == [("created_at", -1)]

    def test_secondary_sort_on_created_at(self):
        query = ReportQuery(sort_by="priority", sort_order="asc")

        assert build_sort(query) == [("priority", 1), ("created_at", -1)]

    def test_pagination_params_are_clamped(self):
        assert get_pagination_params(0, 0) == (1, 1, 0)
        assert get_pagination_params(3, 20) == (3, 20, 40)

    def test_pagination_block(self):
        pagination = build_pagination(page=1, limit=20, total=0)

        assert pagination.total_pages == 0
        assert pagination.has_next_page is False
        assert pagination.has_prev_page is False

    def test_last_page(self):
        pagination = build_pagination(page=3, limit=10, total=25)

        assert pagination.total_pages == 3
        assert pagination.has_next_page is False
        assert pagination.has_prev_page is True


def test_to_naive_utc_leaves_naive_values_alone():
    value = datetime(2024, 1, 1, 12)

    assert to_naive_utc(value) is value
    assert to_naive_utc(None) is None
