# tests/test_report_export.py
import csv
from datetime import datetime
from io import StringIO

from bson import ObjectId

from app.services.report_export import EXPORT_COLUMNS, export_filename, flatten_report, rows_to_csv


def sample_report(reporter_id, target_id):
    created = datetime(2024, 2, 10, 8, 30)
    return {
        "_id": ObjectId(),
        "reporter_id": reporter_id,
        "target_user_id": target_id,
        "content_type": "artwork",
        "content_id": ObjectId(),
        "reason": "copyright",
        "description": 'Copied from "Sunrise", without credit',
        "priority": "high",
        "status": "pending",
        "admin_notes": None,
        "action_taken": None,
        "metadata": {"content_title": "Sunrise, again"},
        "created_at": created,
        "updated_at": created,
    }


class TestFlattenReport:
    def test_row_has_every_column(self):
        reporter_id, target_id = ObjectId(), ObjectId()
        users = {
            reporter_id: {"_id": reporter_id, "display_name": "Reem", "email": "reem@example.com"},
            target_id: {"_id": target_id, "display_name": "Badr", "email": "badr@example.com"},
        }

        row = flatten_report(sample_report(reporter_id, target_id), users)

        assert list(row) == EXPORT_COLUMNS
        assert row["reporterName"] == "Reem"
        assert row["targetUserEmail"] == "badr@example.com"
        assert row["contentTitle"] == "Sunrise, again"
        assert row["createdAt"] == "2024-02-10T08:30:00"

    def test_missing_users_leave_blanks(self):
        row = flatten_report(sample_report(ObjectId(), None), {})

        assert row["reporterName"] is None
        assert row["targetUserName"] is None


class TestCsv:
    def test_header_only_for_empty_export(self):
        assert rows_to_csv([]) == ",".join(EXPORT_COLUMNS) + "\n"

    def test_values_with_commas_and_quotes_are_quoted(self):
        row = flatten_report(sample_report(ObjectId(), None), {})

        output = rows_to_csv([row])

        parsed = list(csv.reader(StringIO(output)))
        assert parsed[0] == EXPORT_COLUMNS
        assert parsed[1][EXPORT_COLUMNS.index("description")] == 'Copied from "Sunrise", without credit'
        assert parsed[1][EXPORT_COLUMNS.index("contentTitle")] == "Sunrise, again"
        assert parsed[1][EXPORT_COLUMNS.index("adminNotes")] == ""


def test_export_filename():
    assert export_filename(datetime(2024, 7, 1, 9, 5, 3)) == "reports_20240701090503.csv"
