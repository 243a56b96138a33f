"""
Tests for utility modules.
"""

import re
from datetime import datetime, timedelta, timezone

from healthnet.utils import ids
from healthnet.utils.dates import to_naive_utc
from healthnet.utils.file_utils import generate_unique_filename, get_file_extension, is_allowed_file
from healthnet.utils.responses import error_response, success_response


class TestIds:

    def test_generate_id_format(self):
        assert re.fullmatch(r"PT-[A-Z0-9]{10}", ids.generate_id(ids.PATIENT))
        assert re.fullmatch(r"DIAG-[A-Z0-9]{10}", ids.generate_id(ids.DIAGNOSIS))

    def test_generated_ids_differ(self):
        assert len({ids.generate_id(ids.QR_CODE) for _ in range(50)}) == 50


class TestFileUtils:

    def test_get_file_extension(self):
        assert get_file_extension("report.PDF") == ".pdf"
        assert get_file_extension("archive.tar.gz") == ".gz"
        assert get_file_extension("noext") == ""

    def test_generate_unique_filename(self):
        first = generate_unique_filename("scan.JPG")
        second = generate_unique_filename("scan.JPG")
        assert first.endswith(".jpg")
        assert first != second

    def test_is_allowed_file(self):
        allowed = [".pdf", ".PNG"]
        assert is_allowed_file("result.pdf", allowed)
        assert is_allowed_file("xray.png", allowed)
        assert not is_allowed_file("payload.exe", allowed)


class TestDates:

    def test_naive_input_is_kept(self):
        value = datetime(2025, 3, 1, 8, 30)
        assert to_naive_utc(value) == value

    def test_aware_input_is_converted(self):
        value = datetime(2025, 3, 1, 10, 30, tzinfo=timezone(timedelta(hours=2)))
        assert to_naive_utc(value) == datetime(2025, 3, 1, 8, 30)

    def test_none(self):
        assert to_naive_utc(None) is None


class TestResponses:

    def test_success_envelope(self):
        assert success_response({"a": 1}, "Done") == {"success": True, "message": "Done", "data": {"a": 1}}

    def test_error_envelope(self):
        assert error_response("Nope") == {"success": False, "message": "Nope"}
        assert error_response("Nope", [{"field": "x"}])["errors"] == [{"field": "x"}]
