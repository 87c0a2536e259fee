"""Tests for reading source tables from files and URLs."""

from unittest.mock import MagicMock

import pytest
import requests

from catalog import sources
from catalog.sources import (
    SourceMalformed,
    SourceUnreachable,
    fetch_bytes,
    looks_like_html,
    parse_csv,
    read_source,
    read_sources,
)
from catalog.url_validation import (
    URLValidationError,
    csv_export_hint,
    is_http_source,
    validate_source_url,
)

HTML_PAGE = b"<!DOCTYPE html><html><head><title>Bike sheet - Google Sheets</title></head><body></body></html>"
SHEET_PUBHTML = "https://docs.google.com/spreadsheets/d/e/2PACX-abc/pubhtml?gid=123"


def _response(status=200, content=b"", reason="OK"):
    resp = MagicMock()
    resp.status_code = status
    resp.content = content
    resp.reason = reason
    if status >= 400:
        resp.raise_for_status.side_effect = requests.exceptions.HTTPError(response=resp)
    return resp


@pytest.fixture
def no_sleep(monkeypatch):
    monkeypatch.setattr(sources.time, "sleep", lambda _: None)


class TestParseCsv:
    def test_rows_keyed_by_trimmed_header(self):
        rows = parse_csv(b"sku_id , model_id\nS1,M1\n\nS2,M2\n")
        assert rows == [{"sku_id": "S1", "model_id": "M1"}, {"sku_id": "S2", "model_id": "M2"}]

    def test_cells_stay_strings_and_empty_is_blank(self):
        rows = parse_csv(b"sku_id,gtin,in_stock\nS1,0001234,\n")
        assert rows == [{"sku_id": "S1", "gtin": "0001234", "in_stock": ""}]

    def test_quoted_commas(self):
        rows = parse_csv(b'sku_id,price_rrp_gbp\nS1,"\xc2\xa31,999.00"\n')
        assert rows[0]["price_rrp_gbp"] == "£1,999.00"

    def test_utf8_bom_is_ignored(self):
        rows = parse_csv("\ufeffsku_id\nS1\n".encode("utf-8"))
        assert list(rows[0]) == ["sku_id"]

    def test_empty_content_is_malformed(self):
        with pytest.raises(SourceMalformed):
            parse_csv(b"")

    def test_html_is_rejected_with_title(self):
        with pytest.raises(SourceMalformed) as exc:
            parse_csv(HTML_PAGE, SHEET_PUBHTML)
        message = str(exc.value)
        assert "Expected CSV but got HTML" in message
        assert "Bike sheet - Google Sheets" in message
        assert "output=csv" in message
        assert exc.value.source == SHEET_PUBHTML


class TestLooksLikeHtml:
    @pytest.mark.parametrize("content", [b"<!doctype html>", b"  \n<HTML lang='en'>", HTML_PAGE])
    def test_html(self, content):
        assert looks_like_html(content)

    def test_csv(self):
        assert not looks_like_html(b"sku_id,notes\nS1,html export\n")

    def test_only_leading_bytes_checked(self):
        assert not looks_like_html(b"a" * 200 + b"<html>")


class TestReadSource:
    def test_local_file(self, source_files):
        rows = read_source(str(source_files["skus"]))
        assert [r["sku_id"] for r in rows] == ["S1", "S2", "S3"]

    def test_missing_file_is_unreachable(self, tmp_path):
        with pytest.raises(SourceUnreachable) as exc:
            read_source(str(tmp_path / "nope.csv"))
        assert "nope.csv" in str(exc.value)

    def test_local_html_file_is_malformed(self, tmp_path):
        path = tmp_path / "export.csv"
        path.write_bytes(HTML_PAGE)
        with pytest.raises(SourceMalformed) as exc:
            read_source(str(path))
        assert "Tip:" in str(exc.value)

    def test_url_uses_session(self):
        session = MagicMock()
        session.get.return_value = _response(content=b"sku_id\nS1\n")
        rows = read_source("https://example.com/skus.csv", session=session)
        assert rows == [{"sku_id": "S1"}]
        session.get.assert_called_once()

    def test_url_returning_html_is_malformed(self):
        session = MagicMock()
        session.get.return_value = _response(content=HTML_PAGE)
        with pytest.raises(SourceMalformed):
            read_source(SHEET_PUBHTML, session=session)


class TestFetchBytes:
    def test_retries_on_server_error(self, no_sleep):
        session = MagicMock()
        session.get.side_effect = [_response(503), _response(content=b"ok")]
        assert fetch_bytes("https://example.com/a.csv", session) == b"ok"
        assert session.get.call_count == 2

    def test_retries_on_connection_error(self, no_sleep):
        session = MagicMock()
        session.get.side_effect = [requests.exceptions.ConnectionError("down"), _response(content=b"ok")]
        assert fetch_bytes("https://example.com/a.csv", session) == b"ok"

    def test_gives_up_after_retries(self, no_sleep):
        session = MagicMock()
        session.get.side_effect = requests.exceptions.Timeout("slow")
        with pytest.raises(SourceUnreachable):
            fetch_bytes("https://example.com/a.csv", session)
        assert session.get.call_count == sources.MAX_RETRIES + 1

    def test_client_error_not_retried(self, no_sleep):
        session = MagicMock()
        session.get.return_value = _response(404, reason="Not Found")
        with pytest.raises(SourceUnreachable) as exc:
            fetch_bytes("https://example.com/a.csv", session)
        assert "404" in str(exc.value)
        assert session.get.call_count == 1

    def test_invalid_url(self):
        with pytest.raises(SourceUnreachable):
            fetch_bytes("ftp://example.com/a.csv", MagicMock())


class TestReadSources:
    def test_reads_all_three(self, source_files):
        tables = read_sources(
            str(source_files["models"]), str(source_files["skus"]), str(source_files["retailer"])
        )
        assert set(tables) == {"models", "skus", "retailer"}
        assert len(tables["models"]) == 2
        assert len(tables["retailer"]) == 3

    def test_any_failure_propagates(self, source_files, tmp_path):
        with pytest.raises(SourceUnreachable):
            read_sources(str(source_files["models"]), str(tmp_path / "missing.csv"), str(source_files["retailer"]))


class TestUrlValidation:
    def test_http_source_detection(self):
        assert is_http_source("https://example.com/x.csv")
        assert is_http_source("  HTTP://example.com/x.csv")
        assert not is_http_source("data/models.csv")
        assert not is_http_source("")

    @pytest.mark.parametrize(
        "url", ["", "javascript:alert(1)", "file:///etc/passwd", "ftp://host/x", "https://"]
    )
    def test_rejected(self, url):
        with pytest.raises(URLValidationError):
            validate_source_url(url)

    def test_control_characters_stripped(self):
        assert validate_source_url(" https://example.com/a\x00.csv ") == "https://example.com/a.csv"

    def test_hint_for_pubhtml(self):
        hint = csv_export_hint(SHEET_PUBHTML)
        assert "/pub?gid=123&single=true&output=csv" in hint

    def test_hint_for_editor_link(self):
        hint = csv_export_hint("https://docs.google.com/spreadsheets/d/KEY123/edit#gid=7")
        assert hint.endswith("/spreadsheets/d/KEY123/export?format=csv&gid=7")

    def test_hint_for_export_link_mentions_sharing(self):
        hint = csv_export_hint("https://docs.google.com/spreadsheets/d/KEY/export?format=csv")
        assert "shared" in hint

    def test_no_hint_for_other_hosts(self):
        assert csv_export_hint("https://example.com/data.csv") is None
