import logging

import pytest

from music_library import cli
from music_library.observability import JSONFormatter
from music_library.reminders import today_in_zone
from music_library.repositories import InMemorySpreadsheet

from .conftest import TZ, days_from, item_row


@pytest.fixture
def wired(monkeypatch, spreadsheet, outbox, settings):
    monkeypatch.setattr(cli, "get_spreadsheet", lambda: spreadsheet)
    monkeypatch.setattr(cli, "get_mail_transport", lambda: outbox)
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    return spreadsheet


class TestCli:
    def test_send_reminders(self, wired, items, outbox, capsys):
        items.append_row(item_row("42", "Checked Out", "Ann", "a@x.com", days_from(today_in_zone(TZ), 1)))
        assert cli.main(["send-reminders"]) == 0
        assert [e.to for e in outbox.sent] == ["a@x.com"]
        assert "sent=1" in capsys.readouterr().out

    def test_dry_run_prints_emails(self, wired, items, outbox, capsys):
        items.append_row(item_row("42", "Checked Out", "Ann", "a@x.com", days_from(today_in_zone(TZ), 1)))
        assert cli.main(["send-reminders", "--dry-run"]) == 0
        out = capsys.readouterr().out
        assert "To: a@x.com" in out
        assert "- Item #42" in out
        assert outbox.sent == []

    def test_init_rows(self, wired, items, capsys):
        items.append_row(item_row("1", status=""))
        assert cli.main(["init-rows"]) == 0
        assert "initialized=1" in capsys.readouterr().out

    def test_missing_sheet_exits_non_zero(self, monkeypatch, wired):
        monkeypatch.setattr(cli, "get_spreadsheet", lambda: InMemorySpreadsheet(TZ))
        assert cli.main(["send-reminders"]) == 1


class TestJSONFormatter:
    def test_extras_are_included(self):
        record = logging.LogRecord("music_library.reminders", logging.INFO, __file__, 1, "sent %s", ("x",), None)
        record.recipient = "ann@x.com"
        line = JSONFormatter().format(record)
        assert '"message": "sent x"' in line
        assert '"recipient": "ann@x.com"' in line
        assert '"item_id"' not in line
