"""
Tests for the ticket accumulator and its summary rendering.
"""
import pytest

from utils.ticket import SUMMARY_FOOTER, SUMMARY_HEADER, Ticket, add_unique, summarize


def test_add_unique_skips_empty_and_repeats():
    items = []
    assert add_unique(items, "a") is True
    assert add_unique(items, "a") is False
    assert add_unique(items, "") is False
    assert add_unique(items, None) is False
    assert items == ["a"]


def test_capture_issue_is_set_once():
    ticket = Ticket()
    assert ticket.capture_issue("wifi drops") is True
    assert ticket.capture_issue("something else") is False
    assert ticket.issue == "wifi drops"


def test_fill_keeps_first_value_and_records_difference_as_symptom():
    ticket = Ticket()
    ticket.fill("device", "Dell XPS")
    ticket.fill("device", "Dell XPS")
    ticket.fill("device", "HP laptop")
    ticket.fill("issue", "wifi drops")
    ticket.fill("issue", "drops every hour")

    assert ticket.device == "Dell XPS"
    assert ticket.issue == "wifi drops"
    assert ticket.symptoms == ["device: HP laptop", "details: drops every hour"]


def test_fill_rejects_list_fields():
    with pytest.raises(ValueError):
        Ticket().fill("symptoms", "x")


def test_append_rejects_single_value_fields():
    with pytest.raises(ValueError):
        Ticket().append("device", "x")


def test_list_fields_deduplicate_exact_repeats():
    ticket = Ticket()
    ticket.append("errors", "0x80070057")
    ticket.append("errors", "0x80070057")
    ticket.append("errors", "0x8007000E")
    assert ticket.errors == ["0x80070057", "0x8007000E"]


def test_is_empty():
    ticket = Ticket()
    assert ticket.is_empty()
    ticket.append("what_tried", "restart")
    assert not ticket.is_empty()


def test_summary_of_empty_ticket_uses_placeholders():
    lines = summarize(Ticket()).split("\n")
    assert lines == [
        SUMMARY_HEADER,
        "Issue: (not set)",
        "Device: (unknown)",
        "OS: (unknown)",
        "App: (n/a)",
        "Urgency: normal",
        SUMMARY_FOOTER,
    ]


def test_summary_lists_only_non_empty_lists():
    ticket = Ticket(issue="wifi drops", device="Dell XPS", os="Windows 11")
    ticket.append("symptoms", "connection: wifi")
    ticket.append("symptoms", "keywords: wifi")
    ticket.append("what_tried", "restart")

    summary = summarize(ticket)

    assert "Issue: wifi drops" in summary
    assert "OS: Windows 11" in summary
    assert "Symptoms: connection: wifi | keywords: wifi" in summary
    assert "Tried: restart" in summary
    assert "Errors:" not in summary
    assert summary.startswith(SUMMARY_HEADER)
    assert summary.endswith(SUMMARY_FOOTER)
