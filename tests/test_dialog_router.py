"""
Tests for the dialog turn flow, driven through DialogRouter with a fake
analysis gateway.
"""
import pytest

from conftest import FakeGateway
from core.settings import Settings
from flows import DialogRouter
from utils.dialog_script import CONNECTIVITY_FIX_REPLY, DNS_FIX_REPLY, WRAP_UP_REPLY
from utils.replies import (
    EMPTY_MESSAGE_REPLY,
    FALLBACK_REPLY,
    GENERIC_ERROR_REPLY,
    REDACTION_NOTICE,
    RESET_REPLY,
    SEQUENCE_DONE_NUDGE,
    START_REPLY,
    flow_intro,
    help_text,
)
from utils.session_store import SessionStore


async def send(router, text, session_id="conv-1"):
    _, reply = await router.handle_message(session_id, text)
    return reply


# ============================================================================
# Commands
# ============================================================================

@pytest.mark.asyncio
async def test_help_is_idempotent_and_skips_analysis(router, store, gateway):
    first = await send(router, "help")
    second = await send(router, "HELP")

    assert first.text == help_text()
    assert second.text == help_text()
    session = store.get("conv-1")
    assert session.mode == "idle"
    assert session.ticket.is_empty()
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_blank_message_changes_nothing(router, store, gateway):
    reply = await send(router, "   ")

    assert reply.text == EMPTY_MESSAGE_REPLY
    assert store.get("conv-1").mode == "idle"
    assert gateway.calls == []


@pytest.mark.asyncio
async def test_start_enters_triage(router, store):
    reply = await send(router, "start")

    assert reply.text == f"{START_REPLY}\n{flow_intro('triage')}"
    session = store.get("conv-1")
    assert (session.mode, session.step) == ("triage", 0)


@pytest.mark.asyncio
async def test_mode_command_switches_mode(router, store):
    reply = await send(router, "Mode Windows")

    assert reply.text.startswith("✅ Mode set to: windows")
    assert flow_intro("windows") in reply.text
    session = store.get("conv-1")
    assert (session.mode, session.step) == ("windows", 0)


@pytest.mark.asyncio
async def test_unknown_mode_is_treated_as_a_message(router, store, gateway):
    await send(router, "mode foo")

    assert gateway.calls == ["mode foo"]
    assert store.get("conv-1").mode == "triage"


@pytest.mark.asyncio
@pytest.mark.parametrize("messages, position", [
    (["my wifi keeps dropping"], ("network", 0)),
    (["start", "my screen flickers", "Dell laptop"], ("triage", 2)),
    (["mode windows", "Windows 11", "stop code 0x0000007B", "restarted twice"], ("windows", 3)),
])
async def test_reset_clears_ticket_and_mode(router, store, messages, position):
    for message in messages:
        await send(router, message)
    session = store.get("conv-1")
    assert (session.mode, session.step) == position
    assert not session.ticket.is_empty()

    reply = await send(router, "reset")

    assert reply.text == RESET_REPLY
    assert (session.mode, session.step) == ("idle", 0)
    assert session.ticket.is_empty()

    summary = await send(router, "summary")
    assert "Issue: (not set)" in summary.text


@pytest.mark.asyncio
async def test_summary_shows_collected_ticket(router):
    await send(router, "my wifi keeps dropping")
    reply = await send(router, "summary")

    assert reply.text.startswith("```text\n----- TECH SUPPORT TICKET SUMMARY -----")
    assert reply.text.endswith("```")
    assert "Issue: my wifi keeps dropping" in reply.text
    assert "Urgency: normal" in reply.text


# ============================================================================
# Routing
# ============================================================================

@pytest.mark.asyncio
async def test_new_conversation_is_routed_to_network(router, store):
    reply = await send(router, "my wifi keeps dropping")

    assert reply.action_taken == "routed"
    assert "Wi-Fi or Ethernet" in reply.text
    assert "(lang: en, sentiment: neutral (pos 0.10, neu 0.80, neg 0.10))" in reply.text
    assert reply.metadata == {"mode": "network", "step": 0, "detected_lang": "en", "sentiment": "neutral"}
    session = store.get("conv-1")
    assert (session.mode, session.step) == ("network", 0)
    assert session.ticket.issue == "my wifi keeps dropping"


@pytest.mark.asyncio
async def test_negative_sentiment_changes_tone(store):
    router = DialogRouter(store, FakeGateway(sentiment="negative"))
    reply = await send(router, "my wifi keeps dropping")

    assert reply.text.startswith("I got you, we'll fix this.")


@pytest.mark.asyncio
async def test_issue_is_truncated_when_routing(router, store):
    await send(router, "wifi " + "drops again " * 30)
    assert len(store.get("conv-1").ticket.issue) == 180


@pytest.mark.asyncio
async def test_key_phrases_are_recorded_once(store):
    router = DialogRouter(store, FakeGateway(key_phrases=["wifi", "router"]))
    await send(router, "my wifi keeps dropping")
    await send(router, "Wi-Fi")

    symptoms = store.get("conv-1").ticket.symptoms
    assert symptoms == ["keywords: wifi, router", "connection: Wi-Fi"]


@pytest.mark.asyncio
async def test_key_phrases_drive_classification(store):
    router = DialogRouter(store, FakeGateway(key_phrases=["Blue screen"]))
    await send(router, "my laptop shows a weird page and restarts")

    assert store.get("conv-1").mode == "windows"


# ============================================================================
# Guided sequences
# ============================================================================

@pytest.mark.asyncio
async def test_network_sequence_with_connectivity_failure(router, store):
    await send(router, "my wifi keeps dropping")
    first = await send(router, "Wi-Fi")
    second = await send(router, "A=no B=all")
    third = await send(router, "Request timed out.\nRequest timed out.")

    assert first.text.startswith("A) Any website opens?")
    assert second.text.startswith("Run ONE command")
    assert third.text == CONNECTIVITY_FIX_REPLY

    ticket = store.get("conv-1").ticket
    assert ticket.symptoms == ["connection: Wi-Fi", "basic check: A=no B=all"]
    assert ticket.errors == ["network output: Request timed out.\nRequest timed out."]
    assert ticket.what_tried == ["network diagnostics provided"]
    assert store.get("conv-1").step == 3


@pytest.mark.asyncio
async def test_network_output_with_dns_failure(router):
    await send(router, "mode network")
    await send(router, "Ethernet")
    await send(router, "A=yes B=one")
    reply = await send(router, "*** can't find google.com: Non-existent domain")

    assert reply.text == DNS_FIX_REPLY


@pytest.mark.asyncio
async def test_network_output_is_truncated(router, store):
    await send(router, "mode network")
    await send(router, "Ethernet")
    await send(router, "A=yes B=all")
    await send(router, "Reply from 8.8.8.8: bytes=32 time=12ms TTL=117 " * 10)

    stored = store.get("conv-1").ticket.errors[0]
    assert len(stored) == len("network output: ") + 220


@pytest.mark.asyncio
async def test_triage_reclassifies_after_error_text(router, store):
    await send(router, "start")
    device_question = await send(router, "my screen flickers")
    await send(router, "Dell laptop")
    await send(router, "Windows 11")
    reply = await send(router, "Error 0x80070057")

    assert "1) What device?" in device_question.text
    assert reply.action_taken == "reclassified"
    assert reply.text == f"Perfect, switching to: app\n{flow_intro('app')}"

    session = store.get("conv-1")
    assert (session.mode, session.step) == ("app", 0)
    ticket = session.ticket
    assert ticket.issue == "my screen flickers"
    assert ticket.device == "Dell laptop"
    assert ticket.os == "Windows 11"
    assert ticket.errors == ["Error 0x80070057"]


@pytest.mark.asyncio
async def test_issue_restatement_becomes_a_detail(router, store):
    await send(router, "my wifi keeps dropping")
    await send(router, "mode triage")
    await send(router, "it drops every hour")

    ticket = store.get("conv-1").ticket
    assert ticket.issue == "my wifi keeps dropping"
    assert "details: it drops every hour" in ticket.symptoms


@pytest.mark.asyncio
async def test_exhausted_sequence_keeps_collecting_notes(router, store):
    await send(router, "mode windows")
    await send(router, "Windows 11, updated yesterday")
    await send(router, "stop code CRITICAL_PROCESS_DIED")
    wrap_up = await send(router, "restarted twice")
    nudge = await send(router, "also the fan is loud")
    again = await send(router, "also the fan is loud")

    assert wrap_up.text == WRAP_UP_REPLY
    assert nudge.text == SEQUENCE_DONE_NUDGE
    assert again.text == SEQUENCE_DONE_NUDGE

    session = store.get("conv-1")
    assert (session.mode, session.step) == ("windows", 3)
    assert session.ticket.os == "Windows 11, updated yesterday"
    assert session.ticket.errors == ["stop code CRITICAL_PROCESS_DIED"]
    assert session.ticket.what_tried == ["restarted twice"]
    assert session.ticket.symptoms.count("note: also the fan is loud") == 1


@pytest.mark.asyncio
async def test_unknown_mode_falls_back(router, store):
    session = store.get_or_create("conv-1")
    session.mode = "printer"

    reply = await send(router, "hello?")

    assert reply.text == FALLBACK_REPLY


# ============================================================================
# Analysis failures, PII and redaction
# ============================================================================

@pytest.mark.asyncio
async def test_analysis_failure_degrades_to_neutral(store):
    router = DialogRouter(store, FakeGateway(error=RuntimeError("service down")))
    reply = await send(router, "my wifi keeps dropping")

    assert "(lang: unknown, sentiment: neutral)" in reply.text
    assert reply.text.startswith("Alright, let's troubleshoot this step-by-step.")
    assert store.get("conv-1").mode == "network"


@pytest.mark.asyncio
async def test_analysis_timeout_degrades_to_neutral(store):
    settings = Settings(analysis_timeout_seconds=0.05)
    router = DialogRouter(store, FakeGateway(delay=1.0), settings)
    reply = await send(router, "my wifi keeps dropping")

    assert "(lang: unknown, sentiment: neutral)" in reply.text
    assert store.get("conv-1").mode == "network"


@pytest.mark.asyncio
async def test_pii_warning_is_prepended(store):
    router = DialogRouter(store, FakeGateway(pii_categories=["Email", "PhoneNumber"]))
    reply = await send(router, "my wifi keeps dropping, reach me at a@b.com")

    warning, rest = reply.text.split("\n\n", 1)
    assert warning.startswith("⚠️ I might be seeing sensitive info (Email, PhoneNumber)")
    assert "Wi-Fi or Ethernet" in rest


@pytest.mark.asyncio
async def test_credentials_are_redacted_before_analysis(router, store, gateway):
    reply = await send(router, "wifi rejects my password: hunter2")

    assert gateway.calls == ["wifi rejects my password: [REDACTED]"]
    assert reply.text.startswith(REDACTION_NOTICE)
    assert "hunter2" not in store.get("conv-1").ticket.issue


@pytest.mark.asyncio
async def test_sessions_are_isolated(router, store):
    await send(router, "my wifi keeps dropping", session_id="a")
    await send(router, "Outlook keeps crashing", session_id="b")

    assert store.get("a").mode == "network"
    assert store.get("b").mode == "app"
    assert store.get("a").ticket.issue != store.get("b").ticket.issue


@pytest.mark.asyncio
async def test_handle_message_creates_session_when_id_missing():
    store = SessionStore()
    router = DialogRouter(store, FakeGateway())

    session, reply = await router.handle_message(None, "help")

    assert session.session_id in store
    assert reply.action_taken == "help"


@pytest.mark.asyncio
async def test_unexpected_failure_still_replies(router, monkeypatch):
    async def broken_run(shared):
        raise RuntimeError("unexpected")

    monkeypatch.setattr(router.flow, "run_async", broken_run)
    reply = await send(router, "hello")

    assert reply.text == GENERIC_ERROR_REPLY
    assert reply.action_taken == "error"
