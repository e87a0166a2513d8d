# SPDX-FileCopyrightText: 2025 vulnscope contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio
import json
import random

import pytest

from vulnscope.config import ScannerSettings
from vulnscope.errors import NETWORK_ERROR_MESSAGE, RequestErrorKind, ValidationErrorKind
from vulnscope.http.adapters import StubHttpClient
from vulnscope.http.models import HttpResponse
from vulnscope.models import ScanMode, SessionState
from vulnscope.session import ScanSession
from vulnscope.severity import SeverityTier, ThreatLevel

BASE = "http://scanner.test"
ENDPOINT = f"{BASE}/api/scan"
SCRIPT = ("connecting", "fetching", "analyzing", "scoring")
TIMER_NAMES = {"scan-progress", "scan-activity"}


def fast_settings(**overrides):
    values = {
        "base_url": BASE,
        "progress_interval": 0.001,
        "log_interval": 0.001,
        "completion_grace": 0.0,
    }
    values.update(overrides)
    return ScannerSettings(**values)


def json_response(payload, status_code=200, reason_phrase="OK"):
    return HttpResponse(ok=True, status_code=status_code, reason_phrase=reason_phrase, text=json.dumps(payload), url=ENDPOINT)


def result_payload(findings=(), score=0, duration=120):
    return {"vulnerabilities": list(findings), "severity_score": score, "scan_duration_ms": duration}


def make_session(response=None, *, gate=None, settings=None):
    stub = StubHttpClient(gate=gate)
    if response is not None:
        stub.add("POST", ENDPOINT, response)
    session = ScanSession(
        http_client=stub,
        settings=settings or fast_settings(),
        log_script=SCRIPT,
        rng=random.Random(42),
    )
    return session, stub


async def wait_for(predicate, timeout=2.0):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met in time")
        await asyncio.sleep(0.001)


def live_timers():
    return [task for task in asyncio.all_tasks() if task.get_name() in TIMER_NAMES]


def test_initial_state_is_idle():
    session, _ = make_session()
    snapshot = session.snapshot()
    assert snapshot.state is SessionState.IDLE
    assert snapshot.progress == 0.0
    assert snapshot.log_lines == ()
    assert snapshot.form.url == ""
    assert snapshot.form.scan_mode is ScanMode.QUICK
    assert snapshot.can_submit is True
    assert snapshot.message is None


def test_unsupported_scheme_never_reaches_network():
    session, stub = make_session()
    dispatched = asyncio.run(session.submit("ftp://x.com", "quick"))
    assert dispatched is False
    assert session.state is SessionState.IDLE
    assert session.validation_error.kind is ValidationErrorKind.UNSUPPORTED_SCHEME
    assert session.snapshot().message == "Please enter a valid URL starting with http:// or https://"
    assert stub.requests == []


def test_empty_input_is_rejected_before_parsing():
    session, stub = make_session()
    assert asyncio.run(session.submit("   ")) is False
    assert session.validation_error.kind is ValidationErrorKind.EMPTY_INPUT
    assert stub.requests == []


def test_clean_scan_succeeds_with_secure_report():
    session, stub = make_session(json_response(result_payload(score=0, duration=120)))
    assert asyncio.run(session.submit("https://example.com", ScanMode.QUICK)) is True

    assert len(stub.requests) == 1
    request = stub.requests[0]
    assert request.method == "POST"
    assert request.url == ENDPOINT
    assert request.headers["Content-Type"] == "application/json"
    assert json.loads(request.body) == {"url": "https://example.com", "scanType": "quick"}

    assert session.state is SessionState.SUCCEEDED
    assert session.result.scan_duration_ms == 120
    assert session.report.threat_level is ThreatLevel.SECURE
    assert session.report.is_clean is True
    assert session.progress == 0.0
    assert session.log_lines == ()
    assert session.error_message is None


def test_high_finding_is_classified():
    finding = {
        "vuln_type": "Exposed admin panel",
        "severity": "HIGH",
        "description": "Admin login reachable",
        "location": "https://example.com/admin",
        "recommendation": "Restrict access",
    }
    session, _ = make_session(json_response(result_payload([finding], score=35)))
    asyncio.run(session.submit("https://example.com", "deep"))
    assert session.state is SessionState.SUCCEEDED
    report = session.report
    assert [item.tier for item in report.findings] == [SeverityTier.HIGH]
    assert report.threat_level is ThreatLevel.HIGH
    assert report.tier_counts()[SeverityTier.HIGH] == 1


def test_server_error_fails_and_allows_resubmit():
    failing = HttpResponse(ok=True, status_code=500, reason_phrase="Internal Server Error", url=ENDPOINT)
    session, stub = make_session(failing)
    assert asyncio.run(session.submit("https://example.com")) is True
    assert session.state is SessionState.FAILED
    assert session.error_message == "Server error: Internal Server Error"
    assert session.request_error.kind is RequestErrorKind.SERVER_ERROR
    assert session.result is None
    assert session.snapshot().can_submit is True

    stub.add("POST", ENDPOINT, json_response(result_payload(score=3)))
    assert asyncio.run(session.submit()) is True
    assert session.state is SessionState.SUCCEEDED
    assert session.error_message is None
    assert session.report.threat_level is ThreatLevel.LOW
    assert len(stub.requests) == 2


def test_network_failure_message():
    session, _ = make_session()
    asyncio.run(session.submit("https://example.com"))
    assert session.state is SessionState.FAILED
    assert session.error_message == NETWORK_ERROR_MESSAGE
    assert session.request_error.kind is RequestErrorKind.NETWORK_FAILURE


def test_malformed_body_fails_episode():
    session, _ = make_session(HttpResponse(ok=True, status_code=200, reason_phrase="OK", text="<html>"))
    asyncio.run(session.submit("https://example.com"))
    assert session.state is SessionState.FAILED
    assert session.request_error.kind is RequestErrorKind.MALFORMED_RESPONSE


def test_submit_while_pending_is_ignored():
    async def scenario():
        gate = asyncio.Event()
        session, stub = make_session(json_response(result_payload()), gate=gate)
        first = asyncio.create_task(session.submit("https://example.com", "quick"))
        await wait_for(lambda: stub.requests)

        assert session.state is SessionState.PENDING
        assert await session.submit("https://other.example", "deep") is False
        assert session.update_form(url="https://edited.example") is False
        assert session.clear() is False
        assert len(stub.requests) == 1
        assert session.state is SessionState.PENDING
        assert session.form.url == "https://example.com"
        assert session.form.scan_mode is ScanMode.QUICK

        gate.set()
        assert await first is True
        return session, stub

    session, stub = asyncio.run(scenario())
    assert session.state is SessionState.SUCCEEDED
    assert len(stub.requests) == 1


def test_progress_plateaus_and_logs_stream_while_pending():
    async def scenario():
        gate = asyncio.Event()
        session, _ = make_session(json_response(result_payload()), gate=gate)
        task = asyncio.create_task(session.submit("https://example.com"))
        await wait_for(lambda: session.progress >= 95.0 and len(session.log_lines) == len(SCRIPT))

        assert session.progress == 95.0
        assert session.log_lines == SCRIPT
        await asyncio.sleep(0.01)
        assert session.progress == 95.0
        assert session.log_lines == SCRIPT

        gate.set()
        await task
        return session

    session = asyncio.run(scenario())
    assert session.progress == 0.0
    assert session.log_lines == ()


def test_progress_reaches_100_before_result_is_shown():
    snapshots = []

    async def scenario():
        gate = asyncio.Event()
        session, _ = make_session(json_response(result_payload(score=60)), gate=gate)
        session.subscribe(snapshots.append)
        task = asyncio.create_task(session.submit("https://example.com"))
        await wait_for(lambda: len(session.log_lines) >= 2)
        gate.set()
        await task

    asyncio.run(scenario())

    states = [snap.state for snap in snapshots]
    first_pending = states.index(SessionState.PENDING)
    first_done = states.index(SessionState.SUCCEEDED)
    completed = [i for i, snap in enumerate(snapshots) if snap.progress == 100.0]
    assert len(completed) == 1
    assert first_pending < completed[0] < first_done
    assert snapshots[completed[0]].state is SessionState.PENDING
    assert all(snap.state is SessionState.PENDING for snap in snapshots[first_pending:first_done])
    assert snapshots[first_pending].progress == 0.0
    assert snapshots[-1].state is SessionState.SUCCEEDED
    assert snapshots[-1].progress == 0.0
    assert snapshots[-1].log_lines == ()
    assert snapshots[-1].report.threat_level is ThreatLevel.CRITICAL

    pending_logs = [snap.log_lines for snap in snapshots if snap.state is SessionState.PENDING and snap.log_lines]
    for lines in pending_logs:
        assert lines == SCRIPT[: len(lines)]


def test_timers_do_not_outlive_the_episode():
    async def scenario():
        session, _ = make_session(json_response(result_payload()))
        changes = []
        await session.submit("https://example.com")
        session.subscribe(changes.append)
        assert live_timers() == []
        await asyncio.sleep(0.02)
        return session, changes

    session, changes = asyncio.run(scenario())
    assert changes == []
    assert session.progress == 0.0
    assert session.log_lines == ()


def test_grace_delay_holds_pending_at_100():
    async def scenario():
        session, _ = make_session(json_response(result_payload()), settings=fast_settings(completion_grace=0.05))
        task = asyncio.create_task(session.submit("https://example.com"))
        await wait_for(lambda: session.progress == 100.0)
        assert session.state is SessionState.PENDING
        assert live_timers() == []
        await task
        return session

    session = asyncio.run(scenario())
    assert session.state is SessionState.SUCCEEDED


def test_host_cancellation_returns_to_idle():
    async def scenario():
        gate = asyncio.Event()
        session, stub = make_session(json_response(result_payload()), gate=gate)
        task = asyncio.create_task(session.submit("https://example.com"))
        await wait_for(lambda: stub.requests)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert live_timers() == []
        return session

    session = asyncio.run(scenario())
    assert session.state is SessionState.IDLE
    assert session.progress == 0.0
    assert session.log_lines == ()


@pytest.mark.parametrize("outcome", ["success", "failure"])
def test_clear_is_idempotent_from_terminal_states(outcome):
    response = json_response(result_payload(score=20)) if outcome == "success" else None
    session, _ = make_session(response)
    asyncio.run(session.submit("https://example.com", "comprehensive"))
    assert session.state in {SessionState.SUCCEEDED, SessionState.FAILED}
    assert session.snapshot().can_clear is True

    for _ in range(2):
        assert session.clear() is True
        snapshot = session.snapshot()
        assert snapshot.state is SessionState.IDLE
        assert snapshot.progress == 0.0
        assert snapshot.log_lines == ()
        assert snapshot.result is None
        assert snapshot.error_message is None
        assert snapshot.form.url == ""
        assert snapshot.form.scan_mode is ScanMode.QUICK


def test_validation_failure_discards_previous_result():
    session, _ = make_session(json_response(result_payload(score=10)))
    asyncio.run(session.submit("https://example.com"))
    assert session.state is SessionState.SUCCEEDED
    asyncio.run(session.submit("example.com"))
    assert session.state is SessionState.IDLE
    assert session.result is None
    assert session.validation_error.kind is ValidationErrorKind.MALFORMED_URL


def test_update_form_does_not_touch_state():
    session, _ = make_session()
    seen = []
    session.subscribe(seen.append)
    assert session.update_form(url="https://example.com", scan_mode="Deep") is True
    assert session.state is SessionState.IDLE
    assert session.form.url == "https://example.com"
    assert session.form.scan_mode is ScanMode.DEEP
    assert seen[-1].form.url == "https://example.com"
    with pytest.raises(ValueError):
        session.update_form(scan_mode="exhaustive")


def test_submit_uses_original_url_verbatim():
    session, stub = make_session(json_response(result_payload()))
    asyncio.run(session.submit("https://example.com/path?q=1 "))
    assert json.loads(stub.requests[0].body)["url"] == "https://example.com/path?q=1 "


def test_listener_errors_do_not_break_the_episode():
    session, _ = make_session(json_response(result_payload()))

    def broken(_snapshot):
        raise RuntimeError("render failed")

    unsubscribe = session.subscribe(broken)
    asyncio.run(session.submit("https://example.com"))
    assert session.state is SessionState.SUCCEEDED
    unsubscribe()
    unsubscribe()


def test_session_closes_owned_client_only():
    async def scenario():
        stub = StubHttpClient()
        async with ScanSession(http_client=stub, settings=fast_settings()):
            pass
        return stub

    assert asyncio.run(scenario()).closed is False


def test_deeply_nested_body_fails_episode():
    body = "[" * 100000 + "]" * 100000
    session, _ = make_session(HttpResponse(ok=True, status_code=200, reason_phrase="OK", text=body, url=ENDPOINT))
    assert asyncio.run(session.submit("https://example.com")) is True
    assert session.state is SessionState.FAILED
    assert session.request_error.kind is RequestErrorKind.MALFORMED_RESPONSE
    assert session.error_message
    assert session.progress == 0.0


def test_huge_integer_score_is_critical():
    text = '{"vulnerabilities":[],"severity_score":1' + "0" * 400 + ',"scan_duration_ms":1}'
    session, _ = make_session(HttpResponse(ok=True, status_code=200, reason_phrase="OK", text=text, url=ENDPOINT))
    asyncio.run(session.submit("https://example.com"))
    assert session.state is SessionState.SUCCEEDED
    assert session.report.threat_level is ThreatLevel.CRITICAL


class _BrokenService:
    def __init__(self, settings):
        self.settings = settings

    async def scan(self, request):  # noqa: ARG002
        raise RuntimeError("unexpected")

    async def aclose(self):
        pass


def test_unexpected_service_error_fails_with_network_message():
    session = ScanSession(_BrokenService(fast_settings()), log_script=SCRIPT, rng=random.Random(42))
    assert asyncio.run(session.submit("https://example.com")) is True
    assert session.state is SessionState.FAILED
    assert session.error_message == NETWORK_ERROR_MESSAGE
    assert session.request_error.kind is RequestErrorKind.NETWORK_FAILURE
    assert session.snapshot().can_submit is True
