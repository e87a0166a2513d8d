# SPDX-FileCopyrightText: 2025 vulnscope contributors
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Scan session controller.

``ScanSession`` owns the whole submit-to-report workflow for one form:

    idle --submit--> (validation error, stays idle) | pending
    pending --response--> succeeded | failed
    succeeded | failed --clear--> idle

At most one request is in flight. While pending, submits and form edits are
ignored rather than queued, and the only way out is the response. Progress and
status-line timers exist only inside the pending episode and are cancelled
before the result is shown.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable, Sequence
from dataclasses import replace

from .activity import DEFAULT_SCAN_LOG_LINES, ActivityLog
from .config import ScannerSettings, load_settings
from .errors import (
    NETWORK_ERROR_MESSAGE,
    RequestErrorKind,
    ScanRequestError,
    UrlValidationError,
    categorize_exception,
)
from .http.client import HttpClient
from .models.report import ScanReport
from .models.scan import ScanMode, ScanRequest, ScanResult
from .models.session import FormValues, SessionSnapshot, SessionState
from .progress import ProgressSimulator
from .service import ScanServiceClient
from .timers import periodic
from .validation import validate

logger = logging.getLogger(__name__)

Listener = Callable[[SessionSnapshot], None]


class ScanSession:
    """Single-form scan workflow: validate, dispatch once, simulate progress, classify."""

    def __init__(
        self,
        service: ScanServiceClient | None = None,
        *,
        settings: ScannerSettings | None = None,
        http_client: HttpClient | None = None,
        log_script: Sequence[str] = DEFAULT_SCAN_LOG_LINES,
        rng: random.Random | None = None,
    ):
        self.settings = settings or (service.settings if service is not None else load_settings())
        self.service = service or ScanServiceClient(http_client=http_client, settings=self.settings)
        self.form = FormValues()

        self._state = SessionState.IDLE
        self._result: ScanResult | None = None
        self._report: ScanReport | None = None
        self._error_message: str | None = None
        self._request_error: ScanRequestError | None = None
        self._validation_error: UrlValidationError | None = None
        self._listeners: list[Listener] = []
        self._muted = False

        self._progress = ProgressSimulator(
            plateau=self.settings.progress_plateau,
            max_step=self.settings.progress_max_step,
            rng=rng,
            on_change=lambda _value: self._notify(),
        )
        self._activity = ActivityLog(log_script, on_change=lambda _lines: self._notify())

    # -- read side -------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def is_pending(self) -> bool:
        return self._state is SessionState.PENDING

    @property
    def progress(self) -> float:
        return self._progress.value

    @property
    def log_lines(self) -> tuple[str, ...]:
        return self._activity.lines

    @property
    def result(self) -> ScanResult | None:
        return self._result

    @property
    def report(self) -> ScanReport | None:
        return self._report

    @property
    def error_message(self) -> str | None:
        return self._error_message

    @property
    def request_error(self) -> ScanRequestError | None:
        return self._request_error

    @property
    def validation_error(self) -> UrlValidationError | None:
        return self._validation_error

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            state=self._state,
            form=replace(self.form),
            progress=self._progress.value,
            log_lines=self._activity.lines,
            result=self._result,
            report=self._report,
            error_message=self._error_message,
            validation_error=self._validation_error,
        )

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener for every observable change; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -- user actions ----------------------------------------------------

    def update_form(self, *, url: str | None = None, scan_mode: ScanMode | str | None = None) -> bool:
        """Edit the not-yet-submitted form. Ignored while a request is pending."""
        if self.is_pending:
            logger.debug("Form edit ignored while a scan is pending")
            return False
        mode = ScanMode.parse(scan_mode) if scan_mode is not None else None
        if url is not None:
            self.form.url = url
        if mode is not None:
            self.form.scan_mode = mode
        self._notify()
        return True

    async def submit(self, url: str | None = None, scan_mode: ScanMode | str | None = None) -> bool:
        """
        Submit the form and, if it validates, run one scan episode to completion.

        Returns True when a request was dispatched (regardless of its outcome) and
        False when the submit was rejected: either a request is already pending or
        the URL failed validation.
        """
        if self.is_pending:
            logger.debug("Submit ignored: a scan is already pending")
            return False
        if url is not None or scan_mode is not None:
            self.update_form(url=url, scan_mode=scan_mode)

        self._clear_outcome()
        try:
            target = validate(self.form.url)
        except UrlValidationError as exc:
            logger.info("Rejected scan target %r: %s", self.form.url, exc.kind.value)
            self._state = SessionState.IDLE
            self._validation_error = exc
            self._notify()
            return False

        request = ScanRequest(target_url=target, scan_mode=self.form.scan_mode)
        # Entering pending happens before the first await so a concurrent submit sees it.
        self._state = SessionState.PENDING
        self._reset_episode()
        self._notify()

        try:
            await self._run_episode(request)
        except BaseException:
            if self.is_pending:
                logger.info("Scan episode for %s abandoned before completion", request.target_url)
                self._state = SessionState.IDLE
                self._reset_episode()
                self._notify()
            raise
        return True

    def clear(self) -> bool:
        """Return to idle, discarding the result, errors, form values and episode buffers."""
        if self.is_pending:
            logger.debug("Clear ignored while a scan is pending")
            return False
        self.form = FormValues()
        self._clear_outcome()
        self._state = SessionState.IDLE
        self._reset_episode()
        self._notify()
        return True

    # -- episode ---------------------------------------------------------

    async def _run_episode(self, request: ScanRequest) -> None:
        result: ScanResult | None = None
        failure: ScanRequestError | None = None

        async with (
            periodic(self.settings.progress_interval, self._progress.advance, name="scan-progress"),
            periodic(self.settings.log_interval, self._activity.emit_next, name="scan-activity"),
        ):
            try:
                result = await self.service.scan(request)
            except ScanRequestError as exc:
                failure = exc
            except Exception as exc:  # noqa: BLE001
                logger.exception("Scan service client failed unexpectedly")
                failure = ScanRequestError(
                    RequestErrorKind.NETWORK_FAILURE,
                    NETWORK_ERROR_MESSAGE,
                    category=categorize_exception(exc),
                )

        # Timers are gone; show completion before revealing the outcome.
        self._progress.complete()
        if self.settings.completion_grace > 0:
            await asyncio.sleep(self.settings.completion_grace)

        if failure is not None:
            logger.info("Scan of %s failed (%s): %s", request.target_url, failure.kind.value, failure)
            self._request_error = failure
            self._error_message = failure.message
            self._state = SessionState.FAILED
        else:
            self._result = result
            self._report = ScanReport.from_result(result)
            logger.info(
                "Scan of %s succeeded: %d findings, threat level %s",
                request.target_url,
                len(result.vulnerabilities),
                self._report.threat_level.value,
            )
            self._state = SessionState.SUCCEEDED
        self._reset_episode()
        self._notify()

    def _clear_outcome(self) -> None:
        self._result = None
        self._report = None
        self._error_message = None
        self._request_error = None
        self._validation_error = None

    def _reset_episode(self) -> None:
        # Callers notify once afterwards with the final state.
        self._muted = True
        try:
            self._progress.reset()
            self._activity.clear()
        finally:
            self._muted = False

    def _notify(self) -> None:
        if self._muted or not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:  # noqa: BLE001
                logger.exception("Session listener %r failed", listener)

    # -- lifecycle -------------------------------------------------------

    async def aclose(self) -> None:
        await self.service.aclose()

    async def __aenter__(self) -> ScanSession:
        return self

    async def __aexit__(self, _exc_type, _exc, _tb) -> None:  # noqa: ANN001
        await self.aclose()


__all__ = ["Listener", "ScanSession"]
