"""Isolated execution of extraction scripts inside a page.

Scripts come from the content planner or from the actor owner and are
never trusted. Each one runs inside the page's own JavaScript realm (not
the Python host) as the body of an async function that sees only a
frozen ``bindings`` object and a pre-declared ``data`` container.
Every failure mode (syntax error, thrown exception, timeout,
non-serializable result, a crashed or closed page) is reported as an
``error`` result instead of an exception.

The script is started with the DevTools ``Runtime.evaluate`` command so
that its synchronous part is terminated by V8 once ``timeout_ms``
elapses. Its asynchronous part is raced against a page-side timer and,
as a last resort, against a host-side wait after which execution in the
page is terminated.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any

from playwright.sync_api import CDPSession, Page
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeout

logger = logging.getLogger(__name__)

# Extra host-side allowance on top of the page-side timer.
_HOST_GRACE_MS = 1_000

# The source runs in a nested async function so a script may assign to the
# outer ``data``, or shadow it with its own ``var``/``let``/``const data``.
_PRELUDE = """void (async (bindings, timeoutMs, slot) => {
  const settle = (outcome) => { globalThis[Symbol.for(slot)] = outcome; };
  let timer;
  const timeout = new Promise((resolve) => {
    timer = setTimeout(() => resolve({ error: 'Script timed out after ' + timeoutMs + 'ms' }), timeoutMs);
  });
  const execution = (async () => {
    try {
      let data = {};
      const value = await (async () => {
"""

_POSTLUDE = """
;
        return data;
      })();
      return { data: JSON.parse(JSON.stringify(value === undefined || value === null ? {} : value)) };
    } catch (error) {
      return { error: error && error.message ? error.message : String(error) };
    }
  })();
  try {
    settle(await Promise.race([execution, timeout]));
  } finally {
    clearTimeout(timer);
  }
})(Object.freeze(%(bindings)s), %(timeout_ms)d, %(slot)s);
"""

_TAKE_OUTCOME_JS = """(slot) => {
  const key = Symbol.for(slot);
  if (!(key in globalThis)) return undefined;
  const outcome = globalThis[key];
  delete globalThis[key];
  return outcome || { data: {} };
}"""


@dataclass
class SandboxResult:
    """Terminating outcome of one sandboxed run: ``data`` or ``error``."""

    data: dict[str, Any] | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        """Return ``{"data": ...}`` or ``{"error": ...}``."""
        if self.error is not None:
            return {"error": self.error}
        return {"data": self.data if self.data is not None else {}}

    def payload(self) -> dict[str, Any]:
        """Return the mapping to merge into accumulated results.

        A failed run contributes ``{"error": message}``.
        """
        if self.error is not None:
            return {"error": self.error}
        return dict(self.data or {})


def build_expression(script: str, bindings: dict[str, Any], timeout_ms: int, slot: str) -> str:
    """Return the page-side expression that runs *script* and stores its outcome under *slot*.

    Raises:
        TypeError: If *bindings* is not JSON-serializable.
    """
    tail = _POSTLUDE % {
        "bindings": json.dumps(bindings),
        "timeout_ms": timeout_ms,
        "slot": json.dumps(slot),
    }
    return _PRELUDE + script + tail


class ScriptSandbox:
    """Run extraction scripts against a live page with guaranteed typed results.

    Args:
        timeout_ms: Upper bound for one script evaluation.
    """

    def __init__(self, *, timeout_ms: int = 30_000) -> None:
        self._timeout_ms = timeout_ms

    @classmethod
    def from_settings(cls) -> "ScriptSandbox":
        from actorrun.settings import get_settings

        return cls(timeout_ms=get_settings().sandbox.timeout_ms)

    def run(self, page: Page, script: str, bindings: dict[str, Any] | None = None) -> SandboxResult:
        """Evaluate *script* on *page* and return its ``data`` or an ``error``.

        Never raises and never retries.

        Args:
            page: The page to run against.
            script: JavaScript body that populates ``data``.
            bindings: JSON-serializable values exposed to the script as ``bindings``.
        """
        if not script or not script.strip():
            return SandboxResult(data={})

        slot = f"actorrun:{uuid.uuid4().hex}"
        try:
            expression = build_expression(script, bindings or {}, self._timeout_ms, slot)
        except (TypeError, ValueError) as exc:
            return SandboxResult(error=f"Bindings are not serializable: {exc}")

        session: CDPSession | None = None
        try:
            session = page.context.new_cdp_session(page)
            return self._evaluate(page, session, expression, slot)
        except Exception as exc:
            # Host-side failures: page closed, context destroyed by navigation,
            # CDP session unavailable.
            logger.warning("Sandbox evaluation failed on %s: %s", _page_url(page), exc)
            return SandboxResult(error=f"{type(exc).__name__}: {exc}")
        finally:
            if session is not None:
                try:
                    session.detach()
                except PlaywrightError as exc:
                    logger.debug("CDP session detach failed: %s", exc)

    def _evaluate(self, page: Page, session: CDPSession, expression: str, slot: str) -> SandboxResult:
        started = time.monotonic()
        try:
            reply = session.send(
                "Runtime.evaluate",
                {"expression": expression, "timeout": self._timeout_ms, "returnByValue": True},
            )
        except PlaywrightError as exc:
            if "terminated" in str(exc).lower():
                return self._timed_out(page)
            raise

        details = reply.get("exceptionDetails")
        if details:
            return SandboxResult(error=_exception_text(details))

        elapsed_ms = int((time.monotonic() - started) * 1000)
        remaining_ms = max(self._timeout_ms - elapsed_ms, 0) + _HOST_GRACE_MS
        try:
            handle = page.wait_for_function(_TAKE_OUTCOME_JS, arg=slot, timeout=remaining_ms, polling=50)
        except PlaywrightTimeout:
            _terminate(session)
            return self._timed_out(page)
        return _normalize(handle.json_value())

    def _timed_out(self, page: Page) -> SandboxResult:
        logger.warning("Sandbox script on %s exceeded %dms and was terminated", _page_url(page), self._timeout_ms)
        return SandboxResult(error=f"Script timed out after {self._timeout_ms}ms")


def _terminate(session: CDPSession) -> None:
    try:
        session.send("Runtime.terminateExecution")
    except PlaywrightError as exc:
        logger.debug("terminateExecution failed: %s", exc)


def _exception_text(details: dict[str, Any]) -> str:
    """Render a DevTools ``exceptionDetails`` as ``"<Name>: <message>"``."""
    exception = details.get("exception") or {}
    description = exception.get("description") or details.get("text") or "Script failed"
    return str(description).splitlines()[0]


def _normalize(outcome: Any) -> SandboxResult:
    if not isinstance(outcome, dict):
        return SandboxResult(error=f"Unexpected sandbox outcome: {type(outcome).__name__}")
    if outcome.get("error") is not None:
        return SandboxResult(error=str(outcome["error"]))
    data = outcome.get("data")
    if data is None:
        return SandboxResult(data={})
    if not isinstance(data, dict):
        return SandboxResult(data={"value": data})
    return SandboxResult(data=data)


def _page_url(page: Page) -> str:
    try:
        return page.url
    except Exception:
        return "<closed page>"
