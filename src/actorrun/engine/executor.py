"""Extraction engine: actor + intent → planned, captured, traversed result."""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

from actorrun.browser.capture import ResponseCapture
from actorrun.browser.navigation import goto_settled
from actorrun.browser.pagination import PaginationController
from actorrun.browser.scrape import SelectorScraper
from actorrun.browser.session import BrowserManager
from actorrun.engine.lifecycle import ExecutionTracker, describe_error
from actorrun.exceptions import PlanningError
from actorrun.models.execution import ExecutionStatus
from actorrun.planner.adapter import ContentPlanner
from actorrun.store.prompt_store import PromptStore

logger = logging.getLogger(__name__)


class ExtractionRequest(BaseModel):
    """One request to run an actor."""

    actor_ref: str
    intent: str = ""
    context: dict[str, Any] = Field(default_factory=dict)


class ExtractionOutput(BaseModel):
    """What an execution produced (or how far it got before failing)."""

    execution_id: str
    status: ExecutionStatus
    url: str | None = None
    scraped_data: list[dict[str, Any]] = Field(default_factory=list)
    selectors: dict[str, str] = Field(default_factory=dict)
    generated_script: str | None = None
    result: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None


class ExtractionEngine:
    """Orchestrates one actor execution end to end.

    Args:
        tracker: Lifecycle tracker (owns actor resolution and state writes).
        planner: Content planner producing url / script / pagination.
        browser: Shared browser manager; each stage gets its own page.
        capture: Response capture engine.
        pagination: Pagination traversal controller.
        prompts: Optional store recording generated URLs.
        scraper: Selector scraper; built from settings on first use when omitted.
        navigation_timeout_ms: Timeout for loading the traversal page.
    """

    def __init__(
        self,
        tracker: ExecutionTracker,
        planner: ContentPlanner,
        browser: BrowserManager,
        capture: ResponseCapture,
        pagination: PaginationController,
        *,
        prompts: PromptStore | None = None,
        scraper: SelectorScraper | None = None,
        navigation_timeout_ms: int = 60_000,
    ) -> None:
        self.tracker = tracker
        self.planner = planner
        self.browser = browser
        self.capture = capture
        self.pagination = pagination
        self.prompts = prompts
        self.scraper = scraper
        self.navigation_timeout_ms = navigation_timeout_ms

    @classmethod
    def from_settings(cls) -> ExtractionEngine:
        from actorrun.browser.session import get_browser_manager
        from actorrun.settings import get_settings
        from actorrun.store import build_stores

        actors, executions, prompts = build_stores()
        browser = get_browser_manager()
        return cls(
            ExecutionTracker(actors, executions),
            ContentPlanner.from_settings(),
            browser,
            ResponseCapture.from_settings(),
            PaginationController.from_settings(),
            prompts=prompts,
            scraper=SelectorScraper.from_settings(browser),
            navigation_timeout_ms=get_settings().capture.navigation_timeout_ms,
        )

    def execute(self, request: ExtractionRequest) -> ExtractionOutput:
        """Run the actor named by *request* and return its output.

        Failures after the execution record exists are recorded on it and
        returned as a ``failed`` output rather than raised.

        Raises:
            ActorNotFoundError: If the actor reference does not resolve.
        """
        actor = self.tracker.resolve_actor(request.actor_ref)
        execution = self.tracker.start(actor)
        output = ExtractionOutput(execution_id=execution.id, status=ExecutionStatus.PENDING)

        try:
            with self.tracker.guard(execution.id):
                self.tracker.mark_running(execution.id)

                if not request.intent.strip():
                    raise PlanningError("A prompt is required to process the web content")

                plan = self.planner.plan(actor.namespace, request.intent, request.context)
                script = actor.script or plan.script
                output.url = plan.url
                output.selectors = plan.selectors
                output.generated_script = script
                logger.info("Executing %s against %s", actor.namespace, plan.url)

                captured = self.capture.capture(
                    self.browser.acquire_page(),
                    plan.url,
                    filters=actor.response_filters,
                )
                output.scraped_data = captured.responses

                with self.browser.page_scope() as page:
                    goto_settled(page, plan.url, timeout_ms=self.navigation_timeout_ms)
                    output.result = self.pagination.traverse(
                        page, script, plan.pagination, bindings=request.context
                    )

                self.tracker.complete(
                    execution.id,
                    {
                        "url": output.url,
                        "selectors": output.selectors,
                        "generated_script": output.generated_script,
                        "scraped_data": output.scraped_data,
                        "result": output.result,
                    },
                )
                output.status = ExecutionStatus.COMPLETED
        except Exception as exc:
            failed = self.tracker.get(execution.id)
            output.status = ExecutionStatus.FAILED
            output.error = failed.logs if failed is not None and failed.logs else describe_error(exc)
            partial = getattr(exc, "partial_responses", None)
            if partial:
                output.scraped_data = partial
            logger.error("Execution %s of %s failed: %s", execution.id, actor.namespace, output.error)

        return output

    def generate_actor_url(
        self,
        actor_ref: str,
        intent: str,
        *,
        user_id: str,
        context: dict[str, Any] | None = None,
    ) -> str:
        """Rewrite the actor's platform URL for *intent* and record the prompt.

        Raises:
            ActorNotFoundError: If the actor reference does not resolve.
            PlanningError: If the actor has no platform URL or the planner
                returns an unusable answer.
        """
        actor = self.tracker.resolve_actor(actor_ref)
        if not actor.url:
            raise PlanningError(f"Actor {actor.namespace} has no platform URL")

        url = self.planner.generate_url(actor.url, intent, context)
        if self.prompts is not None:
            self.prompts.record_prompt(namespace=actor.namespace, user_id=user_id, prompt=intent, response_url=url)
        return url

    def scrape(self, url: str, selectors: dict[str, str]) -> dict[str, str]:
        """Return the trimmed text of each named selector on *url* (cached)."""
        if self.scraper is None:
            self.scraper = SelectorScraper.from_settings(self.browser)
        return self.scraper.scrape(url, selectors)
