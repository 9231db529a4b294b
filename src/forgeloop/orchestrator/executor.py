"""Workflow executor: runs agent steps sequentially against one artifact.

Each step, in order:

1. moves ``idle -> running``,
2. builds a budgeted context from the live artifact store,
3. assembles the conversation (instructions, context and the previous
   step's output framed for this agent; then the user request),
4. checks the response cache, otherwise calls the completion client with
   bounded retry on recoverable provider errors,
5. parses the completion into files,
6. validates them and runs the self-correction loop on critical issues,
7. upserts the files into the artifact store,
8. extracts suggestions for reviewer and security agents,
9. moves ``running -> completed`` (or ``running -> error``, which halts
   the remaining steps).

The only suspension points are completion calls. Step *n*'s writes are
committed to the store before step *n+1* reads its context.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Iterable, Sequence
from typing import TYPE_CHECKING

from forgeloop.engine.cache import ResponseCache, make_cache_key
from forgeloop.engine.context import ContextBuilder
from forgeloop.engine.correction import (
    Candidate,
    CorrectionOutcome,
    CorrectionState,
    RecheckFailure,
    RuntimeFixLoop,
    SelfCorrectionLoop,
)
from forgeloop.engine.parser import ResponseParser
from forgeloop.engine.suggestions import SuggestionExtractor
from forgeloop.engine.validator import Validator
from forgeloop.exceptions import (
    CorrectionExhausted,
    ForgeError,
    ParseFailure,
    ProviderError,
    ValidationFailure,
)
from forgeloop.llm.protocols import CompletionRequest
from forgeloop.models.config import AgentSpec, ForgeConfig, LLMConfig
from forgeloop.models.conversation import ConversationTurn
from forgeloop.models.workflow import (
    AgentRole,
    StepFailure,
    WorkflowResult,
    WorkflowRun,
    WorkflowStep,
)
from forgeloop.orchestrator.config import DEFAULT_WORKFLOW, AgentRegistry
from forgeloop.orchestrator.summary import summarize_step
from forgeloop.prompts.agents import (
    DEFAULT_INSTRUCTIONS,
    STRICT_FORMAT_REQUEST,
    build_system_prompt,
    frame_previous_output,
)
from forgeloop.retry import complete_with_retry
from forgeloop.storage.protocols import LoggingSink

if TYPE_CHECKING:
    from forgeloop.llm.protocols import CompletionClient
    from forgeloop.models.artifact import ArtifactFile
    from forgeloop.storage.protocols import (
        ArtifactStore,
        ObservabilitySink,
        SuggestionStore,
    )

logger = logging.getLogger(__name__)

STRICT_FORMAT_TEMPERATURE = 0.3

# Roles whose output is parsed and written into the artifact.
_WRITING_ROLES = frozenset({AgentRole.CODER, AgentRole.CUSTOM})


def remediation_hint(exc: BaseException, config: ForgeConfig) -> str:
    """Human-readable next step for an aborted workflow."""
    if isinstance(exc, ProviderError):
        if exc.recoverable:
            return (
                f"The provider kept failing after {config.provider_max_retries} "
                "retries. Wait a moment and rerun, or raise provider_max_retries."
            )
        return (
            "The provider rejected the request. Check the API key "
            "(FORGELOOP_API_KEY), the model name and the base URL."
        )
    if isinstance(exc, ParseFailure):
        return (
            "The model returned no file blocks even after a strict re-prompt. "
            "Try a model with longer outputs or narrow the request."
        )
    if isinstance(exc, CorrectionExhausted):
        return (
            f"Critical issues remained after {exc.attempts} correction(s). "
            "Inspect the issues, or raise max_correction_attempts."
        )
    return "See the log output for details."


def render_file_blocks(files: Iterable[ArtifactFile]) -> str:
    """Render files in the annotated fenced-block format the parser reads."""
    return "\n\n".join(
        f"```{f.language}\n// filepath: {f.path}\n{f.content}\n```" for f in files
    )


StepCallback = Callable[[WorkflowStep], "Awaitable[None] | None"]


class WorkflowExecutor:
    """Runs workflows of configured agents against an artifact store.

    The response cache lives on the executor, so it is shared by every run
    this executor performs.

    Args:
        client: Completion client.
        artifacts: Artifact store; the single source of truth for files.
        config: Pipeline settings.
        agents: Agent registry, defaults to the built-in agents.
        cache: Response cache. Built from ``config`` when omitted and
            caching is enabled.
        validator: Validator with its rule table.
        parser: Response parser.
        context_builder: Context builder.
        extractor: Suggestion extractor.
        suggestions: Store receiving extracted suggestions.
        sink: Observability sink, defaults to a LoggingSink.
        on_step: Called (sync or async) after every finished step.

    Usage::

        executor = WorkflowExecutor(OpenAIClient(), MemoryArtifactStore())
        result = await executor.run("Build a todo app", ["planner", "coder"])
    """

    def __init__(
        self,
        client: CompletionClient,
        artifacts: ArtifactStore,
        *,
        config: ForgeConfig | None = None,
        agents: AgentRegistry | None = None,
        cache: ResponseCache | None = None,
        validator: Validator | None = None,
        parser: ResponseParser | None = None,
        context_builder: ContextBuilder | None = None,
        extractor: SuggestionExtractor | None = None,
        suggestions: SuggestionStore | None = None,
        sink: ObservabilitySink | None = None,
        on_step: StepCallback | None = None,
    ) -> None:
        self._client = client
        self._artifacts = artifacts
        self._config = config or ForgeConfig()
        self._agents = agents or AgentRegistry()
        if cache is None and self._config.cache_enabled:
            cache = ResponseCache(
                ttl=self._config.cache_ttl_seconds,
                max_entries=self._config.cache_max_entries,
            )
        self._cache = cache
        self._validator = validator or Validator()
        self._parser = parser or ResponseParser()
        self._context = context_builder or ContextBuilder()
        self._extractor = extractor or SuggestionExtractor()
        self._suggestions = suggestions
        self._sink = sink or LoggingSink()
        self._on_step = on_step

    @property
    def config(self) -> ForgeConfig:
        return self._config

    @property
    def cache(self) -> ResponseCache | None:
        return self._cache

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(
        self,
        request: str,
        agent_ids: Sequence[str] = DEFAULT_WORKFLOW,
    ) -> WorkflowResult:
        """Run the agents in order.

        Raises:
            UnknownAgentError: Before any step runs, if an id is unknown.

        Returns:
            The WorkflowResult. On abort, ``failure`` describes the failing
            step; the artifact store keeps every file committed before it.
        """
        specs = self._agents.resolve(agent_ids)
        run = WorkflowRun(
            request=request,
            steps=[WorkflowStep(agent_id=s.agent_id, role=s.role) for s in specs],
        )
        logger.info("Run %s: %d step(s) for %r", run.run_id, len(specs), request[:80])

        for spec, step in zip(specs, run.steps):
            try:
                await self._run_step(run, spec, step)
            except ForgeError as exc:
                return await self._abort(run, spec, step, exc)
            except Exception as exc:
                logger.exception("Step %s raised an unexpected error", spec.agent_id)
                return await self._abort(run, spec, step, exc)
            await self._notify(step)

        logger.info("Run %s completed", run.run_id)
        return WorkflowResult(run=run)

    async def _abort(
        self,
        run: WorkflowRun,
        spec: AgentSpec,
        step: WorkflowStep,
        exc: Exception,
    ) -> WorkflowResult:
        failure = StepFailure(
            agent_id=spec.agent_id,
            error_type=type(exc).__name__,
            message=str(exc),
            hint=remediation_hint(exc, self._config),
        )
        step.fail(failure)
        logger.error("Step %s failed: %s", spec.agent_id, exc)
        self._sink.emit(logging.ERROR, spec.agent_id, f"{exc} -- {failure.hint}")
        await self._notify(step)
        return WorkflowResult(run=run, failure=failure)

    async def fix_runtime_failure(
        self,
        request: str,
        failure: str,
        *,
        agent_id: str = "coder",
        previous_output: str | None = None,
        recheck: RecheckFailure | None = None,
    ) -> CorrectionOutcome:
        """Repair the current artifact against an external failure report.

        Uses its own attempt ceiling (``max_runtime_fix_attempts``).
        Accepted revisions are written to the artifact store.

        Raises:
            CorrectionExhausted: If the failure is still reported when the
                loop ends.
        """
        spec = self._agents.resolve([agent_id])[0]
        files = self._artifacts.list()
        turns = self._conversation(spec, request, files, framed_previous="")
        current = Candidate(
            text=previous_output or render_file_blocks(files),
            files=tuple(files),
            result=self._validator.validate(files, self._config.deployment_mode, spec.role),
        )
        loop = RuntimeFixLoop(self._config.max_runtime_fix_attempts)
        outcome = await loop.run(
            current,
            turns,
            request,
            failure,
            self._reviser(spec),
            recheck=recheck,
        )
        if outcome.revised:
            self._commit_files(outcome.best.files)
        self._sink.emit(
            logging.INFO,
            spec.agent_id,
            f"runtime fix {outcome.state.value} after {outcome.attempt_count} attempt(s)",
        )
        if outcome.state is not CorrectionState.ACCEPTED:
            raise CorrectionExhausted(outcome.attempt_count, [failure.strip()])
        return outcome

    # ------------------------------------------------------------------
    # Step pipeline
    # ------------------------------------------------------------------

    async def _run_step(self, run: WorkflowRun, spec: AgentSpec, step: WorkflowStep) -> None:
        step.start()
        self._sink.emit(logging.INFO, spec.agent_id, "started")
        logger.info("Step %s (%s) running", spec.agent_id, spec.role.value)

        files = self._artifacts.list()
        selection = self._context.select(files, run.request, self._config.context_max_chars)
        context = self._context.render(selection)
        if selection.dropped_paths:
            logger.debug("Context dropped %d file(s)", len(selection.dropped_paths))

        previous = run.previous_step
        framed = (
            frame_previous_output(previous.role, spec.role, previous.output)
            if previous is not None
            else ""
        )
        turns = self._conversation(spec, run.request, files, framed, context=context)

        cache_key = None
        cached = None
        if self._cache is not None and spec.role.cacheable:
            cache_key = make_cache_key(spec.agent_id, run.request, context)
            cached = self._cache.get(cache_key)

        if cached is not None:
            step.from_cache = True
            self._sink.emit(logging.DEBUG, spec.agent_id, "served from cache")
            candidate = Candidate(
                text=cached.text,
                files=cached.files,
                result=self._validate(spec, cached.files, cached.text),
            )
        else:
            text = await self._complete(turns, spec)
            candidate = await self._parse_candidate(spec, turns, text)

        if candidate.result.critical_issues and cached is None:
            candidate = await self._correct(spec, step, turns, run.request, candidate)

        if cache_key is not None and cached is None:
            self._cache.put(cache_key, candidate.text, candidate.files)

        self._commit_files(candidate.files)

        if spec.role.yields_suggestions:
            found = self._extractor.extract(
                candidate.text, spec.agent_id, self._artifacts.list()
            )
            for suggestion in found:
                if self._suggestions is not None:
                    self._suggestions.add(suggestion)
                run.suggestions.append(suggestion)
            if found:
                self._sink.emit(logging.INFO, spec.agent_id, f"{len(found)} suggestion(s)")

        step.files = list(candidate.files)
        step.validation = candidate.result
        step.complete(candidate.text)
        step.summary = summarize_step(spec.role, candidate.text, step.files, step.duration)
        self._sink.emit(logging.INFO, spec.agent_id, step.summary)
        for finding in candidate.result.findings:
            self._sink.emit(logging.WARNING, spec.agent_id, finding)

    def _conversation(
        self,
        spec: AgentSpec,
        request: str,
        files: Sequence[ArtifactFile],
        framed_previous: str,
        *,
        context: str | None = None,
    ) -> list[ConversationTurn]:
        if context is None:
            selection = self._context.select(files, request, self._config.context_max_chars)
            context = self._context.render(selection)
        instructions = spec.instructions or DEFAULT_INSTRUCTIONS[spec.role]
        return [
            ConversationTurn.system(build_system_prompt(instructions, context, framed_previous)),
            ConversationTurn.user(request),
        ]

    def _llm_for(self, spec: AgentSpec) -> LLMConfig:
        return (self._config.llm or LLMConfig()).merged(spec.llm)

    async def _complete(
        self,
        turns: Sequence[ConversationTurn],
        spec: AgentSpec,
        *,
        temperature: float | None = None,
    ) -> str:
        llm = self._llm_for(spec)
        request = CompletionRequest(
            turns=tuple(turns),
            model=llm.model,
            temperature=temperature if temperature is not None else llm.temperature,
            max_tokens=llm.max_tokens,
            credential=llm.credential,
            provider=llm.provider,
        )
        response = await complete_with_retry(
            self._client,
            request,
            max_retries=self._config.provider_max_retries,
            delay=self._config.provider_retry_delay,
        )
        return response.text

    def _parse(self, spec: AgentSpec, text: str) -> tuple[ArtifactFile, ...]:
        if spec.role not in _WRITING_ROLES:
            return ()
        return tuple(self._parser.parse(text))

    def _validate(self, spec: AgentSpec, files: Sequence[ArtifactFile], text: str):
        return self._validator.validate(files, self._config.deployment_mode, spec.role, text)

    async def _parse_candidate(
        self,
        spec: AgentSpec,
        turns: Sequence[ConversationTurn],
        text: str,
    ) -> Candidate:
        files = self._parse(spec, text)
        if not files and spec.role.produces_files:
            logger.warning("%s: no files parsed, re-prompting for strict format", spec.agent_id)
            self._sink.emit(logging.WARNING, spec.agent_id, "no files found, retrying")
            strict_turns = [
                *turns,
                ConversationTurn.assistant(text),
                ConversationTurn.user(STRICT_FORMAT_REQUEST),
            ]
            text = await self._complete(
                strict_turns, spec, temperature=STRICT_FORMAT_TEMPERATURE
            )
            files = self._parse(spec, text)
            if not files:
                raise ParseFailure(spec.agent_id, len(text))
        return Candidate(text=text, files=files, result=self._validate(spec, files, text))

    def _reviser(self, spec: AgentSpec) -> Callable[[list[ConversationTurn]], Awaitable[Candidate]]:
        async def revise(conversation: list[ConversationTurn]) -> Candidate:
            text = await self._complete(conversation, spec)
            files = self._parse(spec, text)
            return Candidate(text=text, files=files, result=self._validate(spec, files, text))

        return revise

    async def _correct(
        self,
        spec: AgentSpec,
        step: WorkflowStep,
        turns: Sequence[ConversationTurn],
        request: str,
        draft: Candidate,
    ) -> Candidate:
        self._sink.emit(
            logging.WARNING,
            spec.agent_id,
            f"{len(draft.result.critical_issues)} critical issue(s), correcting",
        )
        loop = SelfCorrectionLoop(self._config.max_correction_attempts)
        outcome = await loop.run(draft, turns, request, self._reviser(spec))
        step.correction_attempts = outcome.attempt_count
        remaining = outcome.best.result.critical_issues
        if outcome.state is CorrectionState.EXHAUSTED:
            logger.warning(
                "%s: correction exhausted with %d critical issue(s)",
                spec.agent_id,
                len(remaining),
            )
            if self._config.fail_on_exhausted_correction:
                raise CorrectionExhausted(
                    outcome.attempt_count, remaining
                ) from ValidationFailure(remaining)
        return outcome.best

    def _commit_files(self, files: Iterable[ArtifactFile]) -> None:
        for file in files:
            self._artifacts.upsert(file.path, file.content, file.language)

    async def _notify(self, step: WorkflowStep) -> None:
        if self._on_step is None:
            return
        result = self._on_step(step)
        if result is not None:
            await result
