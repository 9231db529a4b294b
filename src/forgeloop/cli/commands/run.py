"""forgeloop run -- run a workflow against the artifact database."""

from __future__ import annotations

import asyncio

import click

from forgeloop.models.validation import DeploymentMode


@click.command()
@click.argument("request")
@click.option(
    "--agent",
    "-a",
    "agent_ids",
    multiple=True,
    help="Agent to run, in order (repeatable). Defaults to planner, coder, reviewer.",
)
@click.option(
    "--mode",
    type=click.Choice([m.value for m in DeploymentMode]),
    default=None,
    help="Deployment mode, enables mode-specific rules.",
)
@click.option("--model", default=None, help="Model name for every agent.")
@click.option("--clear", is_flag=True, help="Clear the artifact before running.")
@click.pass_context
def run(
    ctx: click.Context,
    request: str,
    agent_ids: tuple[str, ...],
    mode: str | None,
    model: str | None,
    clear: bool,
) -> None:
    """Run REQUEST through the agent workflow.

    Files are written to the artifact database; suggestions from review
    and audit agents are stored for `forgeloop suggestions`.
    """
    from forgeloop.cli import _store_session
    from forgeloop.cli.formatting import format_suggestions, format_workflow
    from forgeloop.llm.client import OpenAIClient
    from forgeloop.models.config import ForgeConfig, LLMConfig
    from forgeloop.orchestrator.config import DEFAULT_WORKFLOW
    from forgeloop.orchestrator.executor import WorkflowExecutor

    with _store_session(ctx) as (artifacts, suggestions, console):
        overrides: dict = {}
        if mode is not None:
            overrides["deployment_mode"] = mode
        if model is not None:
            overrides["llm"] = LLMConfig(model=model)
        config = ForgeConfig.from_env(**overrides)
        if clear:
            artifacts.clear_all()

        async def _run():
            async with OpenAIClient() as client:
                executor = WorkflowExecutor(
                    client, artifacts, config=config, suggestions=suggestions
                )
                return await executor.run(request, agent_ids or DEFAULT_WORKFLOW)

        with console.status("Running workflow..."):
            result = asyncio.run(_run())

        format_workflow(result, console)
        if result.run.suggestions:
            console.print()
            format_suggestions(result.run.suggestions, console)
        if not result.succeeded:
            raise SystemExit(1)
