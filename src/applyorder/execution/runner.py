"""Layer Runner - drive a resource handler through an apply plan.

The runner owns the ordering contract; the handler owns the remote API.

Execution Strategy:
1. Sequential layers: every resource in layer N reaches a terminal outcome
   (success or failure) before any resource in layer N+1 starts
   - Apply walks the layers forward (dependencies first)
   - Prune walks the same layers in reverse (dependents first)

2. Parallel resources within a layer: bounded by a semaphore sized from
   PolicyConfig.max_concurrent_operations

3. A cyclic dependency aborts the run before anything executes. The layers
   resolved before the cycle are never handed to the handler.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime, timezone

import structlog

from ..config import FailurePolicy, PolicyConfig
from ..dependency.ordering import sort_metas
from ..dependency.planner import ApplyPlan, DependencyPlanner
from ..models.identity import ObjMetadata
from ..models.results import Action, ResourceResult, ResourceStatus, RunReport
from ..observability.logger import LogContext

logger = structlog.get_logger(__name__)

ResourceHandler = Callable[[Action, ObjMetadata], Awaitable[None]]


class LayerRunner:
    """
    Execute a handler for every resource of a plan, layer by layer.

    Example:
        async def handler(action, identity):
            await client.apply(identity) if action is Action.APPLY else ...

        runner = LayerRunner(handler, PolicyConfig(max_concurrent_operations=5))
        report = await runner.run_apply(plan)
    """

    def __init__(self, handler: ResourceHandler, policy: PolicyConfig | None = None) -> None:
        """
        Initialize runner.

        Args:
            handler: Async callable performing one action on one resource.
                Raising any exception marks the resource as failed.
            policy: Concurrency and failure policy (defaults if None)
        """
        self.handler = handler
        self.policy = policy or PolicyConfig()

    async def run_apply(self, plan: ApplyPlan) -> RunReport:
        """Apply every resource, layers in creation order."""
        return await self._run(plan, Action.APPLY)

    async def run_prune(self, plan: ApplyPlan) -> RunReport:
        """Prune every resource, layers in reverse creation order."""
        return await self._run(plan, Action.PRUNE)

    async def run_from_facts(
        self,
        identities: Iterable[ObjMetadata],
        dependencies: Iterable[tuple[ObjMetadata, ObjMetadata]],
        action: Action = Action.APPLY,
    ) -> RunReport:
        """
        Plan and run in one step.

        Raises:
            CyclicDependencyError: If the facts contain a cycle. Nothing is
                executed in that case.
            UnknownResourceError: In strict mode, for undeclared endpoints
        """
        planner = DependencyPlanner(strict=self.policy.strict_references)
        plan = planner.plan(identities, dependencies)
        return await self._run(plan, action)

    async def _run(self, plan: ApplyPlan, action: Action) -> RunReport:
        indexed_layers = list(enumerate(plan.layers))
        if action == Action.PRUNE:
            indexed_layers.reverse()

        report = RunReport(action=action, started_at=datetime.now(timezone.utc))
        semaphore = asyncio.Semaphore(self.policy.max_concurrent_operations)
        start = time.monotonic()

        with LogContext(action=action.value):
            logger.info(
                "Starting run",
                layers=len(indexed_layers),
                resources=sum(len(layer) for _, layer in indexed_layers),
                failure_policy=self.policy.failure_policy.value,
            )

            for position, (layer_index, layer) in enumerate(indexed_layers):
                if report.aborted:
                    report.results.extend(
                        ResourceResult(
                            identity=identity,
                            action=action,
                            status=ResourceStatus.SKIPPED,
                            layer=layer_index,
                            error_message="run aborted after an earlier layer failed",
                        )
                        for identity in sort_metas(layer)
                    )
                    continue

                layer_results = await self._run_layer(layer_index, layer, action, semaphore)
                report.results.extend(layer_results)
                report.layers_completed = position + 1

                failed = sum(1 for r in layer_results if r.status == ResourceStatus.FAILED)
                logger.info(
                    "Layer completed",
                    layer=layer_index,
                    successful=len(layer_results) - failed,
                    failed=failed,
                )
                if failed and self.policy.failure_policy == FailurePolicy.FAIL_FAST:
                    logger.error(
                        "Layer failed, skipping remaining layers",
                        layer=layer_index,
                        failed=failed,
                        remaining_layers=len(indexed_layers) - position - 1,
                    )
                    report.aborted = True

        report.duration_seconds = time.monotonic() - start
        report.completed_at = datetime.now(timezone.utc)
        logger.info(
            "Run complete",
            action=action.value,
            duration_seconds=f"{report.duration_seconds:.2f}",
            successful=report.succeeded,
            failed=report.failed,
            skipped=report.skipped,
        )
        return report

    async def _run_layer(
        self,
        layer_index: int,
        layer: frozenset[ObjMetadata],
        action: Action,
        semaphore: asyncio.Semaphore,
    ) -> list[ResourceResult]:
        """
        Run every member of a layer and wait for all of them.

        Returns:
            Results in sorted identity order
        """
        members = sort_metas(layer)
        logger.debug("Executing layer", layer=layer_index, resources=len(members))
        tasks = [self._run_resource(layer_index, m, action, semaphore) for m in members]
        return list(await asyncio.gather(*tasks))

    async def _run_resource(
        self,
        layer_index: int,
        identity: ObjMetadata,
        action: Action,
        semaphore: asyncio.Semaphore,
    ) -> ResourceResult:
        async with semaphore:
            started = time.monotonic()
            try:
                await self.handler(action, identity)
            except Exception as e:
                duration_ms = (time.monotonic() - started) * 1000
                logger.error(
                    "Resource failed",
                    resource=str(identity),
                    layer=layer_index,
                    error=str(e),
                )
                return ResourceResult(
                    identity=identity,
                    action=action,
                    status=ResourceStatus.FAILED,
                    layer=layer_index,
                    error_message=str(e) or type(e).__name__,
                    duration_ms=duration_ms,
                )

            duration_ms = (time.monotonic() - started) * 1000
            logger.debug("Resource succeeded", resource=str(identity), layer=layer_index)
            return ResourceResult(
                identity=identity,
                action=action,
                status=ResourceStatus.SUCCEEDED,
                layer=layer_index,
                duration_ms=duration_ms,
            )
