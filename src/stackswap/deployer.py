"""Decides between hotswapping and a full deployment, and runs the hotswaps."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable

from stackswap.classifier import classify_resource_changes
from stackswap.models import (
    ApplyOutcome,
    ChangeCandidate,
    ClassifiedResourceChanges,
    HotswapDeploymentResult,
    HotswapMode,
    HotswappableChange,
    NonHotswappableChange,
)
from stackswap.policies import PolicyContext, PolicyRegistry

logger = logging.getLogger(__name__)

FullDeployment = Callable[[], Awaitable[None]]


class HotswapDeployer:
    """Applies hotswappable changes concurrently and falls back to a full deployment.

    ``full_deployment`` is called at most once per run and is expected to
    apply the whole stack from scratch.
    """

    def __init__(
        self,
        registry: PolicyRegistry,
        context: PolicyContext,
        full_deployment: FullDeployment,
        max_concurrent: int = 5,
    ):
        if max_concurrent <= 0:
            raise ValueError("max_concurrent must be > 0")
        self._registry = registry
        self._context = context
        self._full_deployment = full_deployment
        self._max_concurrent = max_concurrent

    def classify(self, candidates: Iterable[ChangeCandidate]) -> ClassifiedResourceChanges:
        return classify_resource_changes(candidates, self._registry, self._context)

    async def deploy(
        self, candidates: Iterable[ChangeCandidate], mode: HotswapMode
    ) -> HotswapDeploymentResult:
        """Run one deployment of ``candidates`` in the given mode."""
        if mode == HotswapMode.FULL_DEPLOYMENT:
            logger.info("Hotswap disabled, running a full deployment")
            await self._full_deployment()
            return HotswapDeploymentResult(mode=mode, full_deployment_ran=True)

        classified = self.classify(candidates)
        outcomes = await self._apply_all(classified.hotswappable_changes)

        reported = self._reportable(classified.non_hotswappable_changes, mode)
        full_deployment_ran = False
        if mode == HotswapMode.FALL_BACK and classified.non_hotswappable_changes:
            # The full deployment re-applies everything, including failed hotswaps.
            logger.info(
                "Falling back to a full deployment for %d non-hotswappable change(s)",
                len(classified.non_hotswappable_changes),
            )
            await self._full_deployment()
            full_deployment_ran = True

        return HotswapDeploymentResult(
            mode=mode,
            outcomes=outcomes,
            non_hotswappable_changes=reported,
            full_deployment_ran=full_deployment_ran,
        )

    @staticmethod
    def _reportable(
        changes: list[NonHotswappableChange], mode: HotswapMode
    ) -> list[NonHotswappableChange]:
        if mode == HotswapMode.HOTSWAP_ONLY:
            return [c for c in changes if c.hotswap_only_visible]
        return list(changes)

    async def _apply_all(self, changes: list[HotswappableChange]) -> list[ApplyOutcome]:
        if not changes:
            return []
        semaphore = asyncio.Semaphore(self._max_concurrent)

        async def bounded(change: HotswappableChange) -> ApplyOutcome:
            async with semaphore:
                return await self._apply_one(change)

        return list(await asyncio.gather(*(bounded(c) for c in changes)))

    async def _apply_one(self, change: HotswappableChange) -> ApplyOutcome:
        names = ", ".join(change.resource_names)
        logger.info("Hotswapping %s (%s)", names, ", ".join(change.props_changed))
        try:
            await change.apply()
        except Exception as e:
            logger.exception("Failed to hotswap %s", change.logical_id)
            return ApplyOutcome(
                logical_id=change.logical_id,
                resource_type=change.resource_type,
                resource_names=change.resource_names,
                error=str(e) or type(e).__name__,
            )
        logger.info("Hotswapped %s", names)
        return ApplyOutcome(
            logical_id=change.logical_id,
            resource_type=change.resource_type,
            resource_names=change.resource_names,
        )
