"""
In-Memory Usage Recorder

UsageRecorder that prices each record from the provider catalog and keeps it
in memory, with per-user aggregation. Quotas are not enforced here.
"""

from datetime import datetime
from typing import Any

from ai_abstraction.core.config.constants import Stage
from ai_abstraction.core.logging.logger import get_logger, log_stage
from ai_abstraction.models.provider_instance import UsageRecord
from ai_abstraction.providers.catalog import calculate_cost

logger = get_logger(__name__)


class InMemoryUsageRecorder:
    """
    Stores usage records in a list.

    Usage:
        recorder = InMemoryUsageRecorder()
        await recorder.record(usage)
        summary = recorder.get_user_usage("user-1")
    """

    def __init__(self):
        self._records: list[UsageRecord] = []

    @property
    def records(self) -> list[UsageRecord]:
        return list(self._records)

    async def record(self, usage: UsageRecord) -> None:
        """
        Store a usage record, filling in its cost from the catalog.

        STAGE-6.0: Usage recording
        """
        cost = calculate_cost(
            usage.provider, usage.model, usage.prompt_tokens, usage.completion_tokens
        )
        stored = usage.model_copy(update={"cost": cost})
        self._records.append(stored)

        log_stage(
            logger,
            Stage.USAGE_RECORDING,
            "Usage recorded",
            level="debug",
            provider=stored.provider,
            model=stored.model,
            total_tokens=stored.total_tokens,
            cost=round(cost, 6),
        )

    def get_user_usage(
        self,
        user_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> dict[str, Any]:
        """
        Aggregate a user's usage, optionally within [start, end].

        Returns:
            Dict with total_requests, total_tokens, total_cost and
            by_provider ({provider: {requests, tokens, cost}})
        """
        records = [
            r
            for r in self._records
            if r.user_id == user_id
            and (start is None or r.created_at >= start)
            and (end is None or r.created_at <= end)
        ]

        by_provider: dict[str, dict[str, Any]] = {}
        for r in records:
            bucket = by_provider.setdefault(r.provider, {"requests": 0, "tokens": 0, "cost": 0.0})
            bucket["requests"] += 1
            bucket["tokens"] += r.total_tokens
            bucket["cost"] += r.cost

        return {
            "total_requests": len(records),
            "total_tokens": sum(r.total_tokens for r in records),
            "total_cost": sum(r.cost for r in records),
            "by_provider": by_provider,
        }

    def clear(self) -> None:
        self._records.clear()
