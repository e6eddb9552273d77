"""
Batch execution helper

Runs independent operations concurrently and collects per-item outcomes.
One failing item never aborts the rest; callers get back which items
succeeded and why the others failed.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Hashable, Iterable, List, Optional

from silver_admin.core.exceptions import AdminBackendError

logger = logging.getLogger(__name__)


@dataclass
class BatchFailure:
    item: Any
    error: str
    code: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"item": self.item, "error": self.error, "code": self.code}


@dataclass
class BatchResult:
    succeeded: List[Any] = field(default_factory=list)
    failed: List[BatchFailure] = field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        return not self.failed

    def to_dict(self) -> Dict[str, Any]:
        return {
            "succeeded": list(self.succeeded),
            "failed": [f.to_dict() for f in self.failed],
        }


async def run_batch(
    items: Iterable[Hashable],
    worker: Callable[[Any], Awaitable[Any]],
    max_concurrency: int = 10,
) -> BatchResult:
    """
    Run worker(item) for every item and join on completion.

    Client-facing errors keep their message; anything unexpected is logged
    with its traceback and reported with a generic message.
    """
    items = list(dict.fromkeys(items))  # de-duplicate, keep order
    semaphore = asyncio.Semaphore(max_concurrency)

    async def _guarded(item):
        async with semaphore:
            return await worker(item)

    outcomes = await asyncio.gather(*(_guarded(i) for i in items), return_exceptions=True)

    result = BatchResult()
    for item, outcome in zip(items, outcomes):
        if isinstance(outcome, AdminBackendError):
            logger.warning("Batch item %s failed: %s", item, outcome.message)
            result.failed.append(BatchFailure(item=item, error=outcome.message, code=outcome.code))
        elif isinstance(outcome, BaseException):
            if isinstance(outcome, asyncio.CancelledError):
                raise outcome
            logger.error("Batch item %s failed unexpectedly", item, exc_info=outcome)
            result.failed.append(BatchFailure(item=item, error="Unexpected error"))
        else:
            result.succeeded.append(item)

    return result
