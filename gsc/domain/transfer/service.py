"""
Transfer service - main business logic
"""
from concurrent.futures import ThreadPoolExecutor, as_completed
from functools import partial
from typing import Callable, List, Optional, Sequence

from ...core.constants import DEFAULT_PARALLEL
from ...core.exceptions import GscError, TransferFailed
from ...core.interfaces import FileSystem, ListingSource, PromptProvider, TransferExecutor
from ...core.logging import get_logger
from .conflict import ConflictResolver
from .layout import LayoutReconstructor
from .models import (
    ItemResult,
    ItemStatus,
    OverwritePolicy,
    PlanReport,
    TransferDirection,
    TransferItem,
    TransferPlan,
)
from .parser import parse_spec
from .planner import TransferPlanner

logger = get_logger(__name__)


class TransferService:
    """
    Transfer service - pure business logic.

    Turns cp arguments into a plan, gates downloads through the overwrite
    policy, and runs the surviving items. No dependency on the CLI or HTTP.
    """

    def __init__(
        self,
        listing_source: ListingSource,
        executor: TransferExecutor,
        fs: FileSystem,
        prompt_provider: Optional[PromptProvider] = None,
        parallel: int = DEFAULT_PARALLEL,
        on_item_start: Optional[Callable[[TransferItem], None]] = None,
        on_item_skipped: Optional[Callable[[TransferItem], None]] = None,
        on_item_failed: Optional[Callable[[TransferItem, str], None]] = None,
        on_item_progress: Optional[Callable[[TransferItem, int, int], None]] = None,
    ):
        """
        Initialize transfer service.

        Args:
            listing_source: Source of homework listings
            executor: Performs the actual uploads and downloads
            fs: Local filesystem queries
            prompt_provider: Asks before overwriting (optional)
            parallel: Number of items transferred at once
            on_item_start: Callback when an item starts
            on_item_skipped: Callback when the overwrite policy skips an item
            on_item_failed: Callback when an item fails (item, reason)
            on_item_progress: Byte progress of the running item
                (item, transferred_bytes, total_bytes)
        """
        self.listing_source = listing_source
        self.executor = executor
        self.fs = fs
        self.prompt_provider = prompt_provider
        self.parallel = max(1, parallel)
        self.on_item_start = on_item_start
        self.on_item_skipped = on_item_skipped
        self.on_item_failed = on_item_failed
        self.on_item_progress = on_item_progress

    def plan(
        self,
        sources: Sequence[str],
        destination: str,
        all_files: bool = False,
    ) -> TransferPlan:
        """
        Parse cp arguments and build the plan.

        Raises:
            SpecError: If the request is malformed; nothing has been transferred
        """
        planner = TransferPlanner(self.listing_source, self.fs)
        return planner.build(
            [parse_spec(token) for token in sources],
            parse_spec(destination),
            all_files=all_files,
        )

    def cp(
        self,
        sources: Sequence[str],
        destination: str,
        policy: OverwritePolicy = OverwritePolicy.PROMPT_DEFAULT,
        all_files: bool = False,
    ) -> PlanReport:
        """
        Copy files to or from the server.

        Args:
            sources: Source arguments (local paths or hw<N>[:pattern])
            destination: Destination argument
            policy: Overwrite policy for downloads
            all_files: -a/--all

        Returns:
            Per-item report
        """
        return self.execute(self.plan(sources, destination, all_files), policy)

    def execute(self, plan: TransferPlan, policy: OverwritePolicy) -> PlanReport:
        """
        Run a plan.

        Items that fail do not stop their siblings. A KeyboardInterrupt, or
        an error that no later item can get past (lost session, unreachable
        layout directory), stops the run: finished items stay finished, the
        rest are marked cancelled and the error is kept on the report.
        """
        report = PlanReport(form=plan.form, results=[ItemResult(item) for item in plan])
        resolver = ConflictResolver(policy, self.fs, self.prompt_provider)

        try:
            # Prompts happen up front and in plan order
            for result in report.results:
                if not resolver.should_transfer(result.item):
                    result.status = ItemStatus.SKIPPED
                    if self.on_item_skipped:
                        self.on_item_skipped(result.item)

            pending = [r for r in report.results if r.status == ItemStatus.PENDING]
            if pending and plan.directories:
                LayoutReconstructor(self.fs).create_directories(plan.directories)

            if self.parallel > 1 and len(pending) > 1:
                self._run_parallel(pending)
            else:
                for result in pending:
                    self._run_item(result)
        except KeyboardInterrupt:
            report.interrupted = True
            self._cancel_pending(report)
            logger.warning(f"Interrupted; {len(report.cancelled)} item(s) cancelled")
        except GscError as e:
            report.error = e
            self._cancel_pending(report)
            logger.warning(f"Stopped: {e}; {len(report.cancelled)} item(s) cancelled")

        return report

    @staticmethod
    def _cancel_pending(report: PlanReport) -> None:
        for result in report.results:
            if result.status == ItemStatus.PENDING:
                result.status = ItemStatus.CANCELLED

    def _run_parallel(self, pending: List[ItemResult]) -> None:
        with ThreadPoolExecutor(max_workers=self.parallel) as pool:
            futures = [pool.submit(self._run_item, result) for result in pending]
            try:
                for future in as_completed(futures):
                    future.result()
            except (KeyboardInterrupt, GscError):
                for future in futures:
                    future.cancel()
                raise

    def _run_item(self, result: ItemResult) -> None:
        item = result.item
        if self.on_item_start:
            self.on_item_start(item)

        progress = partial(self.on_item_progress, item) if self.on_item_progress else None

        try:
            if item.direction == TransferDirection.UPLOAD:
                self.executor.upload(item.local_path, item.homework, item.remote_name, progress=progress)
            else:
                self.executor.download(item.homework, item.remote_name, item.local_path, progress=progress)
        except (TransferFailed, OSError) as e:
            self._fail(result, e)
            return
        except GscError as e:
            # fatal for the whole run; execute() reports it and cancels the rest
            result.status = ItemStatus.FAILED
            result.error = str(e)
            raise

        result.status = ItemStatus.COMPLETED

    def _fail(self, result: ItemResult, error: Exception) -> None:
        result.status = ItemStatus.FAILED
        result.error = str(error)
        logger.debug(f"{result.item} failed: {error}")
        if self.on_item_failed:
            self.on_item_failed(result.item, result.error)
