"""
Runner distribution sync orchestration.

One invocation:
    START -> RESOLVING -> INSPECTING -> (UP_TO_DATE | SYNCING) -> DONE
with any failure moving to FAILED and propagating the error. No retries
and no persisted state: the external scheduler simply invokes again.
"""

import logging
import time
from enum import Enum
from typing import Any, Optional, Protocol

import aiohttp

from core.errors import ErrorCategory, ResolutionError
from core.logging.context import set_log_context
from core.logging.utilities import get_logger, log_exception, log_with_context
from runner_binaries_syncer import metrics
from runner_binaries_syncer.config import SyncerConfig
from runner_binaries_syncer.github.client import GitHubReleasesClient
from runner_binaries_syncer.github.resolver import ReleaseLister, resolve_release_asset
from runner_binaries_syncer.models import CacheObject, ReleaseAsset
from runner_binaries_syncer.replicator import ReplicationResult, StreamReplicator
from runner_binaries_syncer.storage.inspector import TagReader, get_cached_version
from runner_binaries_syncer.storage.s3_store import S3CacheStore

logger = get_logger(__name__)


class SyncState(str, Enum):
    """Orchestrator states for one invocation."""

    START = "start"
    RESOLVING = "resolving"
    INSPECTING = "inspecting"
    UP_TO_DATE = "up_to_date"
    SYNCING = "syncing"
    DONE = "done"
    FAILED = "failed"


class SyncOutcome(str, Enum):
    """Result of a successful invocation."""

    UP_TO_DATE = "up_to_date"
    SYNCED = "synced"


class Replicator(Protocol):
    async def replicate(self, cache_object: CacheObject, asset: ReleaseAsset) -> Any:
        ...


class RunnerBinariesSyncer:
    """
    Keeps one cached runner distribution in line with the latest release.

    Collaborators are injected so tests can substitute doubles:
        syncer = RunnerBinariesSyncer(
            config=SyncerConfig.from_env(),
            releases_client=GitHubReleasesClient(session=session),
            store=S3CacheStore(),
            replicator=StreamReplicator(store=store, session=session),
        )
        outcome = await syncer.sync()

    A syncer instance represents a single invocation; create a new one for
    every run.
    """

    def __init__(
        self,
        config: SyncerConfig,
        releases_client: ReleaseLister,
        store: TagReader,
        replicator: Replicator,
    ):
        self.config = config
        self._releases_client = releases_client
        self._store = store
        self._replicator = replicator
        self.state = SyncState.START
        self.asset: Optional[ReleaseAsset] = None
        self.cached_version: Optional[str] = None
        self.replication: Optional[ReplicationResult] = None

    def _transition(self, state: SyncState) -> None:
        log_with_context(
            logger,
            logging.DEBUG,
            f"Sync state {self.state.value} -> {state.value}",
            state=state.value,
        )
        self.state = state

    async def sync(self) -> SyncOutcome:
        """
        Run one sync invocation.

        Returns:
            SyncOutcome.UP_TO_DATE if the cache already holds the latest
            asset, SyncOutcome.SYNCED after a successful replication

        Raises:
            ConfigurationError: If bucket or key is not configured
            ResolutionError: If no eligible release asset exists
            GitHubApiError: If listing releases fails
            ReplicationError: If copying the asset fails
        """
        try:
            return await self._run()
        except BaseException:
            self._transition(SyncState.FAILED)
            raise

    async def _run(self) -> SyncOutcome:
        config = self.config
        # Pre-flight: fails before any network activity
        cache_object = config.cache_object()

        self._transition(SyncState.RESOLVING)
        set_log_context(stage="resolve")
        asset = await resolve_release_asset(
            self._releases_client,
            runner_os=config.runner_os,
            runner_arch=config.runner_arch,
            allow_prerelease=config.allow_prerelease,
        )
        if asset is None:
            raise ResolutionError(
                "Cannot find GitHub release asset.",
                context={
                    "runner_os": config.runner_os,
                    "runner_arch": config.runner_arch,
                    "allow_prerelease": config.allow_prerelease,
                },
            )
        self.asset = asset

        self._transition(SyncState.INSPECTING)
        set_log_context(stage="inspect")
        current_version = await get_cached_version(self._store, cache_object)
        self.cached_version = current_version
        log_with_context(
            logger,
            logging.DEBUG,
            f"latest: {current_version}",
            cached_version=current_version,
            asset_name=asset.name,
        )

        if current_version is not None and current_version == asset.name:
            self._transition(SyncState.UP_TO_DATE)
            logger.debug("Distribution is up-to-date, no action.")
            self._transition(SyncState.DONE)
            return SyncOutcome.UP_TO_DATE

        self._transition(SyncState.SYNCING)
        set_log_context(stage="sync")
        self.replication = await self._replicator.replicate(cache_object, asset)
        self._transition(SyncState.DONE)
        return SyncOutcome.SYNCED


async def run_sync(config: SyncerConfig) -> SyncOutcome:
    """
    Build the production collaborators and run one invocation.

    Records metrics for the run and pushes them when a Pushgateway is
    configured. Errors are logged and re-raised.

    Args:
        config: Loaded configuration

    Returns:
        Outcome of the invocation
    """
    set_log_context(domain=config.target)
    start = time.perf_counter()
    outcome_label = "failed"

    try:
        # Pre-flight before any client is built
        config.cache_object()

        timeout = aiohttp.ClientTimeout(total=None, sock_connect=config.http_timeout_seconds)
        async with aiohttp.ClientSession(timeout=timeout) as session:
            releases_client = GitHubReleasesClient(
                api_url=config.github_api_url,
                token=config.github_token,
                session=session,
                timeout_seconds=config.http_timeout_seconds,
            )
            store = S3CacheStore(
                region=config.aws_region,
                endpoint_url=config.s3_endpoint_url,
                sse_algorithm=config.sse_algorithm,
                sse_kms_key_id=config.sse_kms_key_id,
            )
            replicator = StreamReplicator(
                store=store,
                session=session,
                connect_timeout_seconds=config.http_timeout_seconds,
            )
            syncer = RunnerBinariesSyncer(
                config=config,
                releases_client=releases_client,
                store=store,
                replicator=replicator,
            )
            outcome = await syncer.sync()

        outcome_label = outcome.value
        if syncer.replication is not None:
            metrics.record_bytes_replicated(config.target, syncer.replication.bytes_transferred)
        log_with_context(logger, logging.INFO, "Sync finished", outcome=outcome.value)
        return outcome
    except Exception as e:
        category = getattr(e, "category", ErrorCategory.UNKNOWN)
        metrics.record_sync_error(config.target, category.value)
        log_exception(logger, e, "Sync failed")
        raise
    finally:
        metrics.record_sync_outcome(config.target, outcome_label, time.perf_counter() - start)
        metrics.push_metrics(config.pushgateway_url, config.target)
