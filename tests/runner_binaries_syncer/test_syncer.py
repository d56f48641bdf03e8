"""
Tests for sync orchestration.

Collaborators are AsyncMocks so each test can assert exactly which
network-facing calls happened.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from core.errors import (
    ConfigurationError,
    DownloadError,
    GitHubApiError,
    ResolutionError,
)
from runner_binaries_syncer.config import SyncerConfig
from runner_binaries_syncer.models import CacheObject, GitHubRelease, ReleaseAsset
from runner_binaries_syncer.replicator import ReplicationResult
from runner_binaries_syncer.syncer import (
    RunnerBinariesSyncer,
    SyncOutcome,
    SyncState,
    run_sync,
)

ASSET_NAME = "actions-runner-linux-x64-2.300.2.tar.gz"
ASSET_URL = f"https://github.com/actions/runner/releases/download/v2.300.2/{ASSET_NAME}"
CONFIG = SyncerConfig(bucket="runner-cache", key="actions-runner-linux.tar.gz")


def make_releases():
    return [
        GitHubRelease(
            tag_name="v2.301.0",
            prerelease=True,
            assets=[
                {
                    "name": "actions-runner-linux-x64-2.301.0.tar.gz",
                    "browser_download_url": "https://example.com/2.301.0.tar.gz",
                }
            ],
        ),
        GitHubRelease(
            tag_name="v2.300.2",
            assets=[{"name": ASSET_NAME, "browser_download_url": ASSET_URL}],
        ),
    ]


@pytest.fixture
def releases_client():
    client = AsyncMock()
    client.list_releases.return_value = make_releases()
    return client


@pytest.fixture
def store():
    store = AsyncMock()
    store.get_object_tags.return_value = []
    return store


@pytest.fixture
def replicator():
    replicator = AsyncMock()
    replicator.replicate.return_value = ReplicationResult(
        asset_name=ASSET_NAME, bytes_transferred=100, duration_ms=5
    )
    return replicator


def make_syncer(releases_client, store, replicator, config=CONFIG):
    return RunnerBinariesSyncer(
        config=config,
        releases_client=releases_client,
        store=store,
        replicator=replicator,
    )


class TestSyncDecision:
    """Copy only when the cached tag differs from the latest asset."""

    @pytest.mark.asyncio
    async def test_up_to_date_no_upload(self, releases_client, store, replicator):
        store.get_object_tags.return_value = [{"Key": "name", "Value": ASSET_NAME}]
        syncer = make_syncer(releases_client, store, replicator)

        outcome = await syncer.sync()

        assert outcome == SyncOutcome.UP_TO_DATE
        assert syncer.state == SyncState.DONE
        replicator.replicate.assert_not_called()

    @pytest.mark.asyncio
    async def test_stale_cache_replicated(self, releases_client, store, replicator):
        store.get_object_tags.return_value = [
            {"Key": "name", "Value": "actions-runner-linux-x64-2.299.1.tar.gz"}
        ]
        syncer = make_syncer(releases_client, store, replicator)

        outcome = await syncer.sync()

        assert outcome == SyncOutcome.SYNCED
        assert syncer.state == SyncState.DONE
        replicator.replicate.assert_awaited_once_with(
            CacheObject(bucket="runner-cache", key="actions-runner-linux.tar.gz"),
            ReleaseAsset(name=ASSET_NAME, download_url=ASSET_URL),
        )
        assert syncer.replication.bytes_transferred == 100

    @pytest.mark.asyncio
    async def test_empty_cache_replicated(self, releases_client, store, replicator):
        syncer = make_syncer(releases_client, store, replicator)

        assert await syncer.sync() == SyncOutcome.SYNCED
        replicator.replicate.assert_awaited_once()
        assert syncer.cached_version is None

    @pytest.mark.asyncio
    async def test_unreadable_tags_fail_open(self, releases_client, store, replicator):
        store.get_object_tags.side_effect = RuntimeError("AccessDenied")
        syncer = make_syncer(releases_client, store, replicator)

        assert await syncer.sync() == SyncOutcome.SYNCED
        replicator.replicate.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_second_run_is_idempotent(self, releases_client, store, replicator):
        """After a sync the tag matches, so the next run uploads nothing."""
        await make_syncer(releases_client, store, replicator).sync()
        store.get_object_tags.return_value = [{"Key": "name", "Value": ASSET_NAME}]

        outcome = await make_syncer(releases_client, store, replicator).sync()

        assert outcome == SyncOutcome.UP_TO_DATE
        assert replicator.replicate.await_count == 1

    @pytest.mark.asyncio
    async def test_prerelease_allowed(self, releases_client, store, replicator):
        config = SyncerConfig(bucket="b", key="k", allow_prerelease=True)
        syncer = make_syncer(releases_client, store, replicator, config=config)

        await syncer.sync()

        _, asset = replicator.replicate.await_args.args
        assert asset.name == "actions-runner-linux-x64-2.301.0.tar.gz"


class TestSyncFailures:
    """Failures end in FAILED and propagate."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bucket,key", [("", "k"), ("b", "")])
    async def test_missing_config_makes_no_calls(self, releases_client, store, replicator, bucket, key):
        syncer = make_syncer(
            releases_client, store, replicator, config=SyncerConfig(bucket=bucket, key=key)
        )

        with pytest.raises(ConfigurationError, match="mandatory variables"):
            await syncer.sync()

        assert syncer.state == SyncState.FAILED
        releases_client.list_releases.assert_not_called()
        store.get_object_tags.assert_not_called()
        replicator.replicate.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_asset(self, releases_client, store, replicator):
        config = SyncerConfig(bucket="b", key="k", runner_os="osx", runner_arch="arm64")
        syncer = make_syncer(releases_client, store, replicator, config=config)

        with pytest.raises(ResolutionError, match="Cannot find GitHub release asset"):
            await syncer.sync()

        assert syncer.state == SyncState.FAILED
        store.get_object_tags.assert_not_called()
        replicator.replicate.assert_not_called()

    @pytest.mark.asyncio
    async def test_no_releases(self, releases_client, store, replicator):
        releases_client.list_releases.return_value = []
        syncer = make_syncer(releases_client, store, replicator)

        with pytest.raises(ResolutionError):
            await syncer.sync()

    @pytest.mark.asyncio
    async def test_api_error_propagates(self, releases_client, store, replicator):
        releases_client.list_releases.side_effect = GitHubApiError("rate limited", status_code=403)
        syncer = make_syncer(releases_client, store, replicator)

        with pytest.raises(GitHubApiError):
            await syncer.sync()

        assert syncer.state == SyncState.FAILED

    @pytest.mark.asyncio
    async def test_replication_error_propagates(self, releases_client, store, replicator):
        replicator.replicate.side_effect = DownloadError("HTTP 502", status_code=502)
        syncer = make_syncer(releases_client, store, replicator)

        with pytest.raises(DownloadError):
            await syncer.sync()

        assert syncer.state == SyncState.FAILED


class TestRunSync:
    """Tests for run_sync wiring."""

    @pytest.mark.asyncio
    async def test_builds_collaborators_and_records_metrics(self):
        config = SyncerConfig(
            bucket="b",
            key="k",
            sse_algorithm="aws:kms",
            pushgateway_url="pushgateway:9091",
        )
        syncer = MagicMock()
        syncer.sync = AsyncMock(return_value=SyncOutcome.SYNCED)
        syncer.replication = ReplicationResult(asset_name="a", bytes_transferred=42, duration_ms=1)

        with patch("runner_binaries_syncer.syncer.S3CacheStore") as mock_store, patch(
            "runner_binaries_syncer.syncer.RunnerBinariesSyncer", return_value=syncer
        ), patch("runner_binaries_syncer.syncer.metrics") as mock_metrics:
            outcome = await run_sync(config)

        assert outcome == SyncOutcome.SYNCED
        assert mock_store.call_args.kwargs["sse_algorithm"] == "aws:kms"
        mock_metrics.record_bytes_replicated.assert_called_once_with("linux-x64", 42)
        args = mock_metrics.record_sync_outcome.call_args.args
        assert args[:2] == ("linux-x64", "synced")
        mock_metrics.push_metrics.assert_called_once_with("pushgateway:9091", "linux-x64")

    @pytest.mark.asyncio
    async def test_failure_recorded_and_raised(self):
        with patch("runner_binaries_syncer.syncer.S3CacheStore") as mock_store, patch(
            "runner_binaries_syncer.syncer.metrics"
        ) as mock_metrics:
            with pytest.raises(ConfigurationError):
                await run_sync(SyncerConfig())

        mock_store.assert_not_called()
        mock_metrics.record_sync_error.assert_called_once_with("linux-x64", "permanent")
        args = mock_metrics.record_sync_outcome.call_args.args
        assert args[:2] == ("linux-x64", "failed")
