import pytest
from unittest.mock import AsyncMock, MagicMock, patch
from ingestion.scheduler import UpdateScheduler
from ingestion.runner import UpdateSummary


@pytest.mark.asyncio
async def test_scheduler_initialization():
    scheduler = UpdateScheduler(feed_path="/data/weekly.csv", cron="0 4 * * 2")
    assert scheduler.scheduler is not None
    assert scheduler.cron == "0 4 * * 2"


@pytest.mark.asyncio
async def test_scheduler_without_feed_path():
    scheduler = UpdateScheduler(feed_path=None)
    scheduler.feed_path = None

    with patch("ingestion.scheduler.NppesUpdateWorker") as mock_worker_cls:
        assert await scheduler.run_update_job() is None
        mock_worker_cls.assert_not_called()


@pytest.mark.asyncio
async def test_scheduler_missing_file(tmp_path):
    scheduler = UpdateScheduler(feed_path=str(tmp_path / "absent.csv"))

    with patch("ingestion.scheduler.NppesUpdateWorker") as mock_worker_cls:
        assert await scheduler.run_update_job() is None
        mock_worker_cls.assert_not_called()


@pytest.mark.asyncio
async def test_scheduler_skips_processed_file(tmp_path):
    feed = tmp_path / "weekly.csv"
    feed.write_text("NPI\n1234567890\n")

    scheduler = UpdateScheduler(feed_path=str(feed))
    scheduler.tracker = AsyncMock()
    scheduler.tracker.already_processed.return_value = True

    with patch("ingestion.scheduler.NppesUpdateWorker") as mock_worker_cls:
        assert await scheduler.run_update_job() is None
        mock_worker_cls.assert_not_called()


@pytest.mark.asyncio
async def test_scheduler_job_execution(tmp_path):
    feed = tmp_path / "weekly.csv"
    feed.write_text("NPI\n1234567890\n")

    scheduler = UpdateScheduler(feed_path=str(feed))
    scheduler.tracker = AsyncMock()
    scheduler.tracker.already_processed.return_value = False

    with patch("ingestion.scheduler.NppesUpdateWorker") as mock_worker_cls:
        mock_worker = MagicMock()
        mock_worker.perform = AsyncMock(return_value=UpdateSummary(processed=1, created=1))
        mock_worker_cls.return_value = mock_worker

        summary = await scheduler.run_update_job()

    assert summary.created == 1
    mock_worker.perform.assert_awaited_once_with(str(feed.resolve()))


@pytest.mark.asyncio
async def test_scheduler_job_failure_is_contained(tmp_path):
    feed = tmp_path / "weekly.csv"
    feed.write_text("NPI\n1234567890\n")

    scheduler = UpdateScheduler(feed_path=str(feed))
    scheduler.tracker = AsyncMock()
    scheduler.tracker.already_processed.return_value = False

    with patch("ingestion.scheduler.NppesUpdateWorker") as mock_worker_cls:
        mock_worker_cls.return_value.perform = AsyncMock(side_effect=RuntimeError("database gone"))

        assert await scheduler.run_update_job() is None


@pytest.mark.asyncio
async def test_scheduler_skips_unchanged_file_behind_symlink(tmp_path):
    weekly = tmp_path / "npidata_20240101.csv"
    weekly.write_text("NPI\n1234567890\n")
    current = tmp_path / "current.csv"
    current.symlink_to(weekly)

    recorded = set()

    async def already_processed(path, mtime):
        return (path, mtime) in recorded

    async def perform(path):
        recorded.add((path, weekly.stat().st_mtime))
        return UpdateSummary(processed=1, created=1)

    scheduler = UpdateScheduler(feed_path=str(current))
    scheduler.tracker = AsyncMock()
    scheduler.tracker.already_processed.side_effect = already_processed

    with patch("ingestion.scheduler.NppesUpdateWorker") as mock_worker_cls:
        mock_worker_cls.return_value.perform = AsyncMock(side_effect=perform)

        first = await scheduler.run_update_job()
        second = await scheduler.run_update_job()

    assert first.created == 1
    assert second is None
    mock_worker_cls.return_value.perform.assert_awaited_once_with(str(weekly.resolve()))
