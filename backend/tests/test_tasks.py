"""
Tests for the background expiration sweep.
"""

import asyncio

from shortlinks.tasks import BackgroundTaskRunner


class TestBackgroundTaskRunner:
    
    def test_run_once_sweeps(self, service, clock):
        service.create("https://example.com", "my-page")
        clock.advance(days=31)
        runner = BackgroundTaskRunner(service, interval_seconds=60)
        
        assert asyncio.run(runner.run_once()) == 1
        assert service.store.get("my-page").is_active is False
    
    def test_disabled_when_interval_is_zero(self, service):
        runner = BackgroundTaskRunner(service, interval_seconds=0)
        runner.start()
        assert runner.running is False
    
    def test_loop_sweeps_on_start(self, service, clock):
        service.create("https://example.com", "my-page")
        clock.advance(days=31)
        
        async def scenario():
            runner = BackgroundTaskRunner(service, interval_seconds=3600)
            runner.start()
            assert runner.running is True
            for _ in range(100):
                if not service.store.get("my-page").is_active:
                    break
                await asyncio.sleep(0.01)
            await runner.stop()
            assert runner.running is False
        
        asyncio.run(scenario())
        assert service.store.get("my-page").is_active is False
    
    def test_stop_waits_for_loop_to_finish(self, service):
        async def scenario():
            runner = BackgroundTaskRunner(service, interval_seconds=3600)
            runner.start()
            await asyncio.sleep(0.05)
            task = runner._task
            await runner.stop()
            return task
        
        task = asyncio.run(scenario())
        assert task.done()
        assert task.cancelled()
    
    def test_stop_without_start_is_noop(self, service):
        runner = BackgroundTaskRunner(service, interval_seconds=3600)
        asyncio.run(runner.stop())
        assert runner.running is False
