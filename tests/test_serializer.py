"""ExecutionSerializer: FIFO order, failure isolation, markers, shutdown."""

import asyncio

import pytest

from core.runtime.serializer import ExecutionSerializer


class TestExecutionSerializer:
    @pytest.mark.asyncio
    async def test_jobs_run_one_at_a_time_in_order(self):
        serializer = ExecutionSerializer("test")
        log: list[str] = []

        def job(name: str, delay: float):
            async def run():
                log.append(f"start:{name}")
                await asyncio.sleep(delay)
                log.append(f"end:{name}")
                return name

            return run

        futures = [serializer.submit(job("slow", 0.02)), serializer.submit(job("fast", 0))]
        results = await asyncio.gather(*futures)

        assert results == ["slow", "fast"]
        assert log == ["start:slow", "end:slow", "start:fast", "end:fast"]
        await serializer.aclose()

    @pytest.mark.asyncio
    async def test_failing_job_does_not_stall_the_queue(self, caplog):
        serializer = ExecutionSerializer("test")

        async def boom():
            raise RuntimeError("kaput")

        async def ok():
            return "ok"

        assert await serializer.run(boom) is None
        assert await serializer.run(ok) == "ok"
        assert "Action failed" in caplog.text
        await serializer.aclose()

    @pytest.mark.asyncio
    async def test_mark_runs_when_chain_reaches_it(self):
        serializer = ExecutionSerializer("test")
        gate = asyncio.Event()
        marked: list[str] = []

        async def blocker():
            await gate.wait()

        serializer.submit(blocker)
        serializer.mark(lambda: marked.append("reached"))
        await asyncio.sleep(0.01)
        assert marked == []

        gate.set()
        await serializer.join()
        assert marked == ["reached"]
        await serializer.aclose()

    def test_mark_without_loop_is_dropped(self):
        serializer = ExecutionSerializer("test")
        serializer.mark(lambda: None)
        assert serializer.pending == 0

    @pytest.mark.asyncio
    async def test_closed_serializer_rejects_jobs(self):
        serializer = ExecutionSerializer("test")

        async def ok():
            return 1

        await serializer.run(ok)
        await serializer.aclose()

        with pytest.raises(RuntimeError):
            serializer.submit(ok)

    @pytest.mark.asyncio
    async def test_cancelled_caller_does_not_drop_its_job(self):
        serializer = ExecutionSerializer("test")
        gate = asyncio.Event()
        ran: list[str] = []

        async def blocker():
            await gate.wait()
            ran.append("first")

        async def second():
            ran.append("second")
            return "second"

        first = asyncio.create_task(serializer.run(blocker))
        waiter = asyncio.create_task(serializer.run(second))
        await asyncio.sleep(0.01)

        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter

        gate.set()
        await first
        await serializer.join()

        assert ran == ["first", "second"]
        await serializer.aclose()

    @pytest.mark.asyncio
    async def test_job_runs_even_if_submitted_future_was_cancelled(self):
        serializer = ExecutionSerializer("test")
        gate = asyncio.Event()
        ran: list[str] = []

        async def blocker():
            await gate.wait()

        async def job():
            ran.append("job")

        serializer.submit(blocker)
        future = serializer.submit(job)
        future.cancel()

        gate.set()
        await serializer.join()

        assert ran == ["job"]
        assert future.cancelled()
        await serializer.aclose()
