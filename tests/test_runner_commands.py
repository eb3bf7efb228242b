"""Shell, start and build actions: ordering, failures, abort, build output detection."""

import asyncio

import pytest

from core.runtime import (
    ActionCallbackData,
    ActionStatus,
    BuildAction,
    DeployStage,
    ShellAction,
    StartAction,
)
from fakes.runner import make_harness


class TestShellActions:
    @pytest.mark.asyncio
    async def test_successful_command_completes(self):
        h = make_harness()
        h.shell.script("npm install", output="added 12 packages")
        data = h.add("s1", ShellAction(content="npm install"))

        await h.runner.run_action(data)

        assert h.shell.calls == ["npm install"]
        assert h.shell.ready_calls == 1
        assert h.status("s1") == ActionStatus.COMPLETE
        assert h.alerts == []

    @pytest.mark.asyncio
    async def test_failed_command_emits_exactly_one_alert(self):
        h = make_harness()
        h.shell.script("npm test", exit_code=1, output="boom")
        data = h.add("s1", ShellAction(content="npm test"))

        await h.runner.run_action(data)

        state = h.runner.get_action("s1")
        assert state.status == ActionStatus.FAILED
        assert state.error == "Failed To Execute Shell Command"
        assert len(h.alerts) == 1
        alert = h.alerts[0]
        assert alert.type == "error"
        assert alert.title == "Shell Command Failed"
        assert alert.source == "terminal"
        assert "boom" in alert.content

    @pytest.mark.asyncio
    async def test_failure_without_output_uses_placeholder(self):
        h = make_harness()
        h.shell.script("false", exit_code=1)
        data = h.add("s1", ShellAction(content="false"))

        await h.runner.run_action(data)
        assert h.alerts[0].content == "No Output Available"

    @pytest.mark.asyncio
    async def test_streaming_run_is_ignored_for_commands(self):
        h = make_harness()
        data = h.add("s1", ShellAction(content="ls"))
        await h.runner.join()
        before = h.runner.get_action("s1")

        await h.runner.run_action(data, is_streaming=True)

        assert h.shell.calls == []
        assert h.runner.get_action("s1") is before

        await h.runner.run_action(data)
        assert h.shell.calls == ["ls"]

    @pytest.mark.asyncio
    async def test_actions_run_strictly_in_submission_order(self):
        h = make_harness()
        gate = asyncio.Event()
        h.shell.script("first", gate=gate)
        first = h.add("a", ShellAction(content="first"))
        second = h.add("b", ShellAction(content="second"))

        t1 = asyncio.create_task(h.runner.run_action(first))
        t2 = asyncio.create_task(h.runner.run_action(second))
        await asyncio.sleep(0.01)
        assert h.shell.log == ["start:first"]

        gate.set()
        await asyncio.gather(t1, t2)
        assert h.shell.log == ["start:first", "end:first", "start:second", "end:second"]

    @pytest.mark.asyncio
    async def test_cancelled_caller_still_runs_queued_action(self):
        h = make_harness()
        gate = asyncio.Event()
        h.shell.script("first", gate=gate)
        first = h.add("a", ShellAction(content="first"))
        second = h.add("b", ShellAction(content="second"))

        t1 = asyncio.create_task(h.runner.run_action(first))
        t2 = asyncio.create_task(h.runner.run_action(second))
        await asyncio.sleep(0.01)

        t2.cancel()
        with pytest.raises(asyncio.CancelledError):
            await t2

        gate.set()
        await t1
        await h.runner.join()

        assert h.shell.calls == ["first", "second"]
        assert h.status("b") == ActionStatus.COMPLETE

    @pytest.mark.asyncio
    async def test_failed_action_does_not_block_the_chain(self):
        h = make_harness()
        h.shell.script("bad", exit_code=2, output="nope")
        bad = h.add("a", ShellAction(content="bad"))
        good = h.add("b", ShellAction(content="good"))

        await h.runner.run_action(bad)
        await h.runner.run_action(good)

        assert h.status("a") == ActionStatus.FAILED
        assert h.status("b") == ActionStatus.COMPLETE

    @pytest.mark.asyncio
    async def test_missing_terminal_fails_without_alert(self):
        h = make_harness()
        h.runner.registry.get("shell")._shell_provider = lambda: None
        data = h.add("s1", ShellAction(content="ls"))

        await h.runner.run_action(data)

        state = h.runner.get_action("s1")
        assert state.status == ActionStatus.FAILED
        assert "Shell terminal not found" in state.error
        assert h.alerts == []


class TestAbort:
    @pytest.mark.asyncio
    async def test_abort_before_execution_skips_the_action(self):
        h = make_harness()
        data = h.add("s1", ShellAction(content="rm -rf node_modules"))
        h.runner.abort("s1")

        await h.runner.run_action(data)

        assert h.shell.calls == []
        assert h.status("s1") == ActionStatus.ABORTED

    @pytest.mark.asyncio
    async def test_abort_while_running_cancels_command(self):
        h = make_harness()
        h.shell.script("sleep 100", gate=asyncio.Event())
        data = h.add("s1", ShellAction(content="sleep 100"))

        task = asyncio.create_task(h.runner.run_action(data))
        await asyncio.sleep(0.01)
        h.runner.abort("s1")
        await task

        assert h.status("s1") == ActionStatus.ABORTED
        assert h.shell.cancelled == ["sleep 100"]
        assert h.alerts == []

    @pytest.mark.asyncio
    async def test_terminal_requested_abort(self):
        h = make_harness()
        h.shell.script("npm run dev", gate=asyncio.Event())
        data = h.add("s1", ShellAction(content="npm run dev"))

        task = asyncio.create_task(h.runner.run_action(data))
        await asyncio.sleep(0.01)
        h.shell.abort_callbacks["npm run dev"]()
        await task

        assert h.status("s1") == ActionStatus.ABORTED

    @pytest.mark.asyncio
    async def test_abort_unknown_action_raises(self):
        from core.runtime import UnreachableError

        h = make_harness()
        with pytest.raises(UnreachableError):
            h.runner.abort("ghost")

    @pytest.mark.asyncio
    async def test_executing_unknown_action_raises(self):
        from core.runtime import UnreachableError

        h = make_harness()
        with pytest.raises(UnreachableError):
            await h.runner._execute_action("ghost")


class TestStartActions:
    @pytest.mark.asyncio
    async def test_start_returns_control_while_server_runs(self):
        h = make_harness()
        gate = asyncio.Event()
        h.shell.script("npm run dev", gate=gate)
        start = h.add("dev", StartAction(content="npm run dev"))
        after = h.add("next", ShellAction(content="echo after"))

        await h.runner.run_action(start)
        await h.runner.run_action(after)

        assert h.status("dev") == ActionStatus.RUNNING
        assert h.status("next") == ActionStatus.COMPLETE
        assert h.runner.supervisor.running_ids() == ["dev"]

        task = h.runner.supervisor.get("dev")
        gate.set()
        await task
        assert h.status("dev") == ActionStatus.COMPLETE

    @pytest.mark.asyncio
    async def test_start_failure_alerts_dev_server_failed(self):
        h = make_harness()
        gate = asyncio.Event()
        h.shell.script("npm run dev", exit_code=1, output="EADDRINUSE", gate=gate)
        data = h.add("dev", StartAction(content="npm run dev"))

        await h.runner.run_action(data)
        task = h.runner.supervisor.get("dev")
        gate.set()
        await task

        state = h.runner.get_action("dev")
        assert state.status == ActionStatus.FAILED
        assert state.error == "Failed To Start Application"
        assert [a.title for a in h.alerts] == ["Dev Server Failed"]
        assert "EADDRINUSE" in h.alerts[0].content

    @pytest.mark.asyncio
    async def test_abort_takes_precedence_over_later_failure(self):
        h = make_harness()
        gate = asyncio.Event()
        h.shell.script("npm run dev", exit_code=1, output="killed", gate=gate)
        data = h.add("dev", StartAction(content="npm run dev"))

        await h.runner.run_action(data)
        task = h.runner.supervisor.get("dev")
        h.runner.abort("dev")
        gate.set()
        await task

        assert h.status("dev") == ActionStatus.ABORTED
        assert h.alerts == []

    @pytest.mark.asyncio
    async def test_settle_delay_holds_the_queue(self):
        h = make_harness(settle_delay=0.05)
        h.shell.script("npm run dev", gate=asyncio.Event())
        data = h.add("dev", StartAction(content="npm run dev"))

        loop = asyncio.get_running_loop()
        started = loop.time()
        await h.runner.run_action(data)
        assert loop.time() - started >= 0.04

        await h.runner.aclose()
        assert h.runner.supervisor.running_ids() == []


class TestBuildActions:
    @pytest.mark.asyncio
    async def test_build_output_directory_is_detected(self):
        h = make_harness()
        h.sandbox.fs.seed_dir("build")
        data = h.add("b1", BuildAction())

        await h.runner.run_action(data)

        assert h.sandbox.spawned == [["npm", "run", "build"]]
        assert h.runner.build_output is not None
        assert h.runner.build_output.path.endswith("/build")
        assert h.runner.build_output.exit_code == 0
        assert h.status("b1") == ActionStatus.COMPLETE
        assert [a.title for a in h.deploy_alerts] == ["Building Application", "Build Completed"]
        assert h.deploy_alerts[-1].stage == DeployStage.DEPLOYING
        assert h.deploy_alerts[-1].deploy_status == ActionStatus.RUNNING

    @pytest.mark.asyncio
    async def test_build_defaults_to_first_candidate(self):
        h = make_harness()
        data = h.add("b1", BuildAction())

        await h.runner.run_action(data)
        assert h.runner.build_output.path == "/home/project/dist"

    @pytest.mark.asyncio
    async def test_preferred_output_dirs_are_checked_first(self):
        h = make_harness()
        h.sandbox.fs.seed_dir("build")
        h.sandbox.fs.seed_dir("site")
        data = h.add("b1", BuildAction(output_dirs=["site"]))

        await h.runner.run_action(data)
        assert h.runner.build_output.path == "/home/project/site"

    @pytest.mark.asyncio
    async def test_content_overrides_build_command(self):
        h = make_harness()
        data = h.add("b1", BuildAction(content="pnpm build --mode production"))

        await h.runner.run_action(data)
        assert h.sandbox.spawned == [["sh", "-c", "pnpm build --mode production"]]

    @pytest.mark.asyncio
    async def test_build_failure_alerts_both_channels(self):
        h = make_harness()
        h.sandbox.script_spawn("npm run build", exit_code=2, output="tsc: error TS2304")
        data = h.add("b1", BuildAction())

        await h.runner.run_action(data)

        state = h.runner.get_action("b1")
        assert state.status == ActionStatus.FAILED
        assert state.error == "Build Failed"
        assert h.runner.build_output is None

        failed = h.deploy_alerts[-1]
        assert failed.title == "Build Failed"
        assert failed.build_status == ActionStatus.FAILED
        assert "TS2304" in failed.content

        assert [a.title for a in h.alerts] == ["Build Failed"]
        assert "TS2304" in h.alerts[0].content

    @pytest.mark.asyncio
    async def test_build_command_that_cannot_start_alerts(self):
        h = make_harness()
        h.sandbox.spawn_errors["npm"] = FileNotFoundError(2, "No such file or directory", "npm")
        data = h.add("b1", BuildAction())

        await h.runner.run_action(data)

        state = h.runner.get_action("b1")
        assert state.status == ActionStatus.FAILED
        assert state.error == "Build Failed"
        assert h.runner.build_output is None

        assert [a.title for a in h.deploy_alerts] == ["Building Application", "Build Failed"]
        assert h.deploy_alerts[-1].build_status == ActionStatus.FAILED
        assert "No such file or directory" in h.deploy_alerts[-1].content

        assert [a.title for a in h.alerts] == ["Build Failed"]
        assert "No such file or directory: 'npm'" in h.alerts[0].content

    @pytest.mark.asyncio
    async def test_abort_kills_build_process(self):
        h = make_harness()
        h.sandbox.script_spawn("npm run build", gate=asyncio.Event())
        data = h.add("b1", BuildAction())

        task = asyncio.create_task(h.runner.run_action(data))
        await asyncio.sleep(0.01)
        h.runner.abort("b1")
        await task

        assert h.status("b1") == ActionStatus.ABORTED
        assert h.sandbox.processes[0].killed is True
        assert h.alerts == []


class TestDeployAlerts:
    def test_handle_deploy_action_derives_alert(self):
        h = make_harness()
        h.runner.handle_deploy_action("deploying", "complete", {"url": "https://demo.netlify.app"})

        alert = h.deploy_alerts[-1]
        assert alert.title == "Deploying Application"
        assert alert.type == "success"
        assert alert.url == "https://demo.netlify.app"
        assert alert.build_status == ActionStatus.COMPLETE
        assert alert.deploy_status == ActionStatus.COMPLETE

    def test_handle_deploy_action_without_listener_is_noop(self):
        from core.runtime import ActionRunner
        from fakes.sandbox import FakeSandbox, ScriptedShell

        shell = ScriptedShell()
        runner = ActionRunner(FakeSandbox(), shell_provider=lambda: shell)
        runner.handle_deploy_action(DeployStage.BUILDING, ActionStatus.RUNNING)

    def test_unknown_stage_is_rejected(self):
        h = make_harness()
        with pytest.raises(ValueError):
            h.runner.handle_deploy_action("shipping", "running")


def test_callback_data_defaults():
    data = ActionCallbackData(action_id="x", action=ShellAction(content="ls"))
    assert data.artifact_id == ""
    assert data.message_id == ""
