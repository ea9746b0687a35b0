import pytest

from vpn_bypass_agent.lib.process_supervisor import DarwinAppController
from vpn_bypass_agent.models.command_result import CommandResult
from vpn_bypass_agent.models.exceptions import ProcessControlError
from vpn_bypass_agent.models.runcommand_error import RunCommandError

RUN = "vpn_bypass_agent.lib.process_supervisor.app_control.run_command_async"


@pytest.fixture
def controller():
    return DarwinAppController("Transmission", "org.m0k.transmission")


@pytest.mark.asyncio
async def test_running_pid(controller, mocker):
    run = mocker.patch(RUN, return_value=CommandResult("812\n", "", 0))
    assert await controller.running_pid() == 812
    assert run.call_args.args[0] == ["pgrep", "-x", "Transmission"]


@pytest.mark.asyncio
async def test_running_pid_none_when_no_match(controller, mocker):
    mocker.patch(RUN, return_value=CommandResult("", "", 1))
    assert await controller.running_pid() is None


@pytest.mark.asyncio
async def test_running_pid_error(controller, mocker):
    mocker.patch(RUN, return_value=CommandResult("", "pgrep: illegal option", 2))
    with pytest.raises(ProcessControlError):
        await controller.running_pid()


@pytest.mark.asyncio
async def test_write_bind_address(controller, mocker):
    run = mocker.patch(RUN, return_value=CommandResult("", "", 0))
    await controller.write_bind_address("10.0.0.5")
    assert run.call_args.args[0] == [
        "defaults",
        "write",
        "org.m0k.transmission",
        "BindAddressIPv4",
        "-string",
        "10.0.0.5",
    ]


@pytest.mark.asyncio
async def test_read_bind_address_missing_key(controller, mocker):
    mocker.patch(RUN, return_value=CommandResult("", "does not exist", 1))
    assert await controller.read_bind_address() is None


@pytest.mark.asyncio
async def test_graceful_quit_uses_osascript(controller, mocker):
    run = mocker.patch(RUN, return_value=CommandResult("", "", 0))
    await controller.graceful_quit()
    assert run.call_args.args[0] == ["osascript", "-e", 'quit app "Transmission"']


@pytest.mark.asyncio
async def test_launch_failure_raises(controller, mocker):
    mocker.patch(RUN, side_effect=RunCommandError("Unable to find application", 1, ["open"]))
    with pytest.raises(ProcessControlError):
        await controller.launch()
