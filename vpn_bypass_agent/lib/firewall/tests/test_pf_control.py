import pytest

from vpn_bypass_agent.lib.firewall import PacketFilterControl
from vpn_bypass_agent.models.command_result import CommandResult
from vpn_bypass_agent.models.exceptions import FirewallControlError
from vpn_bypass_agent.models.runcommand_error import RunCommandError

RUN = "vpn_bypass_agent.lib.firewall.pf_control.run_command_async"


@pytest.mark.asyncio
async def test_load_anchor_pipes_rules_on_stdin(mocker):
    run = mocker.patch(RUN, return_value=CommandResult("", "", 0))
    await PacketFilterControl("com.apple/100.test.vpn-bypass").load_anchor("pass all\n")

    args, kwargs = run.call_args
    assert args[0] == ["pfctl", "-a", "com.apple/100.test.vpn-bypass", "-f", "-"]
    assert kwargs["input"] == "pass all\n"


@pytest.mark.asyncio
async def test_load_anchor_failure(mocker):
    mocker.patch(RUN, side_effect=RunCommandError("syntax error", 1, ["pfctl"]))
    with pytest.raises(FirewallControlError):
        await PacketFilterControl("a").load_anchor("garbage")


@pytest.mark.asyncio
async def test_enable_already_enabled_is_fine(mocker):
    mocker.patch(RUN, return_value=CommandResult("", "pfctl: pf already enabled", 1))
    await PacketFilterControl("a").enable()


@pytest.mark.asyncio
async def test_enable_other_failure_raises(mocker):
    mocker.patch(RUN, return_value=CommandResult("", "pfctl: Operation not permitted", 1))
    with pytest.raises(FirewallControlError):
        await PacketFilterControl("a").enable()


@pytest.mark.asyncio
async def test_anchor_rules_stripped(mocker):
    mocker.patch(RUN, return_value=CommandResult("pass in quick on en0\n\n", "", 0))
    assert await PacketFilterControl("a").anchor_rules() == "pass in quick on en0"
