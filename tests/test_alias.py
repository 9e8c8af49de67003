import subprocess
from unittest import mock

import pytest

from camrouter.alias import CommandAliasManager
from camrouter.errors import DeviceOpError


def completed(returncode=0, stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout="", stderr=stderr)


@mock.patch("camrouter.alias.subprocess.run", return_value=completed())
def test_commands_use_sudo(run):
    manager = CommandAliasManager()

    manager.remove_alias("/dev/leftCam")
    manager.create_alias("/dev/video4", "/dev/leftCam")

    commands = [call.args[0] for call in run.call_args_list]
    assert commands == [
        ["sudo", "-n", "rm", "-f", "/dev/leftCam"],
        ["sudo", "-n", "ln", "-s", "/dev/video4", "/dev/leftCam"],
    ]
    assert run.call_args.kwargs["timeout"] == 5.0


@mock.patch("camrouter.alias.subprocess.run", return_value=completed())
def test_commands_without_sudo(run):
    CommandAliasManager(use_sudo=False).create_alias("/dev/video2", "/tmp/rightCam")
    assert run.call_args.args[0] == ["ln", "-s", "/dev/video2", "/tmp/rightCam"]


@mock.patch("camrouter.alias.subprocess.run", return_value=completed(1, "ln: File exists\n"))
def test_non_zero_exit_raises(run):
    with pytest.raises(DeviceOpError) as excinfo:
        CommandAliasManager().create_alias("/dev/video2", "/dev/rightCam")
    assert excinfo.value.alias_path == "/dev/rightCam"
    assert "File exists" in str(excinfo.value)


@mock.patch("camrouter.alias.subprocess.run", return_value=completed(3))
def test_exit_status_without_stderr(run):
    with pytest.raises(DeviceOpError, match="exit status 3"):
        CommandAliasManager().remove_alias("/dev/rightCam")


@pytest.mark.parametrize("error", [
    FileNotFoundError("sudo"),
    subprocess.TimeoutExpired(cmd="ln", timeout=5.0),
])
def test_process_errors_raise(error):
    with mock.patch("camrouter.alias.subprocess.run", side_effect=error):
        with pytest.raises(DeviceOpError):
            CommandAliasManager().remove_alias("/dev/leftCam")


def test_real_symlinks(tmp_path):
    target = tmp_path / "video0"
    target.write_text("")
    alias = tmp_path / "leftCam"
    manager = CommandAliasManager(use_sudo=False)

    manager.remove_alias(str(alias))
    manager.create_alias(str(target), str(alias))
    assert alias.is_symlink()
    assert alias.resolve() == target.resolve()

    manager.remove_alias(str(alias))
    assert not alias.exists()
