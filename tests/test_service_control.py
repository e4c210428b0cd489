import subprocess

import pytest

from services import service_control
from services.errors import ExitCode
from services.options import UpgradeOptions


def test_stop_services_runs_configured_command():
    calls = []

    def fake_runner(args):
        calls.append(args)
        return subprocess.CompletedProcess(args, 0, "", "")

    service_control.stop_services(UpgradeOptions(), fake_runner)

    assert calls == [["katello-service", "stop"]]


def test_stop_failure_raises_stop_error():
    def fake_runner(args):
        raise subprocess.CalledProcessError(1, args, stderr="tomcat6 refused to stop")

    with pytest.raises(service_control.ServiceStopError) as excinfo:
        service_control.stop_services(UpgradeOptions(), fake_runner)

    assert excinfo.value.exit_code == ExitCode.STOP_ERROR


def test_missing_check_command_is_a_check_error():
    def fake_runner(args):
        raise FileNotFoundError(args[0])

    with pytest.raises(service_control.ServiceCheckError) as excinfo:
        service_control.check_services_stopped(UpgradeOptions(), fake_runner)

    assert excinfo.value.exit_code == ExitCode.ERROR


def test_dry_run_skips_commands():
    def fake_runner(args):
        raise AssertionError("dry run must not run commands")

    options = UpgradeOptions(dry_run=True)
    service_control.stop_services(options, fake_runner)
    service_control.check_services_stopped(options, fake_runner)


def test_default_runner_checks_exit_status(monkeypatch):
    recorded = {}

    def fake_run(args, check, capture_output, text):
        recorded.update(args=args, check=check)
        raise subprocess.CalledProcessError(2, args, output="", stderr="")

    monkeypatch.setattr(service_control.subprocess, "run", fake_run)

    with pytest.raises(service_control.ServiceCheckError):
        service_control.check_services_stopped(UpgradeOptions())

    assert recorded == {"args": ["katello-service", "allstopped"], "check": True}
