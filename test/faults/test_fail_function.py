import pytest

from chaoskube.exceptions import ConfigurationError, ExecutionError
from chaoskube.experiment import ExperimentDetails
from chaoskube.faults import FAULTS, get_fault
from chaoskube.faults.fail_function import *
from test.fakes import FakeExecutor


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("FAIL_FUNCTION_NAME", "FAIL_FUNCTION_RETVAL",
                 "FAIL_FUNCTION_PROBABILITY", "FAIL_FUNCTION_INTERVAL"):
        monkeypatch.delenv(name, raising=False)


def test_injection_script():
    args = FailFunctionArgs(func_name="read", retval=-5, probability=50,
                            interval=0)

    assert list(injection_script(args)) == [
        "echo read > /sys/kernel/debug/fail_function/inject",
        "echo -5 > /sys/kernel/debug/fail_function/read/retval",
        "echo N > /sys/kernel/debug/fail_function/task-filter",
        "echo 50 > /sys/kernel/debug/fail_function/probability",
        "echo 0 > /sys/kernel/debug/fail_function/interval",
        "echo -1 > /sys/kernel/debug/fail_function/times",
        "echo 0 > /sys/kernel/debug/fail_function/space",
        "echo 1 > /sys/kernel/debug/fail_function/verbose",
    ]


def test_reset_script():
    args = FailFunctionArgs(func_name="read", retval=-5, probability=50,
                            interval=0)
    assert list(reset_script(args)) == [
        "echo > /sys/kernel/debug/fail_function/inject",
    ]


def test_derive_args_defaults():
    args = derive_args(ExperimentDetails())
    assert args == FailFunctionArgs(func_name="should_fail_bio", retval=-5,
                                    probability=100, interval=1)


def test_derive_args_from_env(monkeypatch):
    monkeypatch.setenv("FAIL_FUNCTION_NAME", "open_ctree")
    monkeypatch.setenv("FAIL_FUNCTION_RETVAL", "-12")
    monkeypatch.setenv("FAIL_FUNCTION_PROBABILITY", "10")

    args = derive_args(ExperimentDetails())
    assert args == FailFunctionArgs(func_name="open_ctree", retval=-12,
                                    probability=10, interval=1)


def test_explicit_args_win_over_env(monkeypatch):
    monkeypatch.setenv("FAIL_FUNCTION_NAME", "open_ctree")
    monkeypatch.setenv("FAIL_FUNCTION_PROBABILITY", "10")
    details = ExperimentDetails(fault_args={'func_name': 'read',
                                            'probability': '75'})

    args = derive_args(details)
    assert args.func_name == "read"
    assert args.probability == 75


@pytest.mark.parametrize("probability", [-1, 101])
def test_probability_out_of_range(probability):
    details = ExperimentDetails(fault_args={'probability': probability})
    with pytest.raises(ConfigurationError):
        derive_args(details)


def test_bad_integer(monkeypatch):
    monkeypatch.setenv("FAIL_FUNCTION_RETVAL", "minus five")
    with pytest.raises(ConfigurationError):
        derive_args(ExperimentDetails())

    with pytest.raises(ConfigurationError):
        derive_args(ExperimentDetails(fault_args={'interval': 'often'}))


def test_inject_runs_every_command():
    executor = FakeExecutor()
    args = derive_args(ExperimentDetails())

    inject(executor, args)
    assert executor.commands == list(injection_script(args))

    executor = FakeExecutor()
    reset(executor, args)
    assert executor.commands == list(reset_script(args))


def test_inject_stops_at_failure():
    executor = FakeExecutor(failing={2})
    args = derive_args(ExperimentDetails())

    with pytest.raises(ExecutionError) as e:
        inject(executor, args)
    assert len(executor.commands) == 2
    assert e.value.command == injection_script(args)[1]


def test_registry():
    assert FAULTS["fail-function"] is BINDINGS
    assert get_fault("fail-function") is BINDINGS
    with pytest.raises(ConfigurationError):
        get_fault("kernel-panic")


def test_derive_args_reads_experiment_environment(monkeypatch):
    monkeypatch.setenv("FAIL_FUNCTION_NAME", "open_ctree")
    details = ExperimentDetails.from_env({"FAIL_FUNCTION_NAME": "read",
                                          "FAIL_FUNCTION_RETVAL": "-12"})

    args = derive_args(details)
    assert args.func_name == "read"
    assert args.retval == -12
