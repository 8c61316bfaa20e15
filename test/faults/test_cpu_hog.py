import pytest

from chaoskube.exceptions import ConfigurationError, ExecutionError
from chaoskube.experiment import ExperimentDetails
from chaoskube.faults import get_fault
from chaoskube.faults.cpu_hog import *
from test.fakes import FakeExecutor


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("CPU_CORES", raising=False)


def test_one_hog_per_core():
    script = injection_script(CPUHogArgs(cores=3))
    assert list(script) == ["nohup md5sum /dev/zero > /dev/null 2>&1 &"] * 3


def test_reset_tolerates_no_hogs():
    assert list(reset_script(CPUHogArgs(cores=3))) == [
        "pkill -x md5sum || [ $? -eq 1 ]",
    ]


def test_derive_args(monkeypatch):
    assert derive_args(ExperimentDetails()) == CPUHogArgs(cores=1)

    monkeypatch.setenv("CPU_CORES", "4")
    assert derive_args(ExperimentDetails()) == CPUHogArgs(cores=4)

    details = ExperimentDetails(fault_args={'cores': '2'})
    assert derive_args(details) == CPUHogArgs(cores=2)


@pytest.mark.parametrize("cores", [0, -2, "many"])
def test_invalid_cores(cores):
    with pytest.raises(ConfigurationError):
        derive_args(ExperimentDetails(fault_args={'cores': cores}))


def test_inject_and_reset():
    executor = FakeExecutor()
    args = CPUHogArgs(cores=2)
    inject(executor, args)
    reset(executor, args)

    assert executor.commands == list(injection_script(args)) + \
        list(reset_script(args))
    assert get_fault("cpu-hog") is BINDINGS


def test_reset_failure_raises():
    executor = FakeExecutor(failing={1}, return_code=2)
    with pytest.raises(ExecutionError) as e:
        reset(executor, CPUHogArgs(cores=1))
    assert e.value.return_code == 2


def test_derive_args_reads_experiment_environment(monkeypatch):
    monkeypatch.setenv("CPU_CORES", "8")
    details = ExperimentDetails.from_env({"CPU_CORES": "3"})

    assert derive_args(details) == CPUHogArgs(cores=3)


def test_needs_pod_transport():
    with pytest.raises(ConfigurationError):
        derive_args(ExperimentDetails(transport="ssh"))
