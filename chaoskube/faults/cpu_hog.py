"""
Burn CPU inside the target container.

One busy loop (md5sum of /dev/zero) is started per requested core and left
running in the background until the fault is reset. The loops must run in the
container's cgroup, so the fault needs the pod transport.
"""
from collections import namedtuple

from chaoskube.common import *
from chaoskube.exceptions import ConfigurationError
from chaoskube.execute.execute import Executor, Script, Shell
from chaoskube.faults.base import FaultBindings

CPUHogArgs = namedtuple('CPUHogArgs', ['cores'])

HOG = "md5sum /dev/zero"
HOG_PROCESS = "md5sum"


def injection_script(args: CPUHogArgs) -> Script:
    return Script(
        ["nohup {} > /dev/null 2>&1 &".format(HOG)] * args.cores
    )


def reset_script(args: CPUHogArgs) -> Script:
    # pkill exits 1 when nothing matched, the hogs may already be gone
    return Script([
        "pkill -x {} || [ $? -eq 1 ]".format(HOG_PROCESS),
    ])


def derive_args(details) -> CPUHogArgs:
    if details.transport != Transport.POD.value:
        raise ConfigurationError(
            "cpu-hog runs inside the target container, it needs the {} "
            "transport, got >{}<".format(Transport.POD.value, details.transport))
    if 'cores' in details.fault_args:
        try:
            cores = int(details.fault_args['cores'])
        except (TypeError, ValueError):
            raise ConfigurationError("cores must be an integer, got >{}<".format(
                details.fault_args['cores']))
    else:
        cores = get_env_int("CPU_CORES", DEFAULT_CHAOS_CPU_CORES,
                            details.environ)
    if cores < 1:
        raise ConfigurationError("cores must be at least 1, got {}".format(cores))
    return CPUHogArgs(cores=cores)


def inject(executor: Executor, args: CPUHogArgs) -> None:
    shell = Shell(executor)
    injection_script(args).run_on(shell)
    shell.check()


def reset(executor: Executor, args: CPUHogArgs) -> None:
    shell = Shell(executor)
    reset_script(args).run_on(shell)
    shell.check()


BINDINGS = FaultBindings("cpu-hog", derive_args, inject, reset)
