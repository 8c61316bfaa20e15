"""
Make kernel functions fail on purpose (fail_function fault injection).

The kernel's fail_function capability, driven through debugfs, makes a function
annotated with ALLOW_ERROR_INJECTION() return an error instead of running. The
injection list is host wide: injecting from one container affects every
process on the node calling that function.

See https://www.kernel.org/doc/html/latest/fault-injection/fault-injection.html
"""
from collections import namedtuple

from chaoskube.common import *
from chaoskube.exceptions import ConfigurationError
from chaoskube.execute.execute import Executor, Script, Shell
from chaoskube.faults.base import FaultBindings

FAIL_FUNCTION_DIR = "/sys/kernel/debug/fail_function"

FailFunctionArgs = namedtuple('FailFunctionArgs',
                              ['func_name', 'retval', 'probability', 'interval'])


def _write(value, path: str) -> str:
    return "echo {} > {}".format(value, path)


def injection_script(args: FailFunctionArgs) -> Script:
    """
    The commands that arm fail_function for one kernel function.

    :param args: The fault arguments. Required.
    :type args: FailFunctionArgs
    :return: Script
    """
    return Script([
        _write(args.func_name, "{}/inject".format(FAIL_FUNCTION_DIR)),
        _write(args.retval, "{}/{}/retval".format(FAIL_FUNCTION_DIR,
                                                  args.func_name)),
        _write("N", "{}/task-filter".format(FAIL_FUNCTION_DIR)),
        _write(args.probability, "{}/probability".format(FAIL_FUNCTION_DIR)),
        _write(args.interval, "{}/interval".format(FAIL_FUNCTION_DIR)),
        # -1 means no limit on the number of failures
        _write(-1, "{}/times".format(FAIL_FUNCTION_DIR)),
        _write(0, "{}/space".format(FAIL_FUNCTION_DIR)),
        _write(1, "{}/verbose".format(FAIL_FUNCTION_DIR)),
    ])


def reset_script(args: FailFunctionArgs) -> Script:
    """
    The command that empties the injection list, disarming every function.

    :param args: The fault arguments. Required.
    :type args: FailFunctionArgs
    :return: Script
    """
    return Script([
        "echo > {}/inject".format(FAIL_FUNCTION_DIR),
    ])


def derive_args(details) -> FailFunctionArgs:
    """
    Build the fault arguments for a run.

    Values set explicitly on the experiment (details.fault_args) come first,
    then the FAIL_FUNCTION_* environment variables, then the defaults.

    :param details: The experiment configuration. Required.
    :type details: chaoskube.experiment.ExperimentDetails
    :return: FailFunctionArgs
    """
    explicit = details.fault_args

    def _int(key, name, default):
        if key in explicit:
            try:
                return int(explicit[key])
            except (TypeError, ValueError):
                raise ConfigurationError(
                    "{} must be an integer, got >{}<".format(key,
                                                           explicit[key]))
        return get_env_int(name, default, details.environ)

    func_name = explicit.get('func_name') or \
        get_env("FAIL_FUNCTION_NAME", DEFAULT_CHAOS_FAIL_FUNCTION_NAME,
                details.environ)
    args = FailFunctionArgs(
        func_name=func_name,
        retval=_int('retval', "FAIL_FUNCTION_RETVAL",
                    DEFAULT_CHAOS_FAIL_FUNCTION_RETVAL),
        probability=_int('probability', "FAIL_FUNCTION_PROBABILITY",
                         DEFAULT_CHAOS_FAIL_FUNCTION_PROBABILITY),
        interval=_int('interval', "FAIL_FUNCTION_INTERVAL",
                      DEFAULT_CHAOS_FAIL_FUNCTION_INTERVAL),
    )
    if not 0 <= args.probability <= 100:
        raise ConfigurationError(
            "probability must be between 0 and 100, got {}".format(
                args.probability))
    return args


def inject(executor: Executor, args: FailFunctionArgs) -> None:
    shell = Shell(executor)
    injection_script(args).run_on(shell)
    shell.check()


def reset(executor: Executor, args: FailFunctionArgs) -> None:
    shell = Shell(executor)
    reset_script(args).run_on(shell)
    shell.check()


BINDINGS = FaultBindings("fail-function", derive_args, inject, reset)
