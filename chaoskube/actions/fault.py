from logzero import logger

from chaoskube.actions.experiment import orchestrate_experiment
from chaoskube.actions.injector import FaultInjector
from chaoskube.common import load_kube_client
from chaoskube.exceptions import ChaosError, ConfigurationError
from chaoskube.experiment import ChaosContext, ExperimentDetails
from chaoskube.faults import get_fault
from chaoskube.probes.probe import targets_are_running

from typing import Dict, Optional, Union


def inject_fault(fault: str, app_namespace: str = None, app_label: str = None,
                 target_pods: str = None, target_container: str = None,
                 duration: Union[str, int] = None,
                 ramp_time: Union[str, int] = None,
                 pods_affected_perc: Union[str, int] = None,
                 sequence: str = None, transport: str = None,
                 fault_args: Optional[Dict] = None,
                 check_targets: bool = True, api=None) -> bool:
    """
    Inject a fault into pods, wait for the chaos duration and revert it.

    Returns True if the experiment ran to completion (or was stopped by a
    signal and reverted) without error. Otherwise, returns False.

    Settings not given here are read from the environment (see
    ExperimentDetails.from_env).

    :param fault: The fault name, see chaoskube.faults.FAULTS. Required.
    :type fault: str
    :param app_namespace: The namespace of the target pods.
        Optional. (Default: APP_NAMESPACE or 'default')
    :type app_namespace: str
    :param app_label: Label selector of the candidate target pods.
        Optional. (Default: APP_LABEL)
    :type app_label: str
    :param target_pods: Comma separated names of the target pods.
        Optional. (Default: TARGET_PODS)
    :type target_pods: str
    :param target_container: The container to inject chaos into.
        Optional. (Default: TARGET_CONTAINER or the pod's first container)
    :type target_container: str
    :param duration: The chaos duration in seconds.
        Optional. (Default: TOTAL_CHAOS_DURATION or
        chaoskube.common.DEFAULT_CHAOS_DURATION)
    :type duration: str or int
    :param ramp_time: Seconds to wait before and after chaos.
        Optional. (Default: RAMP_TIME or chaoskube.common.DEFAULT_CHAOS_RAMP_TIME)
    :type ramp_time: str or int
    :param pods_affected_perc: Percentage of labelled pods to target.
        Optional. (Default: PODS_AFFECTED_PERC)
    :type pods_affected_perc: str or int
    :param sequence: 'serial' or 'parallel'.
        Optional. (Default: SEQUENCE or chaoskube.common.DEFAULT_CHAOS_SEQUENCE)
    :type sequence: str
    :param transport: 'pod' or 'ssh'.
        Optional. (Default: EXEC_TRANSPORT or chaoskube.common.DEFAULT_CHAOS_TRANSPORT)
    :type transport: str
    :param fault_args: Fault specific arguments, e.g. {"func_name": "read"}.
        Optional. (Default: None)
    :type fault_args: Dict
    :param check_targets: Check that the target pods are running before
        injecting chaos.
        Optional. (Default: True)
    :type check_targets: bool
    :param api: A kubernetes.client.CoreV1Api.
        Optional. (Default: loaded from the in-cluster or kube config)
    :return: bool
    """
    try:
        bindings = get_fault(fault)
        details = ExperimentDetails.from_env(
            experiment_name=fault,
            app_namespace=app_namespace,
            app_label=app_label,
            target_pods=target_pods,
            target_container=target_container,
            chaos_duration=_int(duration),
            ramp_time=_int(ramp_time),
            pods_affected_perc=_int(pods_affected_perc),
            sequence=sequence,
            transport=transport,
            fault_args=fault_args)
    except ChaosError as e:
        logger.error("Invalid %s experiment configuration: %s", fault, e)
        return False

    if api is None:
        api = load_kube_client()
    probes = [targets_are_running] if check_targets else []
    context = ChaosContext(details, api, probes=probes)
    logger.info("Injecting %s chaos: %s", fault, details)
    error = orchestrate_experiment(context, FaultInjector(bindings))
    if error is not None:
        logger.error("%s experiment failed: %s", fault, error)
        return False
    logger.info("%s experiment verdict: %s", fault,
                context.result.verdict.value)
    return True


def _int(value: Union[str, int, None]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError("Expected an integer, got >{}<".format(value))


def inject_fail_function(func_name: str = None, retval: int = None,
                         probability: int = None, interval: int = None,
                         **kwargs) -> bool:
    """
    Make a kernel function fail on the nodes hosting the target pods.

    :param func_name: The kernel function, it must allow error injection.
        Optional. (Default: FAIL_FUNCTION_NAME or
        chaoskube.common.DEFAULT_CHAOS_FAIL_FUNCTION_NAME)
    :type func_name: str
    :param retval: The value the function returns instead, e.g. -5 (EIO).
        Optional. (Default: FAIL_FUNCTION_RETVAL)
    :type retval: int
    :param probability: Percentage of calls that fail.
        Optional. (Default: FAIL_FUNCTION_PROBABILITY)
    :type probability: int
    :param interval: Calls to let through between failures.
        Optional. (Default: FAIL_FUNCTION_INTERVAL)
    :type interval: int
    :param kwargs: See inject_fault.
    :return: bool
    """
    fault_args = {k: v for k, v in (('func_name', func_name),
                                    ('retval', retval),
                                    ('probability', probability),
                                    ('interval', interval)) if v is not None}
    return inject_fault("fail-function", fault_args=fault_args, **kwargs)


def inject_cpu_hog(cores: int = None, **kwargs) -> bool:
    """
    Burn CPU in the target containers.

    :param cores: Number of busy loops to start per container.
        Optional. (Default: CPU_CORES or 1)
    :type cores: int
    :param kwargs: See inject_fault.
    :return: bool
    """
    fault_args = {'cores': cores} if cores is not None else {}
    return inject_fault("cpu-hog", fault_args=fault_args, **kwargs)
