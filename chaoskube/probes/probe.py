from time import monotonic, sleep

from kubernetes.client.rest import ApiException
from logzero import logger

from chaoskube.exceptions import ChaosError, ProbeError


def run_probes(context) -> None:
    """
    Run every probe of the experiment once, in order.

    A probe passes by returning a truthy value. Returning a falsy value or
    raising a ChaosError fails the run before any chaos is injected.

    :param context: The run's ChaosContext. Required.
    :return: None
    """
    for probe in context.probes:
        name = getattr(probe, '__name__', repr(probe))
        logger.debug("Running probe %s", name)
        try:
            passed = probe(context)
        except ProbeError:
            raise
        except ChaosError as e:
            raise ProbeError("Probe {} failed: {}".format(name, e))
        if not passed:
            raise ProbeError("Probe {} failed".format(name))
        logger.info("[Probe]: %s passed", name)


def targets_are_running(context) -> bool:
    """
    Are all target pods in the Running phase?

    Polls every details.delay seconds for up to details.timeout seconds.

    :param context: The run's ChaosContext. Required.
    :return: bool
    """
    details = context.details
    deadline = monotonic() + details.timeout
    while True:
        pending = []
        for target in context.targets:
            try:
                pod = context.api.read_namespaced_pod(target.pod,
                                                      target.namespace)
            except ApiException as e:
                logger.error("Unable to read pod %s", target)
                logger.exception(e)
                return False
            if pod.status is None or pod.status.phase != "Running":
                pending.append(str(target))
        if not pending:
            return True
        if monotonic() >= deadline:
            logger.error("Pods not running after %s seconds: %s",
                         details.timeout, ", ".join(pending))
            return False
        sleep(details.delay)
