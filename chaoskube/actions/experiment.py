from time import sleep
from logzero import logger

from chaoskube.common import Phase, Sequence, Verdict
from chaoskube.exceptions import ChaosError, ConfigurationError, ProbeError
from chaoskube.probes.target import (get_target_pods, resolve_containers,
                                     validate_target_spec)

from typing import Optional


class Pipeline(object):
    """
    Runs steps in order until one of them fails.

    A step that raises a ChaosError records it, and every later step is
    skipped. The first error is kept in `error`.
    """

    def __init__(self):
        self.error = None
        self.failed_step = None

    def step(self, name: str, func, *args, **kwargs):
        if self.error is not None:
            logger.debug("Skipping step %s", name)
            return None
        try:
            return func(*args, **kwargs)
        except ChaosError as e:
            logger.error("[%s]: %s", name, e)
            self.error = e
            self.failed_step = name
            return None


def wait_for_ramp(ramp_time: int, when: str) -> None:
    if ramp_time > 0:
        logger.info("[Ramp]: Waiting for the %ss ramp time %s", ramp_time,
                    when)
        sleep(ramp_time)


def log_targets(context, targets) -> None:
    context.targets = list(targets)
    context.result.targets = [str(target) for target in targets]
    logger.info("[Info]: Target pods: %s",
                ", ".join(str(target) for target in targets))


def inject_chaos(injector, context, targets) -> None:
    """
    Run the injector in the experiment's sequence and raise its error.

    :param injector: The fault's ChaosInjector. Required.
    :type injector: chaoskube.actions.injector.ChaosInjector
    :param context: The run's ChaosContext. Required.
    :param targets: The resolved targets. Required.
    :type targets: List[chaoskube.probes.target.Target]
    :return: None
    """
    sequence = context.details.sequence
    if sequence == Sequence.SERIAL.value:
        error = injector.inject_chaos_in_serial_mode(context, targets)
    elif sequence == Sequence.PARALLEL.value:
        error = injector.inject_chaos_in_parallel_mode(context, targets)
    else:
        raise ConfigurationError(
            "Sequence is not supported, expected serial or parallel, got "
            ">{}<".format(sequence))
    if error is not None:
        raise error


def orchestrate_experiment(context, injector) -> Optional[ChaosError]:
    """
    Run one chaos experiment from ramp time to ramp time.

    Steps, each skipped once an earlier one failed:
    1. wait for the ramp time
    2. check that target pods were specified
    3. resolve the target pods and their containers
    4. inject chaos, observe and revert (see injector)
    5. wait for the ramp time again, unless the run was aborted

    :param context: The run's ChaosContext. Required.
    :param injector: The fault's ChaosInjector. Required.
    :type injector: chaoskube.actions.injector.ChaosInjector
    :return: The first error, or None.
    """
    details = context.details
    result = context.result
    result.phase = Phase.RUNNING
    context.events.record("ChaosEngineInitialized", "{} experiment has "
                          "started".format(details.experiment_name))

    pipeline = Pipeline()
    pipeline.step("Ramp", wait_for_ramp, details.ramp_time,
                  "before injecting chaos")
    pipeline.step("PreChaosCheck", validate_target_spec, details)
    targets = pipeline.step("TargetSelection", get_target_pods, context.api,
                            details)
    targets = pipeline.step("TargetSelection", resolve_containers,
                            context.api, targets, details.target_container)
    pipeline.step("TargetSelection", log_targets, context, targets)
    pipeline.step("ChaosInject", inject_chaos, injector, context, targets)
    if not result.aborted:
        pipeline.step("Ramp", wait_for_ramp, details.ramp_time,
                      "after injecting chaos")

    result.phase = Phase.COMPLETED
    if pipeline.error is not None:
        if isinstance(pipeline.error, ProbeError):
            result.fail("PreChaosCheck")
        else:
            result.fail(pipeline.failed_step)
        context.events.record("Summary", "{} experiment failed: {}".format(
            details.experiment_name, pipeline.error), "Warning")
    elif result.aborted:
        context.events.record("Summary", "{} experiment was stopped".format(
            details.experiment_name), "Warning")
    else:
        result.verdict = Verdict.PASS
        context.events.record("Summary", "{} experiment has passed".format(
            details.experiment_name))
    for error in result.revert_errors:
        logger.warning("[Revert]: %s", error)
    return pipeline.error
