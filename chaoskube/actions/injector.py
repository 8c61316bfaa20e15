"""
The fault injection engine.

A FaultInjector drives one fault type (a FaultBindings) over a list of targets,
either one target at a time (serial) or all at once (parallel). Every call
walks the same states:

    Idle -> Injecting -> Observing -> {TimedOut | Failed | Aborted}
         -> Reverting -> Done

Injection runs in a worker thread per target. Workers report their outcome on
the run's event channel, which the observation window reads together with
trapped signals. The channel's get() timeout is the chaos duration deadline.
Whichever event arrives first closes the window. Reverting happens on every
exit path for every target chaos was started on.

SIGKILL can not be trapped. A run killed with it is not reverted.
"""
import abc
import queue
import signal
import threading
import time
from contextlib import contextmanager
from enum import Enum
from logzero import logger

from chaoskube.common import Verdict
from chaoskube.exceptions import (ChaosError, ConfigurationError,
                                  InjectionError, ProbeError, RevertError)
from chaoskube.execute.execute import executor_for_target
from chaoskube.probes.probe import run_probes

from typing import List, Optional

# Event sources read by the observation window
INJECTION = "injection"
SIGNAL = "signal"

TRAPPED_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class ChaosState(Enum):
    IDLE = "Idle"
    INJECTING = "Injecting"
    OBSERVING = "Observing"
    TIMED_OUT = "TimedOut"
    FAILED = "Failed"
    ABORTED = "Aborted"
    REVERTING = "Reverting"
    DONE = "Done"


@contextmanager
def trap_signals(channel, signums=TRAPPED_SIGNALS):
    """
    Deliver signals to an event channel instead of their default action.

    Handlers can only be installed from the main thread. Elsewhere the body
    runs untrapped. The previous handlers are restored on exit.

    :param channel: A queue.SimpleQueue receiving (SIGNAL, None, signum).
        Required.
    :param signums: The signals to trap.
        Optional. (Default: SIGINT and SIGTERM)
    """
    if threading.current_thread() is not threading.main_thread():
        logger.warning("Not running on the main thread, signals will not be "
                       "trapped and an interrupted run will not be reverted")
        yield
        return

    def handler(signum, frame):
        # SimpleQueue.put is reentrant
        channel.put((SIGNAL, None, signum))

    previous = {}
    try:
        for signum in signums:
            previous[signum] = signal.signal(signum, handler)
        yield
    finally:
        for signum, old in previous.items():
            signal.signal(signum, old if old is not None else signal.SIG_DFL)


class OrchestratorState(object):
    """Everything one serial or parallel invocation mutates"""

    def __init__(self, bindings):
        self.bindings = bindings
        self.args = None
        self.channel = queue.SimpleQueue()
        self.state = ChaosState.IDLE
        self.error = None
        self.aborted = False
        self.workers = []

    @property
    def finished(self) -> bool:
        return self.error is not None or self.aborted

    def fail(self, error: ChaosError) -> None:
        # The first error is the run's outcome
        if self.error is None:
            self.error = error

    def transition(self, state: ChaosState) -> None:
        logger.debug("[%s]: %s -> %s", self.bindings.name, self.state.value,
                     state.value)
        self.state = state


class ChaosInjector(metaclass=abc.ABCMeta):

    @abc.abstractmethod
    def inject_chaos_in_serial_mode(self, context, targets) -> Optional[ChaosError]:
        raise NotImplementedError('users must define inject_chaos_in_serial_mode to use this base class')

    @abc.abstractmethod
    def inject_chaos_in_parallel_mode(self, context, targets) -> Optional[ChaosError]:
        raise NotImplementedError('users must define inject_chaos_in_parallel_mode to use this base class')


class FaultInjector(ChaosInjector):
    """
    Inject one fault type into a list of targets.

    :param bindings: The fault's argument, inject and reset functions.
        Required.
    :type bindings: chaoskube.faults.base.FaultBindings
    :param executor_factory: Builds the executor for a target from the
        context and the target.
        Optional. (Default: chaoskube.execute.execute.executor_for_target)
    :param signals: The signals that abort the observation window.
        Optional. (Default: SIGINT and SIGTERM)
    :param clock: Monotonic time source in seconds.
        Optional. (Default: time.monotonic)
    """

    def __init__(self, bindings, executor_factory=executor_for_target,
                 signals=TRAPPED_SIGNALS, clock=time.monotonic):
        self.bindings = bindings
        self.executor_factory = executor_factory
        self.signals = signals
        self.clock = clock

    def inject_chaos_in_serial_mode(self, context, targets) -> Optional[ChaosError]:
        return self._orchestrate(context, targets, self._serial)

    def inject_chaos_in_parallel_mode(self, context, targets) -> Optional[ChaosError]:
        return self._orchestrate(context, targets, self._parallel)

    def _orchestrate(self, context, targets, strategy) -> Optional[ChaosError]:
        targets = list(targets)
        run = OrchestratorState(self.bindings)
        if not targets:
            run.fail(ConfigurationError("No targets to inject {} chaos "
                                        "into".format(self.bindings.name)))
        else:
            with trap_signals(run.channel, self.signals):
                try:
                    run.args = self.bindings.derive_args(context.details)
                    logger.debug("[%s]: fault arguments %s",
                                 self.bindings.name, run.args)
                    context.targets = targets
                    run_probes(context)
                except ChaosError as e:
                    run.fail(e)
                else:
                    # A stop requested while probing injects nothing
                    self._drain(context, run)
                    if not run.finished:
                        strategy(context, targets, run)
        self._conclude(context, run)
        return run.error

    def _serial(self, context, targets, run) -> None:
        for target in targets:
            # Pick up a signal or late error that arrived while reverting
            self._drain(context, run)
            if run.finished:
                break
            initiated = []
            try:
                executor = self.executor_factory(context, target)
                self._initiate(context, run, target, executor)
                initiated.append((target, executor))
                self._observe(context, run)
            except ChaosError as e:
                run.fail(e)
            finally:
                self._revert(context, run, initiated)

    def _parallel(self, context, targets, run) -> None:
        initiated = []
        try:
            for target in targets:
                self._drain(context, run)
                if run.finished:
                    break
                executor = self.executor_factory(context, target)
                self._initiate(context, run, target, executor)
                initiated.append((target, executor))
            if not run.finished:
                self._observe(context, run)
        except ChaosError as e:
            run.fail(e)
        finally:
            self._revert(context, run, initiated)

    def _initiate(self, context, run, target, executor) -> None:
        run.transition(ChaosState.INJECTING)
        context.events.record("ChaosInject", "Injecting {} chaos on target "
                              "{}".format(self.bindings.name, target))
        worker = threading.Thread(target=self._inject,
                                  args=(run, target, executor),
                                  name="inject-{}".format(target),
                                  daemon=True)
        run.workers.append(worker)
        worker.start()

    def _inject(self, run, target, executor) -> None:
        error = None
        try:
            self.bindings.inject(executor, run.args)
        except ChaosError as e:
            error = e
        except Exception as e:
            logger.exception(e)
            error = InjectionError("unexpected failure injecting chaos: "
                                   "{}".format(e), target=target)
        run.channel.put((INJECTION, target, error))

    def _handle(self, context, run, event) -> bool:
        """Apply one event, return True when it closes the window."""
        source, target, payload = event
        if source == SIGNAL:
            run.aborted = True
            run.transition(ChaosState.ABORTED)
            context.events.record("ChaosStopped", "Received {}, reverting "
                                  "chaos".format(signal.Signals(payload).name),
                                  "Warning")
            return True
        if payload is not None:
            run.fail(payload)
            run.transition(ChaosState.FAILED)
            logger.error("[Chaos]: Injection failed on %s: %s", target,
                         payload)
            return True
        logger.info("[Chaos]: %s chaos injected on %s", self.bindings.name,
                    target)
        return False

    def _drain(self, context, run) -> None:
        while not run.finished:
            try:
                event = run.channel.get_nowait()
            except queue.Empty:
                return
            self._handle(context, run, event)

    def _observe(self, context, run) -> None:
        duration = context.details.chaos_duration
        run.transition(ChaosState.OBSERVING)
        logger.info("[Chaos]: Waiting for the chaos duration of %ss",
                    duration)
        deadline = self.clock() + duration
        while True:
            remaining = deadline - self.clock()
            if remaining <= 0:
                break
            try:
                event = run.channel.get(timeout=remaining)
            except queue.Empty:
                break
            if self._handle(context, run, event):
                return
        run.transition(ChaosState.TIMED_OUT)
        logger.info("[Chaos]: Chaos duration of %ss is over", duration)

    def _join_workers(self, context, run) -> None:
        # Let commands already sent finish so the reset comes after them
        deadline = self.clock() + context.details.timeout
        for worker in run.workers:
            worker.join(max(0, deadline - self.clock()))
            if worker.is_alive():
                logger.warning("[Revert]: %s is still running, reverting "
                               "anyway", worker.name)
        run.workers = [worker for worker in run.workers if worker.is_alive()]

    def _revert(self, context, run, initiated: List) -> None:
        if not initiated:
            return
        run.transition(ChaosState.REVERTING)
        self._join_workers(context, run)
        for target, executor in initiated:
            try:
                self.bindings.reset(executor, run.args)
            except Exception as e:
                error = RevertError(target, e)
                logger.exception(e)
                context.result.revert_errors.append(error)
                context.events.record("ChaosRevertFailed", str(error),
                                      "Warning")
            else:
                context.events.record("ChaosRevert", "{} chaos reverted on "
                                      "target {}".format(self.bindings.name,
                                                         target))

    def _conclude(self, context, run) -> None:
        if run.error is not None:
            step = "PreChaosCheck" if isinstance(run.error, ProbeError) \
                else "ChaosInject"
            context.result.fail(step)
        elif run.aborted:
            context.result.verdict = Verdict.STOPPED
        run.transition(ChaosState.DONE)
