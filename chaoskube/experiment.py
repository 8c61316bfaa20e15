"""
Experiment configuration and the per-run bookkeeping shared by all phases.

ExperimentDetails is built once per run, from keyword arguments or from the
environment of the experiment pod. ChaosContext bundles it with the Kubernetes
client, the result and event sinks and the resolved targets. Only the sinks
are written to once the context is built.
"""
import time
from dataclasses import dataclass, field
from logzero import logger

from chaoskube.common import *

from typing import Any, Callable, Dict, List, Mapping, Optional


@dataclass
class ExperimentDetails:
    """Everything that configures one chaos experiment run"""
    experiment_name: str = DEFAULT_CHAOS_EXPERIMENT_NAME
    engine_name: str = ""
    chaos_duration: int = DEFAULT_CHAOS_DURATION
    chaos_interval: int = DEFAULT_CHAOS_INTERVAL
    ramp_time: int = DEFAULT_CHAOS_RAMP_TIME
    app_namespace: str = "default"
    app_label: str = ""
    app_kind: str = DEFAULT_CHAOS_APP_KIND
    chaos_namespace: str = DEFAULT_CHAOS_NAMESPACE
    target_container: str = ""
    target_pods: str = ""
    pods_affected_perc: int = DEFAULT_CHAOS_PODS_AFFECTED_PERC
    sequence: str = DEFAULT_CHAOS_SEQUENCE
    timeout: int = DEFAULT_CHAOS_STATUS_CHECK_TIMEOUT
    delay: int = DEFAULT_CHAOS_STATUS_CHECK_DELAY
    transport: str = DEFAULT_CHAOS_TRANSPORT
    ssh_config_file: str = DEFAULT_CHAOS_SSH_CONFIG_FILE
    # Explicit fault arguments, they win over the environment
    fault_args: Dict[str, Any] = field(default_factory=dict)
    # Where from_env read its settings, fault arguments are read from it too
    environ: Optional[Mapping[str, str]] = field(default=None, repr=False,
                                                 compare=False)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None,
                 **overrides) -> 'ExperimentDetails':
        """
        Build the experiment details from environment variables.

        :param environ: The mapping to read from.
            Optional. (Default: os.environ)
        :type environ: Mapping[str, str]
        :param overrides: Field values that win over the environment.
        :return: ExperimentDetails
        """
        details = cls(
            experiment_name=get_env("EXPERIMENT_NAME",
                                    DEFAULT_CHAOS_EXPERIMENT_NAME, environ),
            engine_name=get_env("CHAOS_ENGINE", "", environ),
            chaos_duration=get_env_int("TOTAL_CHAOS_DURATION",
                                       DEFAULT_CHAOS_DURATION, environ),
            chaos_interval=get_env_int("CHAOS_INTERVAL",
                                       DEFAULT_CHAOS_INTERVAL, environ),
            ramp_time=get_env_int("RAMP_TIME", DEFAULT_CHAOS_RAMP_TIME,
                                  environ),
            app_namespace=get_env("APP_NAMESPACE", "default", environ),
            app_label=get_env("APP_LABEL", "", environ),
            app_kind=get_env("APP_KIND", DEFAULT_CHAOS_APP_KIND, environ),
            chaos_namespace=get_env("CHAOS_NAMESPACE",
                                    DEFAULT_CHAOS_NAMESPACE, environ),
            target_container=get_env("TARGET_CONTAINER", "", environ),
            target_pods=get_env("TARGET_PODS", "", environ),
            pods_affected_perc=get_env_int("PODS_AFFECTED_PERC",
                                           DEFAULT_CHAOS_PODS_AFFECTED_PERC,
                                           environ),
            sequence=get_env("SEQUENCE", DEFAULT_CHAOS_SEQUENCE,
                             environ).lower(),
            timeout=get_env_int("STATUS_CHECK_TIMEOUT",
                                DEFAULT_CHAOS_STATUS_CHECK_TIMEOUT, environ),
            delay=get_env_int("STATUS_CHECK_DELAY",
                              DEFAULT_CHAOS_STATUS_CHECK_DELAY, environ),
            transport=get_env("EXEC_TRANSPORT", DEFAULT_CHAOS_TRANSPORT,
                              environ).lower(),
            ssh_config_file=get_env("SSH_CONFIG_FILE",
                                    DEFAULT_CHAOS_SSH_CONFIG_FILE, environ),
            environ=environ,
        )
        for name, value in overrides.items():
            if value is None:
                continue
            if not hasattr(details, name):
                raise ConfigurationError(
                    "Unknown experiment setting >{}<".format(name))
            setattr(details, name, value)
        return details


class RecordedEvent(object):
    def __init__(self, reason: str, message: str, type: str = "Normal"):
        self.reason = reason
        self.message = message
        self.type = type
        self.timestamp = time.time()

    def __repr__(self):
        return "RecordedEvent({!r}, {!r}, {!r})".format(self.reason,
                                                       self.message,
                                                       self.type)


class Events(object):
    """Append-only sink for chaos events"""

    def __init__(self):
        self._events = []

    def record(self, reason: str, message: str, type: str = "Normal"):
        if type == "Warning":
            logger.warning("[%s]: %s", reason, message)
        else:
            logger.info("[%s]: %s", reason, message)
        self._events.append(RecordedEvent(reason, message, type))

    def __iter__(self):
        return iter(list(self._events))

    def __len__(self):
        return len(self._events)

    def reasons(self) -> List[str]:
        return [event.reason for event in self._events]


class ChaosResult(object):
    """The outcome of one experiment run, as reported to the operator"""

    def __init__(self, experiment_name: str):
        self.experiment_name = experiment_name
        self.phase = Phase.PENDING
        self.verdict = Verdict.AWAITED
        self.fail_step = None
        self.targets = []
        self.revert_errors = []

    @property
    def aborted(self) -> bool:
        return self.verdict == Verdict.STOPPED

    def fail(self, step: str):
        # The first failing step is the one reported
        if self.verdict != Verdict.FAIL:
            self.verdict = Verdict.FAIL
            self.fail_step = step

    def __repr__(self):
        return "ChaosResult({!r}, phase={}, verdict={})".format(
            self.experiment_name, self.phase.value, self.verdict.value)


class ChaosContext(object):
    """
    Everything the phases of one run share.

    :param details: The experiment configuration. Required.
    :type details: ExperimentDetails
    :param api: A kubernetes.client.CoreV1Api (or compatible) client.
        Required.
    :param probes: Callables taking the context, run once before injection.
        Optional. (Default: None)
    :type probes: List[Callable[[ChaosContext], bool]]
    """

    def __init__(self, details: ExperimentDetails, api,
                 probes: Optional[List[Callable[['ChaosContext'], bool]]] = None):
        self.details = details
        self.api = api
        self.probes = list(probes or [])
        self.result = ChaosResult(details.experiment_name)
        self.events = Events()
        self.targets = []
