import os
from enum import Enum
from logzero import logger

from chaoskube.exceptions import ConfigurationError

from typing import Mapping, Optional


class Sequence(Enum):
    """
    All supported ways of walking the target list.

    SERIAL injects chaos into one target at a time, each with its own chaos
    window. PARALLEL injects into every target first and then observes all of
    them in one shared window.
    """
    SERIAL = "serial"
    PARALLEL = "parallel"

    @classmethod
    def has_value(cls, value):
        return any(value == item.value for item in cls)


class Transport(Enum):
    """
    All supported ways of running a command on a target.
    """
    # exec into the target container through the Kubernetes API
    POD = "pod"
    # ssh into the node hosting the target pod
    SSH = "ssh"

    @classmethod
    def has_value(cls, value):
        return any(value == item.value for item in cls)


class Phase(Enum):
    PENDING = "Pending"
    RUNNING = "Running"
    COMPLETED = "Completed"


class Verdict(Enum):
    AWAITED = "Awaited"
    PASS = "Pass"
    FAIL = "Fail"
    # The run was interrupted by a signal and reverted
    STOPPED = "Stopped"


def get_env(name: str, default: Optional[str] = None,
            environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """
    Look up a configuration value in the environment.

    Unset and empty variables both resolve to the default.

    :param name: The environment variable name. Required.
    :type name: str
    :param default: The value to use when the variable is unset or empty.
        Optional. (Default: None)
    :type default: str
    :param environ: The mapping to read from.
        Optional. (Default: os.environ)
    :type environ: Mapping[str, str]
    :return: Optional[str]
    """
    if environ is None:
        environ = os.environ
    value = environ.get(name, "")
    if value == "":
        return default
    return value


def get_env_int(name: str, default: int,
                environ: Optional[Mapping[str, str]] = None) -> int:
    """
    Look up an integer configuration value in the environment.

    :param name: The environment variable name. Required.
    :type name: str
    :param default: The value to use when the variable is unset or empty.
        Required.
    :type default: int
    :param environ: The mapping to read from.
        Optional. (Default: os.environ)
    :type environ: Mapping[str, str]
    :return: int
    """
    value = get_env(name, None, environ=environ)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(
            "{} must be an integer, got >{}<".format(name, value))


def load_kube_client():
    """
    Build a CoreV1Api client.

    The in-cluster service account is preferred. Outside of a cluster the
    user's kube config is used.

    :return: kubernetes.client.CoreV1Api
    """
    from kubernetes import client, config

    try:
        config.load_incluster_config()
        logger.debug("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        logger.debug("Not running in a cluster, loading kube config")
        config.load_kube_config()
    return client.CoreV1Api()


# Chaos defaults
# Please keep defaults in lexically acending order by name
DEFAULT_CHAOS_APP_KIND = "deployment"
DEFAULT_CHAOS_CPU_CORES = 1
DEFAULT_CHAOS_DURATION = 30
DEFAULT_CHAOS_EXPERIMENT_NAME = "fail-function"
DEFAULT_CHAOS_FAIL_FUNCTION_INTERVAL = 1
DEFAULT_CHAOS_FAIL_FUNCTION_NAME = "should_fail_bio"
DEFAULT_CHAOS_FAIL_FUNCTION_PROBABILITY = 100
# -EIO
DEFAULT_CHAOS_FAIL_FUNCTION_RETVAL = -5
DEFAULT_CHAOS_INTERVAL = 10
DEFAULT_CHAOS_NAMESPACE = "litmus"
DEFAULT_CHAOS_PODS_AFFECTED_PERC = 0
DEFAULT_CHAOS_RAMP_TIME = 0
DEFAULT_CHAOS_SEQUENCE = Sequence.PARALLEL.value
DEFAULT_CHAOS_SSH_CONFIG_FILE = "~/.ssh/config"
DEFAULT_CHAOS_STATUS_CHECK_DELAY = 2
DEFAULT_CHAOS_STATUS_CHECK_TIMEOUT = 180
DEFAULT_CHAOS_TRANSPORT = Transport.POD.value
