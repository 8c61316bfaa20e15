import random
from collections import namedtuple

from kubernetes.client.rest import ApiException
from logzero import logger

from chaoskube.exceptions import ConfigurationError, ResolutionError

from typing import List


class Target(namedtuple('Target', ['namespace', 'pod', 'container', 'node'])):
    """A pod (and the container within it) that chaos is injected into"""
    __slots__ = ()

    def __str__(self):
        if self.container:
            return "{}/{}/{}".format(self.namespace, self.pod, self.container)
        return "{}/{}".format(self.namespace, self.pod)


def _split(names: str) -> List[str]:
    return [name.strip() for name in names.split(",") if name.strip()]


def _is_running(pod) -> bool:
    return (pod.status is not None and pod.status.phase == "Running" and
            pod.metadata.deletion_timestamp is None)


def validate_target_spec(details) -> None:
    """
    Make sure the experiment says which pods to target.

    :param details: The experiment configuration. Required.
    :type details: chaoskube.experiment.ExperimentDetails
    :return: None
    """
    if not details.app_label and not _split(details.target_pods):
        raise ConfigurationError(
            "Please provide either of the app label or target pods")


def pods_affected_count(total: int, perc: int) -> int:
    """
    How many of `total` candidate pods a percentage selects.

    At least one pod is always selected, and never more than there are.

    :param total: The number of candidate pods. Required.
    :type total: int
    :param perc: The percentage of pods to affect. 0 selects a single pod.
        Required.
    :type perc: int
    :return: int
    """
    return min(max(1, perc * total // 100), total)


def _named_pod(api, details, name: str):
    if details.app_label:
        # Both given: the named pod must also carry the label
        pods = api.list_namespaced_pod(details.app_namespace,
                                       label_selector=details.app_label,
                                       field_selector="metadata.name={}".format(name))
        if not pods.items:
            raise ResolutionError(
                "Pod {} in namespace {} does not match label >{}<".format(
                    name, details.app_namespace, details.app_label))
        pod = pods.items[0]
    else:
        pod = api.read_namespaced_pod(name, details.app_namespace)
    if not _is_running(pod):
        raise ResolutionError("Pod {} in namespace {} is not running".format(
            name, details.app_namespace))
    return pod


def get_target_pods(api, details) -> List[Target]:
    """
    Resolve the pods chaos is injected into.

    Explicitly named pods (details.target_pods) are taken as they are, in the
    given order. Otherwise a random pods_affected_perc share of the running
    pods matching details.app_label is picked.

    :param api: A kubernetes.client.CoreV1Api. Required.
    :param details: The experiment configuration. Required.
    :type details: chaoskube.experiment.ExperimentDetails
    :return: List[Target]
    """
    validate_target_spec(details)
    names = _split(details.target_pods)
    try:
        if names:
            pods = [_named_pod(api, details, name) for name in names]
        else:
            candidates = api.list_namespaced_pod(
                details.app_namespace, label_selector=details.app_label).items
            candidates = [pod for pod in candidates if _is_running(pod)]
            if not candidates:
                raise ResolutionError(
                    "No running pods with label >{}< in namespace {}".format(
                        details.app_label, details.app_namespace))
            count = pods_affected_count(len(candidates),
                                        details.pods_affected_perc)
            logger.debug("Selecting %d of %d candidate pods", count,
                         len(candidates))
            pods = random.sample(candidates, count)
    except ApiException as e:
        raise ResolutionError("Unable to list target pods in namespace {}: "
                              "{}".format(details.app_namespace, e.reason))

    return [Target(details.app_namespace, pod.metadata.name,
                   details.target_container or None, pod.spec.node_name)
            for pod in pods]


def get_target_container(pod, container: str = None) -> str:
    """
    Pick the container to operate in.

    :param pod: A kubernetes.client.V1Pod. Required.
    :param container: The configured container name, if any.
        Optional. (Default: None, the pod's first container)
    :type container: str
    :return: str
    """
    names = [c.name for c in pod.spec.containers]
    if not container:
        return names[0]
    if container not in names:
        raise ResolutionError("Container {} not found in pod {}, it has: "
                              "{}".format(container, pod.metadata.name,
                                          ", ".join(names)))
    return container


def resolve_containers(api, targets: List[Target],
                       container: str = None) -> List[Target]:
    resolved = []
    for target in targets:
        try:
            pod = api.read_namespaced_pod(target.pod, target.namespace)
        except ApiException as e:
            raise ResolutionError("Unable to read pod {}: {}".format(target,
                                                                     e.reason))
        resolved.append(target._replace(
            container=get_target_container(pod, container)))
    return resolved
