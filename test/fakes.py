import threading
from types import SimpleNamespace

from kubernetes.client import (V1Container, V1ObjectMeta, V1Pod, V1PodSpec,
                               V1PodStatus)
from kubernetes.client.rest import ApiException

from chaoskube.execute.execute import Executor, Result
from chaoskube.faults.base import FaultBindings


class FakeExecutor(Executor):
    """Records commands; fails the ones listed in `failing` (by position)."""

    def __init__(self, target="default/pod/app", failing=(), return_code=1):
        self.target = target
        self.failing = set(failing)
        self.return_code = return_code
        self.commands = []

    def _execute(self, command):
        self.commands.append(command)
        if len(self.commands) in self.failing:
            return Result(self.return_code, '', 'boom')
        return Result(0, '', '')


class RecordingFault(object):
    """
    Fault bindings that record every call in order.

    `fail_inject` holds pod names whose injection raises the given error,
    `fail_reset` pod names whose reset raises. `inject_delay` makes injection
    block that long (seconds) before returning.
    """

    def __init__(self, fail_inject=None, fail_reset=None, inject_delay=0):
        self.fail_inject = fail_inject or {}
        self.fail_reset = fail_reset or {}
        self.inject_delay = inject_delay
        self.calls = []
        self.injected = threading.Event()
        self._lock = threading.Lock()

    def derive_args(self, details):
        return SimpleNamespace(details=details)

    def inject(self, executor, args):
        with self._lock:
            self.calls.append(('inject', executor.pod))
        self.injected.set()
        if self.inject_delay:
            threading.Event().wait(self.inject_delay)
        if executor.pod in self.fail_inject:
            raise self.fail_inject[executor.pod]

    def reset(self, executor, args):
        with self._lock:
            self.calls.append(('reset', executor.pod))
        if executor.pod in self.fail_reset:
            raise self.fail_reset[executor.pod]

    def bindings(self):
        return FaultBindings("recording", self.derive_args, self.inject,
                             self.reset)

    def pods(self, action):
        return [pod for kind, pod in self.calls if kind == action]


def target_executor(context, target):
    return SimpleNamespace(pod=target.pod, target=target)


def make_pod(name, labels=None, phase="Running", containers=('app',),
             node="node-1", namespace="default"):
    return V1Pod(
        metadata=V1ObjectMeta(name=name, namespace=namespace,
                              labels=dict(labels or {})),
        spec=V1PodSpec(containers=[V1Container(name=c) for c in containers],
                       node_name=node),
        status=V1PodStatus(phase=phase))


def _matches(pod, label_selector):
    if not label_selector:
        return True
    for term in label_selector.split(","):
        key, _, value = term.partition("=")
        if (pod.metadata.labels or {}).get(key.strip()) != value.strip():
            return False
    return True


class FakeCoreV1Api(object):
    """The few CoreV1Api calls chaoskube makes, backed by a list of pods"""

    def __init__(self, pods=(), fail=False):
        self.pods = list(pods)
        self.fail = fail

    def _check(self):
        if self.fail:
            raise ApiException(status=500, reason="Internal Server Error")

    def list_namespaced_pod(self, namespace, label_selector=None,
                            field_selector=None):
        self._check()
        items = [pod for pod in self.pods
                 if pod.metadata.namespace == namespace and
                 _matches(pod, label_selector)]
        if field_selector:
            name = field_selector.split("=", 1)[1]
            items = [pod for pod in items if pod.metadata.name == name]
        return SimpleNamespace(items=items)

    def read_namespaced_pod(self, name, namespace):
        self._check()
        for pod in self.pods:
            if pod.metadata.name == name and pod.metadata.namespace == namespace:
                return pod
        raise ApiException(status=404, reason="Not Found")
