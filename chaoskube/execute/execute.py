import abc
import os
import shlex

from collections import namedtuple
from os.path import expanduser

from logzero import logger

from fabric import Connection, Config
from invoke.exceptions import CommandTimedOut
from kubernetes.client.rest import ApiException
from kubernetes.stream import stream
from paramiko import AuthenticationException, SSHException

from chaoskube.common import Transport
from chaoskube.exceptions import ConfigurationError, ExecutionError

from typing import Iterable, Optional

Result = namedtuple('Result', ['return_code', 'stdout', 'stderr'])

SHELL = ['/bin/sh', '-c']


class Command(str):
    """One line of shell, run on the target as /bin/sh -c "<command>"."""

    def run_on(self, shell: 'Shell') -> Optional[ExecutionError]:
        shell.run(self)
        return shell.error


class Script(tuple):
    """
    An ordered sequence of commands.

    Commands run in order and the script stops at the first one that fails.
    """

    def __new__(cls, commands: Iterable[str] = ()):
        return super().__new__(cls, (Command(c) for c in commands))

    def run_on(self, shell: 'Shell') -> Optional[ExecutionError]:
        for command in self:
            if command.run_on(shell) is not None:
                break
        return shell.error

    def __repr__(self):
        return "Script({!r})".format(list(self))


class Executor(metaclass=abc.ABCMeta):
    target = None

    def execute(self, command: str) -> Result:
        logger.debug("Executing >%s< on %s", command, self.target)
        rtn = self._execute(command)
        if rtn.return_code != 0:
            raise ExecutionError(command, return_code=rtn.return_code,
                                 stderr=rtn.stderr, target=self.target)
        return rtn

    @abc.abstractmethod
    def _execute(self, command: str) -> Result:
        raise NotImplementedError('users must define _execute to use this base class')


class PodExecutor(Executor):
    def __init__(self, api, namespace: str, pod: str, container: str,
                 timeout: int = 60):
        self.api = api
        self.namespace = namespace
        self.pod = pod
        self.container = container
        self.timeout = timeout
        self.target = "{}/{}/{}".format(namespace, pod, container)

    def _execute(self, command: str) -> Result:
        try:
            resp = stream(self.api.connect_get_namespaced_pod_exec,
                          self.pod,
                          self.namespace,
                          container=self.container,
                          command=SHELL + [command],
                          stderr=True,
                          stdin=False,
                          stdout=True,
                          tty=False,
                          _preload_content=False)
            resp.run_forever(timeout=self.timeout)
            if resp.is_open():
                resp.close()
                raise ExecutionError(command, stderr="remote execution has "
                                     "exceeded timeout", target=self.target)
            stdout = resp.read_stdout() or ''
            stderr = resp.read_stderr() or ''
            return_code = resp.returncode
        except ApiException as e:
            raise ExecutionError(command, stderr=str(e), target=self.target)
        except ExecutionError:
            raise
        except Exception as e:
            # websocket errors surface as plain exceptions
            logger.exception(e)
            raise ExecutionError(command, stderr=str(e), target=self.target)

        return Result(return_code, stdout, stderr)


class FabricExecutor(Executor):
    config = None

    def __init__(self, host: str, user: str = None, ssh_config_file=None,
                 identity_file=None, as_sudo=True, timeout=60):
        self.host = host
        self.user = user
        self.as_sudo = as_sudo
        self.timeout = timeout
        self.target = host
        self.config = FabricExecutor._create_config(ssh_config_file=ssh_config_file)
        self.connect_kwargs = FabricExecutor._collect_connect_kwargs(identity_file)

    @staticmethod
    def _create_config(ssh_config_file=None):
        if ssh_config_file:
            FabricExecutor._is_readable_file(ssh_config_file, 'ssh_config')
        return Config(runtime_ssh_path=ssh_config_file)

    @staticmethod
    def _is_readable_file(path, file_kind):
        if not isinstance(path, str):
            raise ValueError("path to file must be a string")

        if os.access(path, os.R_OK):
            if os.path.isfile(path):
                return
            else:
                raise OSError("Path is not to a file -- '%s'" % str(path))
        else:
            raise OSError("Unable to access the file (not readable) -- %s -- '%s'" % (file_kind, path))

    @staticmethod
    def _collect_connect_kwargs(identity_file):
        connect_kwargs = {}

        if identity_file:
            FabricExecutor._is_readable_file(identity_file, 'identity_file')
            connect_kwargs['key_filename'] = identity_file

        if not connect_kwargs:
            connect_kwargs = None

        return connect_kwargs

    def _execute(self, command: str) -> Result:
        line = "{} {} {}".format(SHELL[0], SHELL[1], shlex.quote(command))
        try:
            with Connection(self.host, config=self.config, user=self.user,
                            connect_kwargs=self.connect_kwargs) as c:
                # warn=True hands non-zero exits back instead of raising
                if self.as_sudo:
                    rtn = c.sudo(line, hide=True, warn=True,
                                 timeout=self.timeout)
                else:
                    rtn = c.run(line, hide=True, warn=True,
                                timeout=self.timeout)
        except (AuthenticationException, SSHException, OSError) as e:
            raise ExecutionError(command, stderr=str(e), target=self.target)
        except CommandTimedOut:
            raise ExecutionError(command, stderr="remote execution has "
                                 "exceeded timeout", target=self.target)

        return Result(rtn.return_code, rtn.stdout, rtn.stderr)


class Shell(object):
    """
    Runs commands through one executor and remembers the first failure.

    Once a command failed, every later run() on the same shell is a no-op, so a
    chain of steps reads straight through and the caller sees the first error.
    """

    def __init__(self, executor: Executor):
        self.executor = executor
        self.error = None

    def run(self, command: str) -> None:
        if self.error is not None:
            return
        try:
            self.executor.execute(command)
        except ExecutionError as e:
            self.error = e

    def check(self) -> None:
        if self.error is not None:
            raise self.error


def executor_for_target(context, target) -> Executor:
    """
    Build the executor that runs commands on one target.

    :param context: The run's ChaosContext. Required.
    :param target: A resolved chaoskube.probes.target.Target. Required.
    :return: Executor
    """
    details = context.details
    if details.transport == Transport.POD.value:
        return PodExecutor(context.api, target.namespace, target.pod,
                           target.container, timeout=details.timeout)
    if details.transport == Transport.SSH.value:
        if not target.node:
            raise ConfigurationError(
                "Target {} is not scheduled on a node, it can not be reached "
                "over ssh".format(target))
        try:
            return FabricExecutor(target.node,
                                  ssh_config_file=expanduser(details.ssh_config_file),
                                  timeout=details.timeout)
        except (OSError, ValueError) as e:
            raise ConfigurationError("Invalid ssh configuration: {}".format(e))
    raise ConfigurationError(
        "Unsupported transport >{}<, expected one of: {}".format(
            details.transport, ", ".join(t.value for t in Transport)))
