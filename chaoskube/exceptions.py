"""
Errors raised by chaoskube.

Every failure a chaos run can report is a ChaosError. The subclasses tell the
operator in which phase of the run the failure happened:

 - ConfigurationError: the experiment is not runnable as configured. Nothing
   was injected.
 - ResolutionError: target pods or containers could not be resolved. Nothing
   was injected.
 - ProbeError: a probe gating the experiment failed. Nothing was injected.
 - InjectionError / ExecutionError: a command failed on a target while chaos
   was being injected. Targets already touched are reverted.
 - RevertError: a fault could not be reverted. Recorded as a warning, never
   the run's terminal error.
"""


class ChaosError(Exception):
    pass


class ConfigurationError(ChaosError):
    pass


class ResolutionError(ChaosError):
    pass


class ProbeError(ChaosError):
    pass


class InjectionError(ChaosError):
    def __init__(self, message, target=None):
        super().__init__(message)
        self.target = target

    def __str__(self):
        message = super().__str__()
        if self.target is not None:
            return "{}: {}".format(self.target, message)
        return message


class ExecutionError(InjectionError):
    """A command failed to run on, or exited non-zero in, a target."""

    def __init__(self, command, return_code=None, stderr='', target=None):
        if return_code is None:
            message = "command >{}< could not be executed: {}".format(
                command, stderr)
        else:
            message = "command >{}< exited with {}: {}".format(
                command, return_code, stderr.strip())
        super().__init__(message, target=target)
        self.command = command
        self.return_code = return_code
        self.stderr = stderr


class RevertError(ChaosError):
    def __init__(self, target, cause):
        super().__init__("failed to revert chaos on {}: {}".format(target,
                                                                    cause))
        self.target = target
        self.cause = cause
