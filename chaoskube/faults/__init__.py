"""
Fault generators.

Each fault type is a module with pure functions mapping its arguments to an
injection Script and a reset Script, and a BINDINGS object exposing them to
the injection engine. Nothing touches a target until a script is run on a
Shell.
"""
from chaoskube.exceptions import ConfigurationError
from chaoskube.faults import cpu_hog, fail_function
from chaoskube.faults.base import FaultBindings

FAULTS = {
    fail_function.BINDINGS.name: fail_function.BINDINGS,
    cpu_hog.BINDINGS.name: cpu_hog.BINDINGS,
}


def get_fault(name: str) -> FaultBindings:
    try:
        return FAULTS[name]
    except KeyError:
        raise ConfigurationError(
            "Unknown fault >{}<, expected one of: {}".format(
                name, ", ".join(sorted(FAULTS))))
