from typing import Any, Callable, Generic, TypeVar

A = TypeVar('A')


class FaultBindings(Generic[A]):
    """
    The three functions a fault type hands to the injection engine.

    :param name: The fault's name, as used in experiment configuration.
    :type name: str
    :param derive_args: Builds the fault arguments from ExperimentDetails.
    :type derive_args: Callable[[ExperimentDetails], A]
    :param inject: Injects the fault through an executor. Raises on failure.
    :type inject: Callable[[Executor, A], None]
    :param reset: Disables the fault through an executor. Raises on failure.
    :type reset: Callable[[Executor, A], None]
    """

    def __init__(self, name: str,
                 derive_args: Callable[[Any], A],
                 inject: Callable[[Any, A], None],
                 reset: Callable[[Any, A], None]):
        self.name = name
        self.derive_args = derive_args
        self.inject = inject
        self.reset = reset

    def __repr__(self):
        return "FaultBindings({!r})".format(self.name)
