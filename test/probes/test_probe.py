import pytest

from chaoskube.exceptions import ProbeError, ResolutionError
from chaoskube.probes.probe import *
from test.fakes import FakeCoreV1Api, make_pod


def test_run_probes_in_order(context):
    ran = []

    def first(ctx):
        ran.append("first")
        return True

    def second(ctx):
        ran.append("second")
        return True

    context.probes = [first, second]
    run_probes(context)
    assert ran == ["first", "second"]


def test_falsy_probe_fails(context):
    def nope(ctx):
        return False

    context.probes = [nope]
    with pytest.raises(ProbeError) as e:
        run_probes(context)
    assert "nope" in str(e.value)


def test_probe_chaos_error_becomes_probe_error(context):
    def unresolvable(ctx):
        raise ResolutionError("no pods")

    context.probes = [unresolvable]
    with pytest.raises(ProbeError):
        run_probes(context)


def test_targets_are_running(context, targets):
    context.targets = targets
    assert targets_are_running(context)


def test_targets_not_running(context, targets):
    context.api = FakeCoreV1Api([make_pod("nginx-1", phase="Pending")])
    context.targets = targets[:1]
    context.details.timeout = 0

    assert not targets_are_running(context)


def test_targets_unreadable(context, targets, pods):
    context.api = FakeCoreV1Api(pods, fail=True)
    context.targets = targets

    assert not targets_are_running(context)
