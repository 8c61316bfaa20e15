import pytest

from chaoskube.experiment import ChaosContext, ExperimentDetails
from chaoskube.probes.target import Target
from test.fakes import FakeCoreV1Api, make_pod


@pytest.fixture
def details():
    return ExperimentDetails(experiment_name="recording",
                             app_namespace="default",
                             app_label="app=nginx",
                             chaos_duration=0.2,
                             ramp_time=0,
                             timeout=1,
                             delay=0)


@pytest.fixture
def pods():
    return [make_pod("nginx-{}".format(i), labels={"app": "nginx"},
                     node="node-{}".format(i))
            for i in range(1, 4)]


@pytest.fixture
def api(pods):
    return FakeCoreV1Api(pods)


@pytest.fixture
def context(details, api):
    return ChaosContext(details, api)


@pytest.fixture
def targets():
    return [Target("default", "nginx-{}".format(i), "app", "node-{}".format(i))
            for i in range(1, 4)]
