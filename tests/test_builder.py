"""Launch protocol tests with the engine runtime replaced by a controllable future."""

import shutil
from dataclasses import FrozenInstanceError
from unittest.mock import MagicMock

import pytest

from embedded_mock import builder as builder_module
from embedded_mock import (
    ConfigurationConflictError,
    ConfigurationGenerationError,
    ConfigurationMissingError,
    ConfigurationResolutionError,
    EngineStartError,
    LaunchError,
    MockEngineBuilder,
    PortAllocationError,
)
from embedded_mock.generator import generate_config
from embedded_mock.outcome import OnceFuture
from embedded_mock.plugins import RestPlugin


ALLOCATED_PORT = 43210


class FakeRuntime:
    """Stands in for ``deploy``; records configurations and exposes the completion."""

    def __init__(self) -> None:
        self.configurations = []
        self.owned_dirs = []
        self.completion = OnceFuture()

    def __call__(self, configuration, owned_dirs=()):
        self.configurations.append(configuration)
        self.owned_dirs.append(list(owned_dirs))
        return self.completion


@pytest.fixture
def allocator(monkeypatch):
    fake = MagicMock(return_value=ALLOCATED_PORT)
    monkeypatch.setattr(builder_module, "allocate_port", fake)
    return fake


@pytest.fixture
def runtime(monkeypatch):
    fake = FakeRuntime()
    monkeypatch.setattr(builder_module, "deploy", fake)
    return fake


@pytest.fixture
def generated_dirs(monkeypatch):
    """Record every directory generated from specification files."""

    created = []

    def recording_generate_config(specification_files):
        target = generate_config(specification_files)
        created.append(target)
        return target

    monkeypatch.setattr(builder_module, "generate_config", recording_generate_config)
    return created


def test_conflicting_sources_fail_before_port_allocation(allocator, runtime, petstore_spec, resources):
    builder = (
        MockEngineBuilder()
        .with_specification_file(petstore_spec)
        .with_configuration_dir(resources / "rest-config")
    )

    with pytest.raises(LaunchError) as excinfo:
        builder.start()

    assert isinstance(excinfo.value.__cause__, ConfigurationConflictError)
    allocator.assert_not_called()
    assert runtime.configurations == []


def test_missing_sources(allocator, runtime):
    with pytest.raises(LaunchError) as excinfo:
        MockEngineBuilder().start()

    assert isinstance(excinfo.value.__cause__, ConfigurationMissingError)
    allocator.assert_not_called()


def test_unresolvable_config_dir(allocator, runtime, tmp_path):
    builder = MockEngineBuilder().with_configuration_dir(tmp_path / "does-not-exist")

    with pytest.raises(LaunchError) as excinfo:
        builder.start()

    assert isinstance(excinfo.value.__cause__, ConfigurationResolutionError)
    assert runtime.configurations == []


def test_config_dir_that_is_a_file(allocator, runtime, petstore_spec):
    with pytest.raises(LaunchError) as excinfo:
        MockEngineBuilder().with_configuration_dir(petstore_spec).start()

    assert isinstance(excinfo.value.__cause__, ConfigurationResolutionError)


@pytest.mark.parametrize("name", ["not-a-spec.yaml", "missing.yaml"])
def test_specification_generation_failure(allocator, runtime, resources, name):
    builder = MockEngineBuilder().with_specification_file(resources / name)

    with pytest.raises(LaunchError) as excinfo:
        builder.start()

    assert isinstance(excinfo.value.__cause__, ConfigurationGenerationError)
    allocator.assert_not_called()


def test_port_allocation_failure(monkeypatch, runtime, resources):
    def exhausted(host):
        raise PortAllocationError("no ports left")

    monkeypatch.setattr(builder_module, "allocate_port", exhausted)

    with pytest.raises(LaunchError) as excinfo:
        MockEngineBuilder().with_configuration_dir(resources / "rest-config").start()

    assert isinstance(excinfo.value.__cause__, PortAllocationError)
    assert runtime.configurations == []


def test_configuration_handed_to_runtime(allocator, runtime, resources):
    MockEngineBuilder().with_configuration_dir(resources / "rest-config").with_plugin(RestPlugin).start()

    (configuration,) = runtime.configurations
    assert configuration.host == "127.0.0.1"
    assert configuration.listen_port == ALLOCATED_PORT
    assert configuration.plugin is RestPlugin
    assert dict(configuration.plugin_args) == {}
    assert configuration.config_dirs == (str((resources / "rest-config").resolve()),)
    allocator.assert_called_once_with("127.0.0.1")


def test_specification_files_become_generated_config_dir(allocator, runtime, petstore_spec):
    MockEngineBuilder().add_specification_file(petstore_spec).start()

    (configuration,) = runtime.configurations
    (generated,) = configuration.config_dirs
    assert generated != str(petstore_spec.parent)


def test_outcome_waits_for_runtime_completion(allocator, runtime, resources):
    outcome = MockEngineBuilder().with_configuration_dir(resources / "rest-config").start()

    assert not outcome.done()

    deployment = MagicMock()
    runtime.completion.resolve(deployment)

    engine = outcome.result(timeout=1)
    assert engine.port == ALLOCATED_PORT
    assert engine.base_url() == f"http://127.0.0.1:{ALLOCATED_PORT}"
    assert engine.deployment is deployment


def test_runtime_failure_is_delivered_through_outcome(allocator, runtime, resources):
    outcome = MockEngineBuilder().with_configuration_dir(resources / "rest-config").start()

    runtime.completion.reject(RuntimeError("bind failed"))

    exc = outcome.exception(timeout=1)
    assert isinstance(exc, EngineStartError)
    assert isinstance(exc.__cause__, RuntimeError)


def test_outcome_resolves_exactly_once(allocator, runtime, resources):
    outcome = MockEngineBuilder().with_configuration_dir(resources / "rest-config").start()
    runtime.completion.resolve(MagicMock())
    engine = outcome.result(timeout=1)

    assert outcome.resolve(MagicMock()) is False
    assert outcome.reject(RuntimeError("late")) is False
    assert outcome.cancel() is False
    assert outcome.result() is engine


def test_builder_is_single_use(allocator, runtime, resources):
    builder = MockEngineBuilder().with_configuration_dir(resources / "rest-config")
    builder.start()

    with pytest.raises(LaunchError) as excinfo:
        builder.start()

    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert len(runtime.configurations) == 1


def test_synchronous_runtime_error_is_wrapped(allocator, monkeypatch, resources):
    def broken(configuration, owned_dirs=()):
        raise RuntimeError("can't start new thread")

    monkeypatch.setattr(builder_module, "deploy", broken)

    with pytest.raises(LaunchError):
        MockEngineBuilder().with_configuration_dir(resources / "rest-config").start()


def test_launch_request_is_immutable(petstore_spec):
    request = MockEngineBuilder().with_specification_file(str(petstore_spec)).build()

    assert request.specification_files == (petstore_spec,)
    assert request.configuration_dirs == ()
    with pytest.raises(FrozenInstanceError):
        request.plugin = RestPlugin


def test_generated_dir_removed_when_setup_fails(monkeypatch, runtime, generated_dirs, petstore_spec):
    def exhausted(host):
        raise PortAllocationError("no ports left")

    monkeypatch.setattr(builder_module, "allocate_port", exhausted)

    with pytest.raises(LaunchError):
        MockEngineBuilder().with_specification_file(petstore_spec).start()

    (generated,) = generated_dirs
    assert not generated.exists()


def test_generated_dir_removed_when_deploy_raises(allocator, monkeypatch, generated_dirs, petstore_spec):
    def broken(configuration, owned_dirs=()):
        raise RuntimeError("can't start new thread")

    monkeypatch.setattr(builder_module, "deploy", broken)

    with pytest.raises(LaunchError):
        MockEngineBuilder().with_specification_file(petstore_spec).start()

    (generated,) = generated_dirs
    assert not generated.exists()


def test_generated_dir_is_owned_by_the_deployment(allocator, runtime, generated_dirs, petstore_spec, resources):
    MockEngineBuilder().with_specification_file(petstore_spec).start()
    MockEngineBuilder().with_configuration_dir(resources / "rest-config").start()

    (generated,) = generated_dirs
    assert runtime.owned_dirs == [[generated], []]
    assert generated.exists()
    shutil.rmtree(generated)
