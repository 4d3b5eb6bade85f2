"""Top-level pytest configuration for injectry."""

import pytest

from injectry.injection import (
    ContainerRegistry,
    InjectionSettings,
    ServiceRegistrar,
)


@pytest.fixture
def settings():
    return InjectionSettings()


@pytest.fixture
def registry(settings):
    """A fresh registry per test; nothing is shared between tests."""
    return ContainerRegistry(settings=settings)


@pytest.fixture
def default_container(registry):
    return registry.default_container


@pytest.fixture
def container(registry):
    return registry.create_container("test-container")


@pytest.fixture
def registrar(registry):
    return ServiceRegistrar(registry)
