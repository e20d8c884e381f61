"""Pytest fixtures for exporter tests.

No test talks to AWS: boto3 clients are real but wrapped in botocore
Stubbers, and each test gets its own StorageMetricsRegistry.
"""

from collections.abc import Generator

import boto3
import pytest
from botocore.stub import Stubber
from flask.testing import FlaskClient

from rds_exporter import create_app
from rds_exporter.config import Settings
from rds_exporter.container import AppContainer
from rds_exporter.core.flask_app import App
from rds_exporter.metrics.registry import StorageMetricsRegistry
from rds_exporter.services.cloudwatch_service import CloudWatchSampleService
from rds_exporter.services.rds_service import RdsInventoryService
from tests.testing_utils import FIXED_NOW


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        aws_region="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        metrics_update_interval=300,
        graceful_shutdown_timeout=5,
    )


@pytest.fixture
def metrics_registry() -> StorageMetricsRegistry:
    return StorageMetricsRegistry()


@pytest.fixture
def rds_client():
    return boto3.client(
        "rds",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def cloudwatch_client():
    return boto3.client(
        "cloudwatch",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )


@pytest.fixture
def rds_stubber(rds_client) -> Generator[Stubber, None, None]:
    with Stubber(rds_client) as stubber:
        yield stubber


@pytest.fixture
def cloudwatch_stubber(cloudwatch_client) -> Generator[Stubber, None, None]:
    with Stubber(cloudwatch_client) as stubber:
        yield stubber


@pytest.fixture
def inventory_service(rds_client) -> RdsInventoryService:
    return RdsInventoryService(rds_client)


@pytest.fixture
def sample_service(cloudwatch_client) -> CloudWatchSampleService:
    return CloudWatchSampleService(cloudwatch_client, clock=lambda: FIXED_NOW)


@pytest.fixture
def container(
    test_settings: Settings,
    rds_client,
    cloudwatch_client,
    metrics_registry: StorageMetricsRegistry,
) -> AppContainer:
    container = AppContainer()
    container.config.override(test_settings)
    container.rds_client.override(rds_client)
    container.cloudwatch_client.override(cloudwatch_client)
    container.metrics_registry.override(metrics_registry)
    return container


@pytest.fixture
def app(test_settings: Settings, container: AppContainer) -> Generator[App, None, None]:
    app = create_app(test_settings, container=container)
    app.config["TESTING"] = True
    yield app
    container.unwire()


@pytest.fixture
def client(app: App) -> FlaskClient:
    return app.test_client()
