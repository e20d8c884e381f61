"""AWS session and client construction.

Region and credentials are resolved once at startup. Static keys from the
environment win when both are present; otherwise boto3's default credential
chain (environment, shared config, instance role) applies. A lone access key
or secret is ignored rather than treated as an error.
"""

import logging
from typing import TYPE_CHECKING, Any

import boto3
import botocore.session
from botocore.config import Config
from botocore.exceptions import BotoCoreError

from rds_exporter.config import Settings
from rds_exporter.exceptions import ConfigurationError

if TYPE_CHECKING:
    from mypy_boto3_cloudwatch import CloudWatchClient
    from mypy_boto3_rds import RDSClient

logger = logging.getLogger(__name__)


def create_aws_session(settings: Settings) -> boto3.Session:
    """Create the boto3 session used for every provider call.

    Args:
        settings: Application settings containing AWS configuration.

    Returns:
        A session with resolvable credentials.

    Raises:
        ConfigurationError: If the configuration cannot be loaded or no
            credentials can be resolved.
    """
    session_kwargs: dict[str, Any] = {"region_name": settings.aws_region}

    if settings.has_static_credentials:
        session_kwargs["aws_access_key_id"] = settings.aws_access_key_id
        session_kwargs["aws_secret_access_key"] = settings.aws_secret_access_key
        if settings.aws_session_token:
            session_kwargs["aws_session_token"] = settings.aws_session_token
    elif settings.aws_access_key_id or settings.aws_secret_access_key:
        # A half-set pair in the environment would make the env provider
        # raise, so resolve through the rest of the chain instead.
        session_kwargs["botocore_session"] = _session_without_env_provider()

    try:
        session = boto3.Session(**session_kwargs)
        credentials = session.get_credentials()
    except BotoCoreError as e:
        raise ConfigurationError(f"Unable to load SDK config: {e}") from e

    if credentials is None:
        raise ConfigurationError(
            "Unable to load SDK config: no AWS credentials could be resolved"
        )

    logger.info(
        "Loaded AWS configuration",
        extra={
            "region": settings.aws_region,
            "credential_source": credentials.method,
        },
    )
    return session


def _session_without_env_provider() -> botocore.session.Session:
    core_session = botocore.session.Session()
    core_session.get_component("credential_provider").remove("env")
    return core_session


def _client_config(settings: Settings) -> Config:
    return Config(
        connect_timeout=settings.aws_connect_timeout,
        read_timeout=settings.aws_read_timeout,
    )


def create_rds_client(session: boto3.Session, settings: Settings) -> "RDSClient":
    """Create the RDS control-plane client."""
    return session.client("rds", config=_client_config(settings))


def create_cloudwatch_client(
    session: boto3.Session, settings: Settings
) -> "CloudWatchClient":
    """Create the CloudWatch telemetry client."""
    return session.client("cloudwatch", config=_client_config(settings))
