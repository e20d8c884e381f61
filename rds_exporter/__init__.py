"""RDS storage exporter: Flask application factory."""

import logging

from rds_exporter.config import Settings
from rds_exporter.container import AppContainer
from rds_exporter.core.flask_app import App

logger = logging.getLogger(__name__)


def create_app(
    settings: "Settings | None" = None,
    container: "AppContainer | None" = None,
) -> App:
    """Create and configure the exporter application.

    Args:
        settings: Optional settings instance (loaded from the environment if
            not provided)
        container: Optional pre-built container, used by tests to override
            AWS clients before anything resolves them

    Returns:
        Configured Flask application instance

    Raises:
        ConfigurationError: If settings are invalid.
    """
    app = App(__name__)

    if settings is None:
        settings = Settings.load()

    settings.validate_config()

    if container is None:
        container = AppContainer()
    container.config.override(settings)

    container.wire(
        modules=["rds_exporter.metrics.routes"],
        packages=["rds_exporter.api"],
    )

    app.container = container

    from rds_exporter.api.health import health_bp
    from rds_exporter.metrics.routes import metrics_bp

    app.register_blueprint(metrics_bp)
    app.register_blueprint(health_bp)

    logger.info(
        "Exporter application created",
        extra={"region": settings.aws_region, "port": settings.port},
    )
    return app
