"""Custom Flask application class with container reference."""

from typing import TYPE_CHECKING

from flask import Flask

if TYPE_CHECKING:
    from rds_exporter.container import AppContainer


class App(Flask):
    """Flask application with typed access to the dependency container."""

    container: "AppContainer"
