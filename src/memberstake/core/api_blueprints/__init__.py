from __future__ import annotations

"""
memberstake API Blueprints

Flask Blueprints exposing a StakingRewards controller over HTTP.

Usage:
    from memberstake.core.api_blueprints import create_app
    app = create_app(staking, metrics)
"""

import logging
from typing import TYPE_CHECKING, Any, Dict

from flask import Flask, g
from prometheus_client import CollectorRegistry

from memberstake.core.api_blueprints.staking_bp import staking_bp
from memberstake.core.config import Config
from memberstake.core.logging_config import configure_from_env
from memberstake.core.metrics import StakingMetrics

if TYPE_CHECKING:
    from memberstake.core.staking.staking_rewards import StakingRewards

__all__ = [
    "staking_bp",
    "register_blueprints",
    "create_app",
    "ALL_BLUEPRINTS",
]

logger = logging.getLogger(__name__)

ALL_BLUEPRINTS = [
    staking_bp,
]


def register_blueprints(
    app: Flask,
    staking: "StakingRewards",
    metrics: "StakingMetrics" | None = None,
) -> None:
    """
    Register all API blueprints with the Flask app.

    Sets up a before_request handler that injects the controller and metrics
    into Flask's g object, then registers each blueprint.

    Args:
        app: Flask application instance
        staking: StakingRewards controller served by the app
        metrics: Optional metrics collector for the /staking/metrics endpoint
    """
    api_context: Dict[str, Any] = {
        "staking": staking,
        "metrics": metrics,
    }

    @app.before_request
    def inject_api_context() -> None:
        g.api_context = api_context

    for blueprint in ALL_BLUEPRINTS:
        app.register_blueprint(blueprint)

    logger.info(
        "Registered API blueprints",
        extra={"event": "api.blueprints_registered", "count": len(ALL_BLUEPRINTS)},
    )


def create_app(
    staking: "StakingRewards",
    metrics: "StakingMetrics" | None = None,
    configure_logging: bool = False,
) -> Flask:
    """
    Build the staking API application.

    With metrics enabled and none given, the controller's own collector is
    served, or a fresh one is attached to it. With metrics disabled the
    /staking/metrics endpoint answers 404.

    Args:
        staking: StakingRewards controller to serve
        metrics: Optional metrics collector
        configure_logging: Install JSON logging from the environment configuration

    Returns:
        Configured Flask app
    """
    if configure_logging:
        configure_from_env()

    if not Config.METRICS_ENABLED:
        metrics = None
    elif metrics is None:
        if staking.metrics is None:
            staking.metrics = StakingMetrics(registry=CollectorRegistry())
        metrics = staking.metrics

    app = Flask(__name__)
    app.config["MAX_CONTENT_LENGTH"] = Config.API_MAX_JSON_BYTES
    register_blueprints(app, staking, metrics)
    return app
