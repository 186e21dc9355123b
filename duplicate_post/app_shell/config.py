import logging
import os
from pathlib import Path

from duplicate_post.rules.models import Rules

logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    pass


def validate_ops_rules(rules: Rules, base_dir: Path) -> None:
    """
    Validate operational requirements before startup.
    """
    missing = [env_var for env_var in rules.ops.required_env if env_var not in os.environ]
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    migrations_dir = base_dir / "migrations"
    if not migrations_dir.is_dir():
        raise ConfigurationError(f"Migrations directory not found at: {migrations_dir}")

    if os.environ.get("DUP_SECRET_KEY") is None:
        logger.warning("DUP_SECRET_KEY is not set; using the development signing key")

    logger.info("Configuration validated.")
