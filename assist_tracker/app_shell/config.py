import logging
import os

from assist_tracker.components.enrollment import EnrollmentConfig
from assist_tracker.rules.models import Rules

logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    pass


def configure_logging(rules: Rules) -> None:
    logging.basicConfig(
        level=getattr(logging, rules.ops.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def validate_ops_rules(rules: Rules) -> None:
    """
    Validate operational requirements before startup.
    Raises ConfigurationError listing any missing environment variables.
    """
    missing = [name for name in rules.ops.required_env if name not in os.environ]
    if missing:
        raise ConfigurationError(
            f"Missing required environment variables: {', '.join(missing)}"
        )
    logger.info("Configuration validated")


def enrollment_config(rules: Rules) -> EnrollmentConfig:
    return EnrollmentConfig(
        default_portal_url=rules.enrollment.default_portal_url,
        handoff_requires_logout=rules.enrollment.handoff_requires_logout,
        fallback_refill_days=rules.calendar.fallback_refill_days,
    )
