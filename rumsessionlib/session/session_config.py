"""Configuration model for session identity.

This module provides immutable configuration for session lifetime and
inactivity handling, loaded from environment variables with validation.
"""

import logging
import os
from dataclasses import dataclass
from typing import ClassVar

from rumsessionlib.session.timeout_handlers import InactivityPolicy
from rumsessionlib.utilities.logger.log_levels import SRC_LOG_LEVELS

logger = logging.getLogger(__name__)
logger.setLevel(SRC_LOG_LEVELS["SESSION"])

# Environment variable names
ENV_VAR_LIFETIME: str = "RUM_SESSION_LIFETIME_SECONDS"
ENV_VAR_INACTIVITY_TIMEOUT: str = "RUM_SESSION_INACTIVITY_TIMEOUT_SECONDS"
ENV_VAR_INACTIVITY_POLICY: str = "RUM_SESSION_INACTIVITY_POLICY"


def _parse_seconds(env_var: str, default: float) -> float:
    """
    Parse a duration in seconds from the environment.

    Args:
        env_var: Environment variable to read
        default: Value used when the variable is unset or not a number

    Returns:
        Parsed duration in seconds
    """
    env_value = os.environ.get(env_var, "")
    if not env_value:
        return default
    try:
        return float(env_value)
    except ValueError:
        logger.warning(
            "Invalid %s value: %s. Using default %.0fs.", env_var, env_value, default
        )
        return default


@dataclass(frozen=True)
class SessionConfig:
    """
    Immutable configuration for session rotation.

    Loaded from environment variables with sensible defaults.
    """

    lifetime_seconds: float
    inactivity_timeout_seconds: float
    inactivity_policy: InactivityPolicy | str

    # Default values
    DEFAULT_LIFETIME_SECONDS: ClassVar[float] = 4 * 60 * 60.0
    DEFAULT_INACTIVITY_TIMEOUT_SECONDS: ClassVar[float] = 15 * 60.0
    DEFAULT_INACTIVITY_POLICY: ClassVar[InactivityPolicy] = (
        InactivityPolicy.REARM_ON_ACCESS
    )

    @classmethod
    def default(cls) -> "SessionConfig":
        return cls(
            lifetime_seconds=cls.DEFAULT_LIFETIME_SECONDS,
            inactivity_timeout_seconds=cls.DEFAULT_INACTIVITY_TIMEOUT_SECONDS,
            inactivity_policy=cls.DEFAULT_INACTIVITY_POLICY,
        )

    @classmethod
    def from_environment(cls) -> "SessionConfig":
        """
        Load configuration from environment variables.

        Returns:
            Immutable configuration instance

        Environment Variables:
            RUM_SESSION_LIFETIME_SECONDS: Maximum session age
            RUM_SESSION_INACTIVITY_TIMEOUT_SECONDS: Maximum idle time
            RUM_SESSION_INACTIVITY_POLICY: rearm_on_access or explicit_start
        """
        lifetime_seconds = _parse_seconds(ENV_VAR_LIFETIME, cls.DEFAULT_LIFETIME_SECONDS)
        inactivity_timeout_seconds = _parse_seconds(
            ENV_VAR_INACTIVITY_TIMEOUT, cls.DEFAULT_INACTIVITY_TIMEOUT_SECONDS
        )

        # Unknown policies are kept as text so validate() can report them
        policy_str = os.environ.get(
            ENV_VAR_INACTIVITY_POLICY, cls.DEFAULT_INACTIVITY_POLICY.value
        ).strip().lower()
        inactivity_policy: InactivityPolicy | str
        try:
            inactivity_policy = InactivityPolicy(policy_str)
        except ValueError:
            inactivity_policy = policy_str

        return cls(
            lifetime_seconds=lifetime_seconds,
            inactivity_timeout_seconds=inactivity_timeout_seconds,
            inactivity_policy=inactivity_policy,
        )

    def validate(self) -> list[str]:
        """
        Validate configuration and return list of validation errors.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors: list[str] = []

        if self.lifetime_seconds <= 0:
            errors.append(
                f"{ENV_VAR_LIFETIME} must be positive, got {self.lifetime_seconds}"
            )
        if self.inactivity_timeout_seconds <= 0:
            errors.append(
                f"{ENV_VAR_INACTIVITY_TIMEOUT} must be positive, "
                f"got {self.inactivity_timeout_seconds}"
            )
        allowed_policies = [p.value for p in InactivityPolicy]
        if self.inactivity_policy not in allowed_policies:
            allowed = ", ".join(allowed_policies)
            errors.append(
                f"{ENV_VAR_INACTIVITY_POLICY} must be one of {allowed}, "
                f"got {self.inactivity_policy!r}"
            )

        return errors
