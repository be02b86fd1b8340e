import logging
from typing import Optional

from rumsessionlib.open_telemetry.span_filter_builder import SpanFilterBuilder
from rumsessionlib.open_telemetry.span_filter_config import SpanFilterConfig
from rumsessionlib.utilities.logger.log_levels import SRC_LOG_LEVELS

logger = logging.getLogger(__name__)
logger.setLevel(SRC_LOG_LEVELS["SPAN_FILTER"])


def build_span_filter(
    config: SpanFilterConfig, builder: Optional[SpanFilterBuilder] = None
) -> SpanFilterBuilder:
    """
    Register the rules described by the configuration on a span filter builder.

    Args:
        config: Filter configuration
        builder: Builder to extend (a new one is created if not provided)

    Returns:
        The builder, so callers can chain further rules before building
    """
    builder = builder or SpanFilterBuilder()

    if not config.enabled:
        logger.info("Span filtering disabled via configuration")
        return builder

    excluded_span_names = config.excluded_span_names
    if excluded_span_names:
        builder.reject_by_name(lambda name: name in excluded_span_names)

    excluded_span_prefixes = tuple(config.excluded_span_prefixes)
    if excluded_span_prefixes:
        builder.reject_by_name(lambda name: name.startswith(excluded_span_prefixes))

    for key in config.removed_attributes:
        builder.remove_attribute(key)

    logger.info(
        "Configured span filtering. "
        "Excluding span names: %s, prefixes: %s, removing attributes: %s",
        sorted(excluded_span_names),
        sorted(excluded_span_prefixes),
        [str(key) for key in config.removed_attributes],
    )
    return builder
