"""Missing-value sentinel discovery shared by all source readers."""

import logging
from collections.abc import Mapping

import numpy as np

from envgrid.config import LoaderConfig
from envgrid.errors import LoadError

log = logging.getLogger(__name__)


def resolve_missing_value(
    attributes: Mapping[str, object],
    names: tuple[str, ...],
    config: LoaderConfig,
    source: str,
) -> float:
    """Return the first attribute in names that is present, as a float.

    When none is present, the configured policy decides: "strict" raises
    LoadError, "default" warns and returns config.default_missing_value.

    Args:
        attributes: Attribute mapping of the variable (or file header).
        names: Attribute names to try, in order.
        config: Loader configuration carrying the policy.
        source: Description of the source for messages.
    """
    for name in names:
        if name in attributes and attributes[name] is not None:
            value = np.asarray(attributes[name])
            if value.size != 1 or value.dtype.kind not in "fiu":
                raise LoadError(
                    f"Missing data attribute '{name}' of {source} must be a single "
                    f"number, got {attributes[name]!r}"
                )
            return float(value.reshape(()))

    if config.missing_value_policy == "default":
        log.warning(
            f"No missing data value found for {source}: "
            f"assigning a value of {config.default_missing_value}"
        )
        return float(config.default_missing_value)
    if config.missing_value_policy != "strict":
        raise LoadError(f"Unknown missing value policy {config.missing_value_policy!r}")
    raise LoadError(f"No missing data value found for environmental data file: {source}")
