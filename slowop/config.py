"""Monitor configuration."""

from typing import Any, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from slowop.errors import ConfigurationError


DEFAULT_QUERY_THRESHOLD_SECONDS = 5


class MonitorConfig(BaseModel):
    """Options recognised by SlowOperationMonitor.

    Options may be given by their Python names or by their camelCase aliases
    (``queryThresholdSeconds``, ``useHistoricalLog``,
    ``reportAllCollectionScans``).
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    # Minimum elapsed time for an operation to count as slow
    query_threshold_seconds: float = Field(
        default=DEFAULT_QUERY_THRESHOLD_SECONDS,
        ge=0,
        alias="queryThresholdSeconds",
    )

    # Poll system.profile instead of currentOp
    use_historical_log: bool = Field(default=False, alias="useHistoricalLog")

    # Historical log only: also report collection scans under the threshold
    report_all_collection_scans: bool = Field(
        default=False,
        alias="reportAllCollectionScans",
    )

    @property
    def query_threshold_millis(self) -> float:
        """The threshold expressed in milliseconds."""
        return self.query_threshold_seconds * 1000


def load_config(
    config: Optional[Union[MonitorConfig, Mapping[str, Any]]] = None,
    **options: Any,
) -> MonitorConfig:
    """Build a MonitorConfig from a config object, a mapping and/or keywords.

    Keyword options override values from ``config``.

    Raises:
        ConfigurationError: If an option is unknown or has an invalid value.
    """
    values = {}
    if isinstance(config, MonitorConfig):
        values.update(config.model_dump())
    elif config is not None:
        values.update(_by_name(config))
    values.update(_by_name(options))

    try:
        return MonitorConfig.model_validate(values)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid monitor configuration: {exc}") from exc


def _by_name(options: Mapping[str, Any]) -> dict:
    """Translate camelCase aliases to field names so later values win."""
    names = {
        field.alias: name
        for name, field in MonitorConfig.model_fields.items()
        if field.alias
    }
    return {names.get(key, key): value for key, value in options.items()}
