"""Graph configuration loaded from keyword arguments or HYDRAGRAPH_* environment variables."""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class GraphConfig(BaseSettings):
    """Configuration for a GraphStore.

    Attributes:
        default_cache: Cache policy for nodes that do not set ``cache`` themselves
        max_concurrent_hydrations: Upper bound on outstanding hydration attempts (None = unbounded)
        settle_timeout: Default timeout in seconds for ``settled()`` / ``resolve()``
        log_transitions: Log every node state transition at VERBOSE level
    """

    model_config = SettingsConfigDict(
        env_prefix="HYDRAGRAPH_",
        extra="ignore",
        validate_assignment=True,
    )

    default_cache: bool = True
    max_concurrent_hydrations: Optional[int] = Field(default=None, ge=1)
    settle_timeout: Optional[float] = Field(default=None, gt=0)
    log_transitions: bool = False
