"""Gateway, hydration, and query configuration models.

See Also:
    [PipelineConfig][weavefeed.pipeline.PipelineConfig]: Aggregates these
        models and is loaded from YAML.
    [GatewayClient][weavefeed.gateway.client.GatewayClient]: Consumes
        [GatewayConfig][weavefeed.gateway.configs.GatewayConfig].
    [Hydrator][weavefeed.gateway.hydrator.Hydrator]: Consumes
        [HydratorConfig][weavefeed.gateway.configs.HydratorConfig].
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from weavefeed.models import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, SortOrder, TagFilter


class TimeoutsConfig(BaseModel):
    """Per-request timeouts in seconds.

    See Also:
        [GatewayConfig][weavefeed.gateway.configs.GatewayConfig]: Parent
            config that embeds this model.
    """

    index: float = Field(default=15.0, ge=0.1, le=300.0, description="Index query timeout")
    content: float = Field(default=20.0, ge=0.1, le=300.0, description="Payload fetch timeout")
    connect: float = Field(
        default=5.0,
        ge=0.1,
        le=60.0,
        description="TCP connect timeout (capped to the shorter request timeout)",
    )

    @model_validator(mode="after")
    def _validate_connect_timeout(self) -> TimeoutsConfig:
        shortest = min(self.index, self.content)
        if self.connect > shortest:
            raise ValueError(f"connect ({self.connect}) must not exceed request timeouts ({shortest})")
        return self


class GatewayConfig(BaseModel):
    """Remote gateway endpoints and HTTP limits."""

    base_url: str = Field(default="https://arweave.net", description="Gateway base URL")
    graphql_path: str = Field(default="/graphql", description="GraphQL index path")
    timeouts: TimeoutsConfig = Field(default_factory=TimeoutsConfig)
    max_index_size: int = Field(
        default=5_242_880,
        ge=1024,
        le=52_428_800,
        description="Maximum index response body size in bytes (default: 5 MB)",
    )
    max_content_size: int = Field(
        default=10_485_760,
        ge=1,
        le=104_857_600,
        description="Maximum payload size in bytes (default: 10 MB)",
    )
    max_connections: int = Field(
        default=32, ge=1, le=256, description="Connection pool limit of the HTTP session"
    )
    verify_ssl: bool = Field(
        default=True,
        description="Verify TLS certificates (disable only for testing/local gateways)",
    )
    user_agent: str = Field(default="weavefeed", description="User-Agent request header")

    @field_validator("base_url")
    @classmethod
    def _validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got {v!r}")
        return v.rstrip("/")

    @field_validator("graphql_path")
    @classmethod
    def _validate_graphql_path(cls, v: str) -> str:
        return v if v.startswith("/") else f"/{v}"


class HydratorConfig(BaseModel):
    """Bounded-concurrency payload hydration settings."""

    concurrency: int = Field(
        default=8, ge=1, le=64, description="Maximum concurrent payload fetches"
    )
    timeout: float = Field(
        default=20.0, ge=0.1, le=300.0, description="Per-item hydration timeout in seconds"
    )
    cache_size: int = Field(
        default=0,
        ge=0,
        le=100_000,
        description="Decoded payloads kept in an LRU cache (0 disables caching)",
    )


class TagFilterConfig(BaseModel):
    """A tag filter as written in YAML: ``{name: App-Name, values: [PublicSquare]}``."""

    name: str = Field(min_length=1, description="Tag name to match")
    values: list[str] = Field(min_length=1, description="Accepted tag values")

    def to_tag_filter(self) -> TagFilter:
        return TagFilter(name=self.name, values=tuple(self.values))


class QueryConfig(BaseModel):
    """Default query parameters used when a call does not override them."""

    filters: list[TagFilterConfig] = Field(default_factory=list)
    page_size: int = Field(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE)
    sort_order: SortOrder = Field(default=SortOrder.NEWEST_FIRST)

    def tag_filters(self) -> list[TagFilter]:
        """Return the configured filters as model objects."""
        return [f.to_tag_filter() for f in self.filters]
