"""Per-resource-type configuration overrides for hotswap deployments."""

from dataclasses import dataclass, field

from stackswap.errors import HotswapConfigurationError


@dataclass(frozen=True)
class EcsHotswapProperties:
    """Rolling-update bounds used when hotswapping ECS services.

    ``minimum_healthy_percent`` is the share of the desired count that must
    stay RUNNING; it defaults to 0, which is what hotswap has always used.
    ``maximum_healthy_percent`` caps RUNNING plus PENDING tasks; None leaves
    the service default in place.
    """

    minimum_healthy_percent: int | None = None
    maximum_healthy_percent: int | None = None

    def __post_init__(self):
        if self.minimum_healthy_percent is not None and self.minimum_healthy_percent < 0:
            raise HotswapConfigurationError(
                "hotswap-ecs-minimum-healthy-percent can't be a negative number"
            )
        if self.maximum_healthy_percent is not None and self.maximum_healthy_percent < 0:
            raise HotswapConfigurationError(
                "hotswap-ecs-maximum-healthy-percent can't be a negative number"
            )
        if self.minimum_healthy_percent is None:
            object.__setattr__(self, "minimum_healthy_percent", 0)

    def is_empty(self) -> bool:
        """True when no override was effectively requested."""
        return self.minimum_healthy_percent == 0 and self.maximum_healthy_percent is None

    def deployment_configuration(self) -> dict[str, int]:
        """Render as the ``deploymentConfiguration`` argument of ECS UpdateService."""
        config = {"minimumHealthyPercent": self.minimum_healthy_percent}
        if self.maximum_healthy_percent is not None:
            config["maximumPercent"] = self.maximum_healthy_percent
        return config


@dataclass(frozen=True)
class HotswapPropertyOverrides:
    """Configuration overrides for a hotswap deployment, one entry per resource kind."""

    ecs_hotswap_properties: EcsHotswapProperties = field(default_factory=EcsHotswapProperties)
