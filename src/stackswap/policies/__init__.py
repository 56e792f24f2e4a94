"""Per-resource-type hotswap policies."""

from stackswap.policies.base import (
    PolicyContext,
    PolicyRegistry,
    ResourcePolicy,
    contains_intrinsic,
)
from stackswap.policies.ecs import EcsTaskDefinitionPolicy
from stackswap.policies.lambda_function import LambdaFunctionPolicy
from stackswap.policies.state_machine import StateMachinePolicy


def default_registry() -> PolicyRegistry:
    """Registry with every policy shipped with stackswap."""
    return PolicyRegistry(
        [
            LambdaFunctionPolicy(),
            StateMachinePolicy(),
            EcsTaskDefinitionPolicy(),
        ]
    )


__all__ = [
    "EcsTaskDefinitionPolicy",
    "LambdaFunctionPolicy",
    "PolicyContext",
    "PolicyRegistry",
    "ResourcePolicy",
    "StateMachinePolicy",
    "contains_intrinsic",
    "default_registry",
]
