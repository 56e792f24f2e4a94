"""Hotswap policy for ECS task definitions and the services that run them."""

import asyncio
import logging

from stackswap.classifier import ClassifiedChanges
from stackswap.models import ApplyAction, ChangeCandidate
from stackswap.policies.base import PolicyContext, ResourcePolicy, contains_intrinsic
from stackswap.transform import lower_case_first_character, transform_object_keys

logger = logging.getLogger(__name__)

# Values under these keys are user-defined maps whose keys must not be rewritten.
REGISTER_EXCLUDE = {
    "ContainerDefinitions": {
        "DockerLabels": True,
        "FirelensConfiguration": {"Options": True},
        "LogConfiguration": {"Options": True},
    },
}


def family_from_arn(task_definition_arn: str) -> str:
    """``arn:aws:ecs:...:task-definition/web:3`` -> ``web``."""
    return task_definition_arn.rsplit("/", 1)[-1].rsplit(":", 1)[0]


def cluster_from_service_arn(service_arn: str) -> str:
    """Services created before long ARNs were introduced live in the default cluster."""
    parts = service_arn.split(":service/", 1)[-1].split("/")
    return parts[0] if len(parts) > 1 else "default"


class EcsTaskDefinitionPolicy(ResourcePolicy):
    resource_type = "AWS::ECS::TaskDefinition"
    service = "ecs-service"
    hotswappable_properties = frozenset({"ContainerDefinitions"})

    def rejection_reason(self, candidate: ChangeCandidate) -> str | None:
        # Every property is sent to RegisterTaskDefinition, not only the changed ones.
        for name, value in candidate.new_properties.items():
            if contains_intrinsic(value):
                return (
                    f"property '{name}' of resource '{candidate.logical_id}' references "
                    "values that can only be resolved by a full deployment"
                )
        return None

    def resource_names(self, candidate: ChangeCandidate) -> list[str]:
        family = candidate.new_properties.get("Family", candidate.logical_id)
        return [f"ECS Task Definition '{family}'"]

    def build_apply(
        self, candidate: ChangeCandidate, classified: ClassifiedChanges, context: PolicyContext
    ) -> ApplyAction:
        register_args = transform_object_keys(
            candidate.new_properties, lower_case_first_character, REGISTER_EXCLUDE
        )
        deployment_configuration = (
            context.overrides.ecs_hotswap_properties.deployment_configuration()
        )

        async def apply() -> None:
            ecs = context.client.service("ecs", self.service)
            args = dict(register_args)
            if not args.get("family"):
                current_arn = await asyncio.to_thread(
                    context.client.physical_resource_id, candidate.logical_id
                )
                args["family"] = family_from_arn(current_arn)
            family = args["family"]

            resp = await asyncio.to_thread(ecs.register_task_definition, **args)
            new_arn = resp["taskDefinition"]["taskDefinitionArn"]
            logger.info("Registered %s", new_arn)

            services = await asyncio.to_thread(
                context.client.list_stack_resources, "AWS::ECS::Service"
            )
            updated: dict[str, list[str]] = {}
            for service in services:
                service_arn = service["physical_id"]
                cluster = cluster_from_service_arn(service_arn)
                desc = await asyncio.to_thread(
                    ecs.describe_services, cluster=cluster, services=[service_arn]
                )
                running = [
                    s for s in desc["services"]
                    if family_from_arn(s["taskDefinition"]) == family
                ]
                if not running:
                    continue
                await asyncio.to_thread(
                    ecs.update_service,
                    cluster=cluster,
                    service=service_arn,
                    taskDefinition=new_arn,
                    deploymentConfiguration=deployment_configuration,
                    forceNewDeployment=True,
                )
                updated.setdefault(cluster, []).append(service_arn)

            for cluster, service_arns in updated.items():
                logger.info("Waiting for %d service(s) in %s to stabilize", len(service_arns), cluster)
                await asyncio.to_thread(
                    ecs.get_waiter("services_stable").wait,
                    cluster=cluster,
                    services=service_arns,
                )

        return apply
