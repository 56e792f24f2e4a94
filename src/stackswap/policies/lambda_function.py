"""Hotswap policy for Lambda functions."""

import asyncio
import logging

from stackswap.classifier import ClassifiedChanges
from stackswap.models import ApplyAction, ChangeCandidate
from stackswap.policies.base import PolicyContext, ResourcePolicy, contains_intrinsic

logger = logging.getLogger(__name__)


def _declared_function_name(candidate: ChangeCandidate) -> str | None:
    """The literal FunctionName, or None when it is absent or only resolved at deploy time."""
    name = candidate.new_properties.get("FunctionName")
    if name is None or contains_intrinsic(name):
        return None
    return name


def _code_arguments(code: dict) -> dict:
    """Translate a template ``Code`` property into UpdateFunctionCode arguments."""
    if "ZipFile" in code:
        return {"ZipFile": code["ZipFile"].encode("utf-8")}
    if "ImageUri" in code:
        return {"ImageUri": code["ImageUri"]}
    kwargs = {"S3Bucket": code["S3Bucket"], "S3Key": code["S3Key"]}
    if "S3ObjectVersion" in code:
        kwargs["S3ObjectVersion"] = code["S3ObjectVersion"]
    return kwargs


class LambdaFunctionPolicy(ResourcePolicy):
    resource_type = "AWS::Lambda::Function"
    service = "lambda-function"
    hotswappable_properties = frozenset({"Code", "Environment", "Description"})

    def resource_names(self, candidate: ChangeCandidate) -> list[str]:
        name = _declared_function_name(candidate) or candidate.logical_id
        return [f"Lambda Function '{name}'"]

    def build_apply(
        self, candidate: ChangeCandidate, classified: ClassifiedChanges, context: PolicyContext
    ) -> ApplyAction:
        props = candidate.new_properties
        changed = classified.hotswappable_props

        async def apply() -> None:
            function_name = _declared_function_name(candidate) or await asyncio.to_thread(
                context.client.physical_resource_id, candidate.logical_id
            )
            lambda_client = context.client.service("lambda", self.service)

            if "Code" in changed:
                logger.info("Updating code of Lambda function %s", function_name)
                await asyncio.to_thread(
                    lambda_client.update_function_code,
                    FunctionName=function_name,
                    **_code_arguments(props["Code"]),
                )
                await asyncio.to_thread(
                    lambda_client.get_waiter("function_updated_v2").wait,
                    FunctionName=function_name,
                )

            configuration = {}
            if "Description" in changed:
                configuration["Description"] = props.get("Description", "")
            if "Environment" in changed:
                configuration["Environment"] = props.get("Environment", {"Variables": {}})
            if configuration:
                logger.info("Updating configuration of Lambda function %s", function_name)
                await asyncio.to_thread(
                    lambda_client.update_function_configuration,
                    FunctionName=function_name,
                    **configuration,
                )

        return apply
