"""Thin boto3 wrapper for the AWS calls made while hotswapping a stack."""

import json
import logging
from typing import Any

import boto3
from botocore.config import Config
from botocore.exceptions import ClientError

USER_AGENT_PREFIX = "stackswap-hotswap"

NO_UPDATES_MESSAGE = "No updates are to be performed"

logger = logging.getLogger(__name__)


class HotswapClient:
    """Wraps boto3 calls for one CloudFormation stack.

    Service clients handed to hotswap actions carry the name of the
    subsystem that asked for them in their user agent, so calls can be
    traced back to the hotswap that issued them.
    """

    def __init__(self, stack_name: str, region: str | None = None, session=None):
        self.stack_name = stack_name
        self._session = session or boto3.session.Session(
            **({"region_name": region} if region else {})
        )
        self._cfn = self._session.client("cloudformation")
        self._service_clients: dict[tuple[str, str], Any] = {}

    def service(self, service_name: str, attribution: str):
        """Return a boto3 client for ``service_name`` tagged with ``attribution``."""
        key = (service_name, attribution)
        if key not in self._service_clients:
            self._service_clients[key] = self._session.client(
                service_name,
                config=Config(user_agent_extra=f"{USER_AGENT_PREFIX}/{attribution}"),
            )
        return self._service_clients[key]

    def physical_resource_id(self, logical_id: str) -> str:
        """Look up the physical id of a resource in the stack."""
        resp = self._cfn.describe_stack_resource(
            StackName=self.stack_name, LogicalResourceId=logical_id
        )
        return resp["StackResourceDetail"]["PhysicalResourceId"]

    def list_stack_resources(self, resource_type: str | None = None) -> list[dict[str, str]]:
        """List the stack's resources, optionally of a single type.

        Returns list of dicts with 'logical_id', 'physical_id' and 'resource_type' keys.
        """
        paginator = self._cfn.get_paginator("list_stack_resources")
        results = []
        for page in paginator.paginate(StackName=self.stack_name):
            for summary in page["StackResourceSummaries"]:
                if resource_type and summary["ResourceType"] != resource_type:
                    continue
                results.append(
                    {
                        "logical_id": summary["LogicalResourceId"],
                        "physical_id": summary.get("PhysicalResourceId", ""),
                        "resource_type": summary["ResourceType"],
                    }
                )
        return results

    def get_template(self) -> dict:
        """Fetch the template the stack was last deployed with."""
        resp = self._cfn.get_template(StackName=self.stack_name, TemplateStage="Original")
        body = resp["TemplateBody"]
        # boto3 hands back JSON templates already decoded.
        if isinstance(body, str):
            body = json.loads(body)
        return dict(body)

    def update_stack(
        self,
        template: dict,
        capabilities: list[str] | None = None,
        waiter_delay: int = 5,
        waiter_max_attempts: int = 720,
    ) -> None:
        """Run a full CloudFormation stack update and wait for it to finish."""
        kwargs: dict = {
            "StackName": self.stack_name,
            "TemplateBody": json.dumps(template),
        }
        if capabilities:
            kwargs["Capabilities"] = list(capabilities)

        try:
            self._cfn.update_stack(**kwargs)
        except ClientError as e:
            if NO_UPDATES_MESSAGE in e.response.get("Error", {}).get("Message", ""):
                logger.info("Stack %s is already up to date", self.stack_name)
                return
            raise

        logger.info("Waiting for stack update of %s to complete", self.stack_name)
        self._cfn.get_waiter("stack_update_complete").wait(
            StackName=self.stack_name,
            WaiterConfig={"Delay": waiter_delay, "MaxAttempts": waiter_max_attempts},
        )
