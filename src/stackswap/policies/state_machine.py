"""Hotswap policy for Step Functions state machines."""

import asyncio
import json

from stackswap.classifier import ClassifiedChanges
from stackswap.models import ApplyAction, ChangeCandidate
from stackswap.policies.base import PolicyContext, ResourcePolicy, contains_intrinsic


class StateMachinePolicy(ResourcePolicy):
    resource_type = "AWS::StepFunctions::StateMachine"
    service = "stepfunctions-service"
    hotswappable_properties = frozenset({"Definition", "DefinitionString"})

    def resource_names(self, candidate: ChangeCandidate) -> list[str]:
        name = candidate.new_properties.get("StateMachineName")
        if name is None or contains_intrinsic(name):
            name = candidate.logical_id
        return [f"StepFunctions State Machine '{name}'"]

    def build_apply(
        self, candidate: ChangeCandidate, classified: ClassifiedChanges, context: PolicyContext
    ) -> ApplyAction:
        props = candidate.new_properties
        if "Definition" in props:
            definition = json.dumps(props["Definition"])
        else:
            definition = props.get("DefinitionString", "")

        async def apply() -> None:
            # The physical id of a state machine is its ARN.
            arn = await asyncio.to_thread(context.client.physical_resource_id, candidate.logical_id)
            sfn = context.client.service("stepfunctions", self.service)
            await asyncio.to_thread(sfn.update_state_machine, stateMachineArn=arn, definition=definition)

        return apply
