"""Resolve the current state of a stack by name."""

import logging

from botocore.exceptions import BotoCoreError, ClientError

from stackdeploy.aws.client import CloudFormationApi
from stackdeploy.errors import StackLookupError
from stackdeploy.models import Stack

logger = logging.getLogger(__name__)


class StackLookup:
    """Finds a single stack, distinguishing "absent" from "could not ask"."""

    def __init__(self, client: CloudFormationApi):
        self._client = client

    def find(self, name: str) -> Stack | None:
        """Return the stack called ``name``, or None if it does not exist.

        Any service error other than "does not exist" raises StackLookupError,
        so throttling or access problems are never mistaken for a new stack.
        """
        try:
            stacks = self._client.describe_stacks(name)
        except (ClientError, BotoCoreError) as e:
            raise StackLookupError(f"Could not describe stack {name!r}: {e}") from e

        if len(stacks) != 1:
            if stacks:
                logger.warning("Expected one stack named %s, found %d", name, len(stacks))
            return None
        return stacks[0]
