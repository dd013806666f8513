"""Exceptions raised by stackdeploy."""


class StackDeployError(Exception):
    """Base class for all stackdeploy errors."""


class ConfigurationError(StackDeployError, ValueError):
    """A required option is missing or has the wrong type."""


class TemplateNotFoundError(ConfigurationError):
    """The template path does not point to a readable file."""


class TemplateValidationError(StackDeployError):
    """CloudFormation rejected the template body."""


class StackLookupError(StackDeployError):
    """The stack could not be looked up for a reason other than not existing."""


class PollTimeoutError(StackDeployError):
    """A poll loop ran out of attempts before reaching a terminal status."""


class DeployCancelledError(StackDeployError):
    """The caller cancelled the deploy between poll attempts."""
