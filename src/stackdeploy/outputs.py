"""Stack output extraction."""

from stackdeploy.models import Stack


def extract_outputs(stack: Stack) -> dict[str, str] | None:
    """Map output keys to values. Returns None when the stack declares no outputs."""
    if not stack.outputs:
        return None
    return {o.key: o.value for o in stack.outputs}
