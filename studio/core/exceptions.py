# studio/core/exceptions.py
class NodeNotFoundException(Exception):
    """Raised when a node is not found for a given ID."""
    def __init__(self, message="Node not found."):
        self.message = message
        super().__init__(self.message)


class LabelConflictException(Exception):
    """Raised when a node label is already taken by another node in the graph."""
    def __init__(self, label: str):
        self.label = label
        self.message = f"Label '{label}' is already used by another node."
        super().__init__(self.message)


class ExecutionError(Exception):
    """Raised once per failed call to the execution runtime."""
    def __init__(self, message="Execution runtime request failed.", status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)
