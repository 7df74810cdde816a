"""Exceptions raised by the SSH orchestration layer."""


class ShellfleetError(Exception):
    """Base class for remote operation failures."""


class ConnectionError(ShellfleetError):
    """Failed to establish or authenticate an SSH session."""

    def __init__(self, host_name: str, original_error: Exception):
        """Initialize connection error.

        Args:
            host_name: Name of the host
            original_error: Original exception that caused the failure
        """
        self.host_name = host_name
        self.original_error = original_error
        reason = str(original_error) or type(original_error).__name__
        super().__init__(f"Cannot connect to {host_name}: {reason}")


class ExecutionError(ShellfleetError):
    """Transport fault while running a command on an open session."""

    def __init__(self, command: str, original_error: Exception):
        self.command = command
        self.original_error = original_error
        reason = str(original_error) or type(original_error).__name__
        super().__init__(f"Error executing '{command}': {reason}")


class ProvisioningError(ShellfleetError):
    """A remote account command exited non-zero outside its allow-list."""

    def __init__(self, host_name: str, username: str, operation: str, stderr: str):
        """Initialize provisioning error.

        Args:
            host_name: Name of the host the command ran on
            username: Account the operation targeted
            operation: Short operation name (create, block, ...)
            stderr: Standard error reported by the remote command
        """
        self.host_name = host_name
        self.username = username
        self.operation = operation
        self.stderr = stderr
        detail = stderr.strip() or "command failed"
        super().__init__(f"Failed to {operation} {username} on {host_name}: {detail}")


class NotFoundError(ShellfleetError):
    """A host or account id is not in the registry."""

    def __init__(self, kind: str, record_id: int):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind.capitalize()} {record_id} not found")
