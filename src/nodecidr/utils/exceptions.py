"""Custom exceptions for the node CIDR controller.

Exception Hierarchy:
-------------------
NodeCIDRError (base)
├── ResolutionError                 # Anything that stops hostname -> CIDR resolution
│   ├── RegistryUnavailable         # Transport or protocol failure talking to NetBox
│   ├── ResolutionCancelled         # Deadline expired while resolving
│   ├── CardinalityError            # A lookup did not return exactly one result
│   │   ├── AddressCardinalityError     # hostname or management-address search
│   │   └── InterfaceCardinalityError   # management-interface search
│   ├── UnassignedOwnerError        # Address not attached to a device or VM interface
│   └── MalformedAddressError       # Address string is not "ip/prefix"
└── NodeUpdateError                 # Reading or patching the Kubernetes node failed

Usage Guidelines:
----------------
1. The resolver never catches its own errors. Every failure aborts the
   resolution and reaches the caller untouched.

2. Each error kind maps to exactly one failure counter, see
   observability.metrics.bucket_for().

3. CardinalityError.got tells "nothing found" (got == 0) apart from
   "ambiguous data" (got > 1).
"""


class NodeCIDRError(Exception):
    """Base exception for all controller errors."""

    pass


class ResolutionError(NodeCIDRError):
    """Raised when a node's pod CIDR cannot be derived from NetBox."""

    pass


class RegistryUnavailable(ResolutionError):
    """Raised when a NetBox request fails at the transport or protocol level."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        endpoint: str | None = None,
    ) -> None:
        """
        Initialize RegistryUnavailable.

        Args:
            message: Error message.
            status_code: Optional HTTP status code returned by NetBox.
            endpoint: Optional endpoint that was being queried.
        """
        super().__init__(message)
        self.status_code = status_code
        self.endpoint = endpoint


class ResolutionCancelled(ResolutionError):
    """Raised when a resolution is aborted because its deadline expired."""

    def __init__(self, node_name: str, timeout: float | None = None) -> None:
        """
        Initialize ResolutionCancelled.

        Args:
            node_name: Node whose resolution was aborted.
            timeout: Deadline in seconds, if known.
        """
        if timeout is not None:
            message = f"Resolution of {node_name} cancelled after {timeout}s"
        else:
            message = f"Resolution of {node_name} cancelled"
        super().__init__(message)
        self.node_name = node_name
        self.timeout = timeout


class CardinalityError(ResolutionError):
    """Raised when a lookup returns a result count other than the expected one."""

    kind: str = "results"

    def __init__(self, context: str, got: int, expected: int = 1, subject: str = "") -> None:
        """
        Initialize CardinalityError.

        Args:
            context: Resolution stage (hostname, management-interface, management-address).
            got: Number of results NetBox reported.
            expected: Number of results the stage requires.
            subject: Optional description of what was searched for.
        """
        detail = f" for {subject}" if subject else ""
        super().__init__(
            f"{context}: expected {expected} {self.kind}, got {got}{detail}"
        )
        self.context = context
        self.got = got
        self.expected = expected
        self.subject = subject

    @property
    def empty(self) -> bool:
        """True if the lookup found nothing at all."""
        return self.got == 0


class AddressCardinalityError(CardinalityError):
    """Raised when an IP address search does not return exactly one address."""

    kind = "addresses"


class InterfaceCardinalityError(CardinalityError):
    """Raised when a management interface search does not return exactly one interface."""

    kind = "interfaces"


class UnassignedOwnerError(ResolutionError):
    """Raised when an address is not assigned to a device or VM interface."""

    def __init__(self, address: str, object_type: str | None) -> None:
        """
        Initialize UnassignedOwnerError.

        Args:
            address: Address whose owner could not be classified.
            object_type: Raw assigned_object_type value (None when absent).
        """
        super().__init__(
            f"no interface assigned to ip {address} (assigned_object_type={object_type!r})"
        )
        self.address = address
        self.object_type = object_type


class MalformedAddressError(ResolutionError):
    """Raised when an address string cannot be parsed as ip/prefix."""

    def __init__(self, address: str, reason: str = "") -> None:
        """
        Initialize MalformedAddressError.

        Args:
            address: The offending address string.
            reason: Optional parser message.
        """
        message = f"cannot parse network from {address!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.address = address
        self.reason = reason


class NodeUpdateError(NodeCIDRError):
    """Raised when the Kubernetes node cannot be read or patched."""

    def __init__(self, node_name: str, operation: str, original_error: Exception | None = None):
        """
        Initialize NodeUpdateError.

        Args:
            node_name: Node being read or patched.
            operation: "get" or "patch".
            original_error: Underlying client exception.
        """
        message = f"failed to {operation} node {node_name}"
        if original_error is not None:
            message += f": {original_error}"
        super().__init__(message)
        self.node_name = node_name
        self.operation = operation
        self.original_error = original_error
