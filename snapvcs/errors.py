"""snapvcs error types."""


class VCSError(Exception):
    """Base class for every failure reported to the user.

    The message is the complete, user-facing description of the failure.
    """


class UsageError(VCSError):
    """Raised when a command gets the wrong number or shape of operands."""


class NotInitialized(VCSError):
    """Raised when a command runs outside an initialized repository."""


class NotFound(VCSError):
    """Raised when a file, commit, branch or blob cannot be found."""


class AlreadyExists(VCSError):
    """Raised when creating a branch or repository that already exists."""


class NoOpRequested(VCSError):
    """Raised when the requested operation would have nothing to do."""


class PreconditionFailed(VCSError):
    """Raised when the repository state does not allow the operation.

    Examples are an untracked file in the way of a checkout, uncommitted
    changes blocking a merge, or an empty commit.
    """


class InvalidOperation(VCSError):
    """Raised when an operation is never allowed on its target."""
