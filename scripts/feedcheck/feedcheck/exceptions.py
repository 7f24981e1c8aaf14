"""Custom exception hierarchy for feedcheck.

Exit codes follow Unix conventions:
- 1: General error
- 2: Configuration error
- 3: Invalid argument
- 4: Version parse error
- 5: Network or protocol error
- 6: Operation cancelled
- 7: Credential provider error
"""


class FeedCheckError(Exception):
    """Base exception for all feedcheck errors.

    Each subclass defines an exit_code for CLI error reporting.
    """

    exit_code: int = 1

    def __init__(
        self,
        message: str,
        details: str | None = None,
        fix_hint: str | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Brief error message
            details: Detailed explanation of what went wrong
            fix_hint: Suggested command or action to fix the issue
        """
        super().__init__(message)
        self.message = message
        self.details = details
        self.fix_hint = fix_hint

    def __str__(self) -> str:
        parts = [self.message]
        if self.details:
            parts.append(f"\nDetails: {self.details}")
        if self.fix_hint:
            parts.append(f"\nFix: {self.fix_hint}")
        return "".join(parts)


class ConfigurationError(FeedCheckError):
    """Configuration errors.

    Raised when:
    - A feed URL is malformed
    - NuGet.Config or feedcheck.yml cannot be parsed
    - Config values fail validation
    - The process-wide context is used before initialization
    """

    exit_code = 2


class InvalidArgumentError(FeedCheckError):
    """Missing or malformed arguments.

    Raised when:
    - A credential request has no URI
    - A package identity has an empty id
    """

    exit_code = 3


class VersionParseError(FeedCheckError):
    """Malformed package version string."""

    exit_code = 4


class NetworkError(FeedCheckError):
    """Network or registry protocol failures.

    Raised when:
    - HTTP requests fail or time out
    - The feed rejects every credential offered
    - The service index lacks a required resource
    - A response body is not valid JSON
    """

    exit_code = 5


class OperationCancelledError(FeedCheckError):
    """A cooperative cancellation was observed.

    Named OperationCancelledError to avoid shadowing asyncio.CancelledError.
    """

    exit_code = 6


class CredentialProviderError(FeedCheckError):
    """A credential provider plugin failed.

    Raised when:
    - The plugin executable exits with the failure code
    - The plugin output is not the expected JSON document
    - The plugin times out
    """

    exit_code = 7
