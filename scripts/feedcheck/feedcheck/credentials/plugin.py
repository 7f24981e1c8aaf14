"""Credential provider executables (NuGet credential provider protocol V1).

A plugin is an executable named ``CredentialProvider*`` invoked as:

    CredentialProvider.X -uri <uri> -nonInteractive [-isRetry] -verbosity normal

Exit codes:
- 0: success, stdout holds {"Username": ..., "Password": ..., "Message": ...}
- 1: the plugin does not handle this URI
- 2: failure, stdout may hold {"Message": ...}
"""

import json
import os
import uuid
from pathlib import Path

from feedcheck import cancellation as cancel
from feedcheck.cancellation import CancellationToken
from feedcheck.credentials.base import (
    BasicAuthCredential,
    CredentialProvider,
    CredentialRequestType,
    CredentialResponse,
)
from feedcheck.exceptions import CredentialProviderError, InvalidArgumentError
from feedcheck.logger import RegistryLogger
from feedcheck.utils.shell import ShellError, run

EXIT_SUCCESS = 0
EXIT_NOT_APPLICABLE = 1
EXIT_FAILURE = 2

PLUGIN_PREFIX = "credentialprovider"


class PluginCredentialProvider(CredentialProvider):
    """Runs one credential provider executable per lookup."""

    def __init__(
        self,
        path: Path,
        timeout: float = 300,
        logger: RegistryLogger | None = None,
    ) -> None:
        self.path = path
        self.timeout = timeout
        self.logger = logger
        self.id = f"{type(self).__name__}_{path.name}_{uuid.uuid4()}"

    def get(
        self,
        uri: str | None,
        request_type: CredentialRequestType,
        message: str | None = None,
        is_retry: bool = False,
        non_interactive: bool = True,
        cancellation: CancellationToken | None = None,
    ) -> CredentialResponse:
        if not uri:
            raise InvalidArgumentError("uri is required")

        cancel.check(cancellation)

        if request_type is CredentialRequestType.PROXY:
            return CredentialResponse.not_applicable()

        cmd = [str(self.path), "-uri", uri]
        if non_interactive:
            cmd.append("-nonInteractive")
        if is_retry:
            cmd.append("-isRetry")
        cmd.extend(["-verbosity", "normal"])

        if self.logger:
            self.logger.log_verbose(f"Running credential provider {self.path.name} for {uri}")

        try:
            result = run(cmd, timeout=self.timeout)
        except ShellError as e:
            raise CredentialProviderError(
                f"Credential provider {self.path.name} timed out",
                details=str(e),
                fix_hint="Increase credentials.plugin_timeout_seconds or fix the plugin",
            ) from e
        except OSError as e:
            raise CredentialProviderError(
                f"Cannot run credential provider {self.path}",
                details=str(e),
            ) from e

        if result.returncode == EXIT_NOT_APPLICABLE:
            return CredentialResponse.not_applicable()

        payload = _parse_output(self.path, result.stdout)
        if result.returncode != EXIT_SUCCESS:
            raise CredentialProviderError(
                f"Credential provider {self.path.name} failed for {uri}",
                details=str(payload.get("Message") or result.stderr or f"exit code {result.returncode}"),
            )

        username = payload.get("Username")
        password = payload.get("Password")
        if not isinstance(username, str) or not isinstance(password, str):
            raise CredentialProviderError(
                f"Credential provider {self.path.name} returned no credentials",
                details="Expected string 'Username' and 'Password' fields",
            )
        return CredentialResponse.success(BasicAuthCredential(username, password, ("basic",)))


def _parse_output(path: Path, stdout: str) -> dict[str, object]:
    if not stdout.strip():
        return {}
    try:
        data = json.loads(stdout)
    except json.JSONDecodeError as e:
        raise CredentialProviderError(
            f"Credential provider {path.name} wrote invalid JSON",
            details=str(e),
        ) from e
    if not isinstance(data, dict):
        raise CredentialProviderError(
            f"Credential provider {path.name} wrote unexpected output",
            details=f"Expected a JSON object, got {type(data).__name__}",
        )
    return data


def _is_plugin_file(path: Path) -> bool:
    if not path.is_file() or not path.name.lower().startswith(PLUGIN_PREFIX):
        return False
    if os.name == "nt":
        return path.suffix.lower() == ".exe"
    return os.access(path, os.X_OK)


def discover_plugins(paths: list[Path]) -> list[Path]:
    """Find credential provider executables.

    Args:
        paths: Plugin files, or directories searched (non-recursively)

    Returns:
        Executables in the order given, directory contents sorted by name
    """
    found: list[Path] = []
    for path in paths:
        if path.is_dir():
            found.extend(p for p in sorted(path.iterdir()) if _is_plugin_file(p))
        elif _is_plugin_file(path):
            found.append(path)
    return found


def build_plugin_providers(
    paths: list[Path],
    timeout: float = 300,
    logger: RegistryLogger | None = None,
) -> list[CredentialProvider]:
    """Create one provider per discovered plugin executable."""
    providers: list[CredentialProvider] = []
    for plugin in discover_plugins(paths):
        if logger:
            logger.log_debug(f"Using credential provider plugin {plugin}")
        providers.append(PluginCredentialProvider(plugin, timeout=timeout, logger=logger))
    return providers
