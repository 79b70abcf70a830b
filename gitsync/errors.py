"""Exception hierarchy for gitsync."""

from typing import Optional


class GitSyncError(Exception):
    """Base exception for gitsync errors."""


class ShellError(GitSyncError):
    """External command failed. Message and command are already redacted."""

    def __init__(self, message: str, command: str = "", exit_code: Optional[int] = None):
        self.command = command
        self.exit_code = exit_code
        super().__init__(message)


class CliError(ShellError):
    """Bundled workflow CLI failed."""


class GitError(GitSyncError):
    """Git operation failed."""


class GpgError(GitSyncError):
    """GPG key import or signing setup failed."""


class AuthError(GitSyncError):
    """Repository authentication error."""


class PlatformError(GitSyncError):
    """Platform API request failed."""


class SettingsError(GitSyncError):
    """Git-sync settings operation failed."""


class SyncError(GitSyncError):
    """Workspace sync operation failed."""
