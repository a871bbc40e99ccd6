"""Custom exceptions for the dune-tidy lint orchestrator."""


class DuneTidyError(RuntimeError):
    """Base class for domain-specific runtime errors."""

    exit_code = 1


class UsageError(DuneTidyError):
    """Raised when the tool is invoked with the wrong arguments."""

    exit_code = 1


class ConfigurationError(DuneTidyError):
    """Raised when rule-set or configuration data is malformed."""

    exit_code = 1


class CompilationDatabaseNotFoundError(DuneTidyError):
    """Raised when compile_commands.json does not exist."""

    exit_code = 3


class EnvironmentSetupError(DuneTidyError):
    """Raised when the products directory cannot be set up."""

    exit_code = 1


class ToolchainNotFoundError(DuneTidyError):
    """Raised when no clang version is available from the products directory."""

    exit_code = 2


class ToolchainActivationError(DuneTidyError):
    """Raised when `setup clang <version>` returns a non-zero status."""

    exit_code = 1

    def __init__(self, version: str, status: int, message: str | None = None):
        self.version = version
        self.status = status
        super().__init__(
            message
            or f'There was a problem executing "setup clang {version}" (return value was {status})'
        )


class TargetNotFoundError(DuneTidyError):
    """Raised when the file or directory to examine does not exist."""

    exit_code = 2


class UnsupportedFileKindError(DuneTidyError):
    """Raised for header files and files with an unknown extension."""

    exit_code = 1


class AnalyzerInvocationError(DuneTidyError):
    """Raised when clang-tidy cannot be started or exits abnormally for a file."""

    exit_code = 4

    def __init__(self, path, message: str):
        self.path = path
        super().__init__(f"{path}: {message}")
