"""
Standard exit codes for srcarchive commands.

Following Unix/POSIX conventions for command-line tools.
"""

# Standard POSIX exit codes
SUCCESS = 0              # Successful termination
GENERAL_ERROR = 1        # General errors
USAGE_ERROR = 2          # Misuse of shell command (wrong arguments, etc.)

# Application-specific exit codes (64-113 are typically available)
TAG_ERROR = 64           # No usable release tag could be resolved
SUBMODULE_ERROR = 65     # Submodule listing could not be obtained or parsed
SNAPSHOT_ERROR = 66      # git archive failed for a repository
ASSEMBLY_ERROR = 67      # Appending to the container failed
PRUNE_ERROR = 68         # Rewriting the container failed
PACKAGE_ERROR = 69       # Compression failed
CONFIG_ERROR = 78        # Configuration file error (EX_CONFIG)
INTERRUPTED = 130        # Terminated by Ctrl+C (SIGINT)

# Exit code mappings for common exceptions
EXCEPTION_EXIT_CODES = {
    'TagResolutionError': TAG_ERROR,
    'SubmoduleEnumerationError': SUBMODULE_ERROR,
    'SnapshotError': SNAPSHOT_ERROR,
    'AssemblyError': ASSEMBLY_ERROR,
    'PruneError': PRUNE_ERROR,
    'PackageError': PACKAGE_ERROR,
    'ConfigError': CONFIG_ERROR,
    'KeyboardInterrupt': INTERRUPTED,
}


def get_exit_code_for_exception(exc: BaseException) -> int:
    """
    Get the appropriate exit code for an exception.

    Args:
        exc: The exception that occurred

    Returns:
        Appropriate exit code
    """
    exit_code = getattr(exc, 'exit_code', None)
    if isinstance(exit_code, int):
        return exit_code
    exc_name = exc.__class__.__name__
    return EXCEPTION_EXIT_CODES.get(exc_name, GENERAL_ERROR)
