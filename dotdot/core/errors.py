"""Error codes for CLI exit status.

Every command exits with one of these codes. Per-repo failures never abort
a command early; they are counted and reported as OPERATION_FAILED once the
summary has been printed.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success
    - 1: User error (bad input, clone target already exists)
    - 2: Environment error (no workspace found)
    - 3: Config error (a dotdot.toml failed validation)
    - 4: Some repos or links failed (see printed summary)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    CONFIG_ERROR = 3
    OPERATION_FAILED = 4

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
