"""Error codes for CLI exit status.

Every command exits with one of these codes. Benign early exits (nothing to
release, loop prevention) are successes and use ``OK``.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable:
    - 0: Success (including "nothing to release")
    - 1: User error (invalid config, bad arguments)
    - 2: Environment error (missing git/gh)
    - 3: VCS error (commit, tag or push failed)
    - 4: Network error (hosting API failed)
    - 5: I/O error (changelog or version file could not be written)
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    VCS_ERROR = 3
    NETWORK_ERROR = 4
    IO_ERROR = 5

    def __str__(self) -> str:
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
