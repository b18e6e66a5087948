from typing import Optional


class ScenarioError(Exception):
    exit_code = 20


class ScenarioTxError(ScenarioError):
    """A transaction finished with a status other than the one the task expected."""

    exit_code = 21

    def __init__(self, message: str, status: Optional[str] = None) -> None:
        super().__init__(message)
        self.status = status


class UnknownEntityError(ScenarioError):
    """A task referenced an account, token, topic or subscription nobody created."""

    exit_code = 23


class UnknownTaskTypeError(ScenarioError):
    exit_code = 27


class ScenarioAssertionError(ScenarioError):
    exit_code = 30
