"""Custom exception hierarchy for the replica set sync job."""


class ReplicaSyncError(Exception):
    """Base exception for all fatal sync errors."""


class ConfigError(ReplicaSyncError):
    """Invalid or missing configuration."""


class InventoryError(ReplicaSyncError):
    """The cloud inventory could not be fetched or is inconsistent."""


class ReplicaSetAPIError(ReplicaSyncError):
    """Error talking to the MongoDB replica set."""

    def __init__(self, message: str, code: int | None = None):
        super().__init__(message)
        self.code = code


class ReplicaSetConsistencyError(ReplicaSetAPIError):
    """The status and configuration views of the replica set disagree."""


class ConvergenceError(ReplicaSyncError):
    """Too many configuration updates were needed in one run."""

    def __init__(self, message: str, config_updates: int):
        super().__init__(message)
        self.config_updates = config_updates
