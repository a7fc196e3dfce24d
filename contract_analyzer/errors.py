"""Exceptions raised by the analysis pipeline."""


class ContractAnalyzerError(Exception):
    pass


class InferenceError(ContractAnalyzerError):
    """The model call returned something we could not use. Worth retrying."""


class SegmentFailure(ContractAnalyzerError):
    """A single segment failed on every attempt."""

    def __init__(self, index: int, attempts: int):
        self.index = index
        self.attempts = attempts
        super().__init__(f"Chunk {index} failed after {attempts} attempts")


class PipelineError(ContractAnalyzerError):
    """The run as a whole failed; results are incomplete and must not be used."""

    def __init__(self, message: str, failed_index: int | None = None,
                 completed: int = 0, total: int = 0):
        self.failed_index = failed_index
        self.completed = completed
        self.total = total
        super().__init__(message)


class ReviewInProgress(ContractAnalyzerError):
    """A review of this contract is already running."""
