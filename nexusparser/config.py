from dataclasses import dataclass
from enum import Enum


class FailurePolicy(Enum):
    FAIL_FAST = "fail_fast"
    LENIENT = "lenient"


@dataclass
class ParserConfig:
    """Configuration for parsing tree samples."""

    failure_policy: FailurePolicy = FailurePolicy.FAIL_FAST
    workers: int = 1
    chunksize: int = 64
    show_progress: bool = False
    require_taxa_block: bool = False
    logger_name: str = "nexusparser"

    def __post_init__(self) -> None:
        if isinstance(self.failure_policy, str):
            self.failure_policy = FailurePolicy(self.failure_policy)
        if self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")
        if self.chunksize < 1:
            raise ValueError(f"chunksize must be at least 1, got {self.chunksize}")

    @property
    def lenient(self) -> bool:
        return self.failure_policy is FailurePolicy.LENIENT
