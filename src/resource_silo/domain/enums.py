from enum import Enum


class EvictionReason(str, Enum):
    """Why a cached value is being removed from a container.

    Attributes:
        TEARDOWN: Full container cleanup.
        FORK: A change of generation (e.g. process fork) was detected.
        OVERRIDE: The resource is being overridden or its override cleared.
    """

    TEARDOWN = "teardown"
    FORK = "fork"
    OVERRIDE = "override"

    def __str__(self) -> str:
        return self.value
