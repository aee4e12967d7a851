"""
Data model for the hook pipeline.
"""

import os
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, List, Optional, Tuple


class HookOrigin(str, Enum):
    """Source a hook item was discovered in, in execution order."""
    LEGACY = "legacy"
    SHARED_GLOBAL = "shared-global"
    SHARED_LOCAL = "shared-local"
    LOCAL = "local"


@dataclass(frozen=True)
class HookTrigger:
    """A repository event and the arguments Git passed to its hook slot."""
    name: str
    args: Tuple[str, ...] = ()


@dataclass(frozen=True)
class HookItem:
    """A single runnable hook file."""
    path: str
    trigger: str
    origin: HookOrigin
    executable: bool

    @property
    def filename(self) -> str:
        return os.path.basename(self.path)


@dataclass(frozen=True)
class Stage:
    """The ordered hook items of one origin."""
    origin: HookOrigin
    items: Tuple[HookItem, ...] = ()

    def __len__(self) -> int:
        return len(self.items)


@dataclass
class ExecutionPlan:
    """Ordered stages to execute for one trigger."""
    trigger: HookTrigger
    stages: List[Stage] = field(default_factory=list)

    def __iter__(self) -> Iterator[Stage]:
        return iter(self.stages)

    @property
    def items(self) -> List[HookItem]:
        return [item for stage in self.stages for item in stage.items]

    def stage(self, origin: HookOrigin) -> Optional[Stage]:
        for stage in self.stages:
            if stage.origin == origin:
                return stage
        return None


@dataclass
class DecisionSession:
    """Trust decisions scoped to a single pipeline invocation."""
    accept_all: bool = False
    trust_all: Optional[bool] = None
