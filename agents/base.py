"""
Base Agent class and Orchestrator
Steam Insight — Domestic Game Review Intelligence
"""

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, List, Optional, Dict, Sequence, TypeVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
import logging
import traceback
import time

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str], None]

T = TypeVar("T")
R = TypeVar("R")


def fan_out(fn: Callable[[T], R], items: Sequence[T]) -> List[R]:
    """
    Issue `fn` for every item at once and join on all of them.
    Results keep the order of `items`. The first raised exception propagates
    after the whole group has finished.
    """
    if not items:
        return []
    with ThreadPoolExecutor(max_workers=len(items)) as executor:
        futures = [executor.submit(fn, item) for item in items]
    return [f.result() for f in futures]


def chunked(items: Sequence[T], size: int) -> List[Sequence[T]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


@dataclass
class AgentResult:
    """Standardized result envelope returned by every agent."""
    agent_name: str
    success: bool
    data: Any = None
    error: Optional[str] = None
    exception: Optional[BaseException] = None
    metadata: Dict[str, Any] = field(default_factory=dict)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.started_at and self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return None

    def __repr__(self):
        status = "✅" if self.success else "❌"
        dur = f" ({self.duration_seconds:.1f}s)" if self.duration_seconds else ""
        return f"{status} {self.agent_name}{dur}"


class Agent(ABC):
    """
    Abstract base class for all pipeline agents.
    Subclasses must implement `run(data)`; `report(msg)` forwards a
    human-readable progress line to the optional callback.
    """

    def __init__(self, name: str, progress: Optional[ProgressCallback] = None):
        self.name = name
        self.progress = progress
        self.logger = logging.getLogger(f"agent.{name}")

    @abstractmethod
    def run(self, data: Any) -> Any:
        raise NotImplementedError

    def report(self, message: str) -> None:
        self.logger.info(message)
        if self.progress:
            self.progress(message)

    def execute(self, data: Any) -> AgentResult:
        """
        Wraps `run()` with timing, structured logging, and error handling.
        """
        started_at = datetime.now(timezone.utc)
        self.logger.info(f"[{self.name}] Starting...")
        try:
            result = self.run(data)
            finished_at = datetime.now(timezone.utc)
            duration = (finished_at - started_at).total_seconds()
            self.logger.info(f"[{self.name}] Completed in {duration:.2f}s")
            return AgentResult(
                agent_name=self.name,
                success=True,
                data=result,
                started_at=started_at,
                finished_at=finished_at,
            )
        except Exception as e:
            finished_at = datetime.now(timezone.utc)
            self.logger.error(f"[{self.name}] Failed: {e}\n{traceback.format_exc()}")
            return AgentResult(
                agent_name=self.name,
                success=False,
                error=str(e),
                exception=e,
                started_at=started_at,
                finished_at=finished_at,
            )

    def __repr__(self):
        return f"<Agent: {self.name}>"


class Orchestrator:
    """
    Sequential multi-agent pipeline orchestrator.
    Each agent's output becomes the next agent's input; the first failing
    agent stops the pipeline and its result is returned.
    """

    def __init__(self, agents: List[Agent]):
        self.agents = agents
        self.logger = logging.getLogger("orchestrator")
        self.run_history: List[AgentResult] = []

    def execute(self, input_data: Any = None) -> AgentResult:
        """Execute the full pipeline and return the final AgentResult."""
        self.run_history.clear()
        data = input_data
        total_start = time.time()

        self.logger.info(
            f"🚀 Orchestrator starting — {len(self.agents)} agents in pipeline"
        )

        for i, agent in enumerate(self.agents, 1):
            self.logger.info(f"  [{i}/{len(self.agents)}] {agent.name}")
            result = agent.execute(data)
            self.run_history.append(result)

            if not result.success:
                self.logger.error(f"  ❌ '{agent.name}' failed: {result.error}")
                return result
            data = result.data

        elapsed = time.time() - total_start
        self.logger.info(
            f"✅ Pipeline complete — {len(self.agents)} agents in {elapsed:.2f}s"
        )
        return self.run_history[-1]

    def summary(self) -> str:
        lines = ["Pipeline Summary:"]
        for r in self.run_history:
            lines.append(f"  {r}")
        return "\n".join(lines)
