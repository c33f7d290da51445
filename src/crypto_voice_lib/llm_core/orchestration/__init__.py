"""Query orchestration: the model/tool loop and streamed-turn assembly."""

from .orchestrator import ConversationOrchestrator, OrchestrationResult, OrchestratorState
from .stream import StreamAccumulator

__all__ = ["ConversationOrchestrator", "OrchestrationResult", "OrchestratorState", "StreamAccumulator"]
