"""Job layer package for workflow orchestration boundaries."""

from .auto_deny_orchestrator import DEFAULT_ANY_IP_LIST_NAME, AutoDenyOrchestrator, AutoDenyOrchestratorConfig
from .interfaces import JobExecutionResult, JobOrchestratorPort
from .progress import QueryProgressSnapshot, QueryProgressTracker
from .run_registry import AutoDenyRunAlreadyActiveError, AutoDenyRunRecord, InMemoryAutoDenyRunRegistry

__all__ = [
	"AutoDenyOrchestrator",
	"AutoDenyOrchestratorConfig",
	"AutoDenyRunAlreadyActiveError",
	"AutoDenyRunRecord",
	"DEFAULT_ANY_IP_LIST_NAME",
	"InMemoryAutoDenyRunRegistry",
	"JobExecutionResult",
	"JobOrchestratorPort",
	"QueryProgressSnapshot",
	"QueryProgressTracker",
]
