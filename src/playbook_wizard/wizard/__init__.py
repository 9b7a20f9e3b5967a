"""Playbook generation wizard: session, orchestration and message routing."""

from .controller import PlaybookGenerationController
from .models import ActionEvent, GenerationResult, PlaybookGenerationAction
from .orchestrator import GENERATION_METHOD, GenerationOrchestrator
from .panel import ContentMatchRecorder, HeadlessPanel, LoggingNotifier, StaticTokenProvider
from .router import WizardMessageRouter
from .session_store import WizardSessionStore
from .state_machine import WizardStateMachine
from .telemetry import ActionTelemetryEmitter
from .trial import ErrorClassifier, NullTrialPolicy, OneClickTrialPolicy

__all__ = [
    "ActionEvent",
    "ActionTelemetryEmitter",
    "ContentMatchRecorder",
    "ErrorClassifier",
    "GENERATION_METHOD",
    "GenerationOrchestrator",
    "GenerationResult",
    "HeadlessPanel",
    "LoggingNotifier",
    "NullTrialPolicy",
    "OneClickTrialPolicy",
    "PlaybookGenerationAction",
    "PlaybookGenerationController",
    "StaticTokenProvider",
    "WizardMessageRouter",
    "WizardSessionStore",
    "WizardStateMachine",
]
