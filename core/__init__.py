"""
Core functionality for the local Whisper serving manager
"""

from .broadcaster import SERVING_STATUS_TOPIC, StatusBroadcaster
from .serving_manager import ServingManager
from .serving_status import Error, Idle, Loading, Ready, StatusEvent
from .steps import DEFAULT_STEP_TABLE, WHISPER_LOADING_STEPS, StepTable
from .system_checker import SystemChecker

__all__ = [
    'SERVING_STATUS_TOPIC', 'StatusBroadcaster', 'ServingManager',
    'Idle', 'Loading', 'Ready', 'Error', 'StatusEvent',
    'DEFAULT_STEP_TABLE', 'WHISPER_LOADING_STEPS', 'StepTable', 'SystemChecker',
]
