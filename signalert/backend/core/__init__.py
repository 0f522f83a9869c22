"""
Core logic for the sign alert service.
Temporal consensus, sign storage, recording and history.

The detection session controller depends on the matcher and is imported
from ``signalert.backend.core.session_manager`` directly.
"""
from signalert.backend.core.consensus import ConsensusFilter, CooldownGate
from signalert.backend.core.sign_library import SignLibrary
from signalert.backend.core.sign_recorder import SignRecorder, RecordedSign
from signalert.backend.core.history import DetectionHistory
from signalert.backend.core import config

__all__ = [
    'ConsensusFilter',
    'CooldownGate',
    'SignLibrary',
    'SignRecorder',
    'RecordedSign',
    'DetectionHistory',
    'config'
]
