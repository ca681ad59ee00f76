"""
Connection status tracking for voice sessions.

connection_status: DOWN | UP

Tracked separately from the session state machine. This is pure data
owned by SessionGateway, not by orchestrator state.
"""
from enum import Enum

class ConnectionStatus(Enum):
    """
    Connection lifecycle status.

    Independent of the orchestrator State enum: IDLE can occur with
    any ConnectionStatus.
    """
    DOWN = "DOWN"  # Not connected
    UP = "UP"      # Active WebSocket connection
