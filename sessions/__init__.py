"""
Sessions Package

Components that run one game session:
- Clock: countdown with tick/expiry callbacks
- PowerUp: one-shot reveal-all overlay
- SessionStateMachine: selection, matching, win/expiry
- render: JSON instructions for the view layer
- SessionOrchestrator: per-connection coordinator (deck build + play)

Usage:
    from sessions.clock import Clock
    from sessions.power_up import PowerUp
    from sessions.state_machine import SessionStateMachine
    from sessions.session_orchestrator import SessionOrchestrator

Note: Import directly from submodules to avoid circular import issues.
"""

__all__ = [
    "Clock",
    "PowerUp",
    "SessionStateMachine",
    "SessionOrchestrator",
]
