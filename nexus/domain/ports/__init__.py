"""
Domain Ports Package

Architectural Intent:
- Contains port interfaces (abstract contracts) for the dispatcher
- Ports define what collaborators need, infrastructure implements how
"""

from nexus.domain.ports.event_manager_port import EventManagerPort

__all__ = [
    "EventManagerPort",
]
