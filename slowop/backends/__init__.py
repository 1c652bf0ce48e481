"""Backend protocol and implementations for slowop."""

from typing import Any, Dict, List, Protocol, runtime_checkable


@runtime_checkable
class Backend(Protocol):
    """Protocol defining the database operations the monitor relies on."""

    @property
    def name(self) -> str:
        """Name of the monitored database."""
        ...

    def current_op(self, command: Dict[str, Any]) -> Dict[str, Any]:
        """Run an admin currentOp command. Returns the reply document."""
        ...

    def find_profile(self, filter: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Query the system.profile collection, oldest entries first."""
        ...
