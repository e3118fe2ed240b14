"""Alert source interface."""
from abc import ABC, abstractmethod
from typing import List

from incident_teller.services.analysis.models import Alert


class AlertSourceError(Exception):
    """Raised when an alert source cannot deliver alerts."""


class AlertSource(ABC):
    """Abstract base class for alert sources."""
    
    @abstractmethod
    def fetch_latest(self, last_id: int = 0) -> List[Alert]:
        """
        Fetch alerts newer than the given source-specific id.
        
        Args:
            last_id: Last id already seen (0 fetches everything available)
        
        Returns:
            Normalized alerts
        
        Raises:
            AlertSourceError: If the source is unreachable or returns garbage
        """
        pass
