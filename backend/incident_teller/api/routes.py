"""API routes for incident analysis."""
import structlog
from datetime import timedelta
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query, status

from incident_teller.api.schemas import AnalyzeRequest, HealthResponse, NetdataAnalyzeRequest
from incident_teller.config import settings
from incident_teller.services.analysis import IncidentAnalyzer
from incident_teller.services.ingestion import (
    AlertSource,
    AlertSourceError,
    NetdataAlertSource,
    normalize_alarm,
)

logger = structlog.get_logger()

router = APIRouter()


def get_analyzer() -> IncidentAnalyzer:
    """Build an analyzer from the configured windows."""
    return IncidentAnalyzer(
        correlation_window=timedelta(seconds=settings.CORRELATION_WINDOW_SECONDS),
        cascade_window=timedelta(seconds=settings.CASCADE_WINDOW_SECONDS),
        max_alternatives=settings.MAX_ALTERNATIVE_CAUSES,
    )


def get_alert_source() -> AlertSource:
    """Build the configured Netdata alert source."""
    return NetdataAlertSource(
        base_url=settings.NETDATA_URL,
        hostname=settings.NETDATA_HOSTNAME,
        timeout=settings.NETDATA_TIMEOUT_SECONDS,
        retry_attempts=settings.NETDATA_RETRY_ATTEMPTS,
    )


# ============== Health ==============

@router.get("/health", response_model=HealthResponse, tags=["Health"])
def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=settings.APP_VERSION,
        netdata_url=settings.NETDATA_URL,
    )


# ============== Analysis ==============

@router.post("/analyze", tags=["Analysis"])
def analyze_alerts(
    request: AnalyzeRequest,
    analyzer: IncidentAnalyzer = Depends(get_analyzer),
) -> Dict[str, Any]:
    """Analyze a submitted alert batch."""
    alerts = [alert.to_alert() for alert in request.alerts]
    logger.info("Analysis requested", alert_count=len(alerts))
    return analyzer.analyze(alerts).to_dict()


@router.post("/analyze/netdata", tags=["Analysis"])
def analyze_netdata_alarms(
    request: NetdataAnalyzeRequest,
    analyzer: IncidentAnalyzer = Depends(get_analyzer),
) -> Dict[str, Any]:
    """Analyze raw Netdata alarm-log entries."""
    hostname = request.hostname or settings.NETDATA_HOSTNAME
    alerts = [normalize_alarm(log, hostname) for log in request.alarms]
    logger.info("Netdata analysis requested", alert_count=len(alerts), hostname=hostname)
    return analyzer.analyze(alerts).to_dict()


@router.get("/analyze/live", tags=["Analysis"])
def analyze_live(
    after: int = Query(0, ge=0, description="Only alarms after this unique id"),
    source: AlertSource = Depends(get_alert_source),
    analyzer: IncidentAnalyzer = Depends(get_analyzer),
) -> Dict[str, Any]:
    """Fetch the latest alarms from Netdata and analyze them."""
    try:
        alerts = source.fetch_latest(after)
    except AlertSourceError as e:
        logger.error("Live analysis failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Alert source unavailable: {e}",
        )

    return analyzer.analyze(alerts).to_dict()
