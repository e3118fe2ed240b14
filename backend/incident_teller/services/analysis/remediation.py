"""
Remediation playbooks.

A static knowledge base of suggested actions per resource type, split into
immediate (minutes), short-term (today) and long-term (prevention) tiers.
The recommender adapts the base playbook to the blast radius: cascade
mitigation, target host, and urgency from the root cause's metric value.
"""

from typing import Dict, List, Optional, Tuple

from incident_teller.services.analysis.models import (
    BlastRadiusResult,
    RemediationPlan,
    ResourceType,
    RootCauseCandidate,
)


Playbook = Tuple[Tuple[str, ...], Tuple[str, ...], Tuple[str, ...]]

PLAYBOOKS: Dict[ResourceType, Playbook] = {
    ResourceType.MEMORY: (
        (
            "Identify top memory consumer: `ps aux --sort=-%mem | head -5`",
            "Check OOM killer logs: `dmesg | grep -i 'killed process'`",
            "If safe, restart highest memory process: `systemctl restart <service>`",
            "Clear page cache if needed: `echo 1 > /proc/sys/vm/drop_caches` (careful!)",
        ),
        (
            "Analyze memory trends: `vmstat 1 10` and `free -h`",
            "Profile application heap usage with tools like pprof or valgrind",
            "Review recent deployments - rollback if memory leak introduced",
            "Adjust container memory limits if using Docker/K8s",
            "Enable swap if not already active: `swapon -a`",
        ),
        (
            "Implement memory limits for all services",
            "Set up proactive alerts at 70% and 85% memory usage",
            "Establish regular memory profiling in CI/CD pipeline",
            "Plan horizontal scaling for memory-intensive services",
            "Document baseline memory usage per service",
        ),
    ),
    ResourceType.DISK: (
        (
            "Find largest files: `du -ahx / | sort -rh | head -20`",
            "Clear Docker artifacts: `docker system prune -a --volumes` (if using Docker)",
            "Truncate largest log file: `truncate -s 0 /path/to/large.log`",
            "Delete old journal logs: `journalctl --vacuum-size=500M`",
        ),
        (
            "Set up log rotation for all services: edit `/etc/logrotate.d/`",
            "Identify space hogs: `ncdu /`",
            "Move logs to separate partition or remote log aggregator",
            "Archive old data to object storage",
            "Expand disk volume if on cloud infrastructure",
        ),
        (
            "Implement centralized logging",
            "Set up disk space alerts at 75% and 90%",
            "Automate log cleanup with cron jobs",
            "Use volume quotas for multi-tenant systems",
            "Plan disk capacity based on growth projections",
        ),
    ),
    ResourceType.CPU: (
        (
            "Identify CPU hog: `top -o %CPU` or `htop`",
            "Check for runaway processes: `ps aux | awk '{if($3>80) print $0}'`",
            "Nice down non-critical processes: `renice +10 -p <PID>`",
            "Kill runaway process if confirmed safe: `kill -TERM <PID>`",
        ),
        (
            "Profile CPU usage: `perf top` or application profiler",
            "Review cron jobs: `crontab -l` and `/etc/cron.d/*`",
            "Check for cryptominers: `ps aux | grep -E 'xmrig|minergate'`",
            "Optimize database queries causing high CPU",
            "Consider enabling CPU throttling for background tasks",
        ),
        (
            "Implement auto-scaling based on CPU metrics",
            "Set CPU limits for all containerized services",
            "Optimize application code hot paths (profiling-guided)",
            "Use CPU affinity for latency-sensitive processes",
            "Document baseline CPU usage patterns",
        ),
    ),
    ResourceType.NETWORK: (
        (
            "Check interface status: `ip -s link show`",
            "Identify top bandwidth users: `iftop` or `nethogs`",
            "Block suspicious IPs: `iptables -A INPUT -s <IP> -j DROP`",
            "Check for network errors: `netstat -i` (look for dropped packets)",
        ),
        (
            "Analyze traffic patterns: `tcpdump -i any -c 1000 -w capture.pcap`",
            "Review firewall rules: `iptables -L -n -v`",
            "Check DNS resolution: `dig <domain>` and `/etc/resolv.conf`",
            "Test connectivity to dependencies: `nc -zv <host> <port>`",
            "Review recent network configuration changes",
        ),
        (
            "Implement network monitoring (Prometheus node_exporter)",
            "Set up DDoS protection at the edge",
            "Use connection pooling in applications",
            "Implement rate limiting on public endpoints",
            "Document network topology and dependencies",
        ),
    ),
    ResourceType.PROCESS: (
        (
            "Restart failed service: `systemctl restart <service>`",
            "Check service status: `systemctl status <service>`",
            "View recent logs: `journalctl -u <service> -n 50 --no-pager`",
            "Verify process is running: `pgrep -a <process>`",
        ),
        (
            "Review service configuration files in `/etc/<service>/`",
            "Check process limits: `cat /proc/<PID>/limits`",
            "Increase file descriptors if needed: edit `/etc/security/limits.conf`",
            "Review recent deployments - rollback if unstable",
            "Enable core dumps for crash analysis: `ulimit -c unlimited`",
        ),
        (
            "Implement process monitoring with supervisor/systemd",
            "Set up automatic restart on failure",
            "Use health checks and readiness probes",
            "Implement circuit breakers for dependency failures",
            "Document service dependencies and startup order",
        ),
    ),
    ResourceType.UNKNOWN: (
        (
            "Review system logs: `journalctl -xe`",
            "Check resource utilization: `vmstat 1 5`",
            "Verify service health",
        ),
        (
            "Correlate the alert with recent deployments and config changes",
            "Classify the alerting chart so future incidents map to a playbook",
        ),
        (
            "Add resource classification for unmapped charts",
        ),
    ),
}

SIMPLE = "Simple (single resource, localized)"
MODERATE = "Moderate (multiple resources or cascade)"
COMPLEX = "Complex (widespread impact, deep cascade)"

RESOLUTION_ESTIMATES = {
    SIMPLE: "5-15 minutes (if playbook followed)",
    MODERATE: "15-45 minutes (requires coordination)",
    COMPLEX: "45+ minutes (major incident, multiple interventions needed)",
}

# Follow-up checks for resources that degraded as a side effect
CASCADE_FOLLOW_UPS = {
    ResourceType.CPU: "Monitor CPU recovery after root cause fix",
    ResourceType.MEMORY: "Watch for memory stabilization - may need manual restart",
}


class FixRecommender:
    """Builds a RemediationPlan from the root cause and blast radius."""

    def __init__(self, playbooks: Optional[Dict[ResourceType, Playbook]] = None):
        self.playbooks = playbooks if playbooks is not None else PLAYBOOKS

    def recommend(
        self,
        root_cause: Optional[RootCauseCandidate],
        blast_radius: BlastRadiusResult,
    ) -> RemediationPlan:
        """Generate actionable fixes for an incident."""
        if root_cause is None:
            return RemediationPlan()

        resource_type = root_cause.resource_type
        immediate, short_term, long_term = (
            list(tier) for tier in self.playbooks.get(resource_type, ((), (), ()))
        )

        immediate, short_term = self._enhance_for_cascade(immediate, short_term, blast_radius)
        immediate = self._add_contextual_actions(immediate, root_cause)

        complexity = determine_complexity(blast_radius)
        return RemediationPlan(
            immediate=immediate,
            short_term=short_term,
            long_term=long_term,
            root_cause_type=resource_type,
            complexity=complexity,
            estimated_time_to_resolve=RESOLUTION_ESTIMATES[complexity],
        )

    @staticmethod
    def _enhance_for_cascade(
        immediate: List[str],
        short_term: List[str],
        blast_radius: BlastRadiusResult,
    ) -> Tuple[List[str], List[str]]:
        if blast_radius.cascade_depth == 0:
            return immediate, short_term

        cascade_actions = [
            f"CASCADE DETECTED ({blast_radius.cascade_depth} levels) - prioritize root cause"
        ]
        for component in blast_radius.indirectly_affected:
            follow_up = CASCADE_FOLLOW_UPS.get(component.resource_type)
            if follow_up and follow_up not in cascade_actions:
                cascade_actions.append(follow_up)

        affected = len(blast_radius.directly_affected) + len(blast_radius.indirectly_affected)
        short_term = short_term + [f"Monitor all {affected} affected components for recovery"]
        return cascade_actions + immediate, short_term

    @staticmethod
    def _add_contextual_actions(actions: List[str], root_cause: RootCauseCandidate) -> List[str]:
        alert = root_cause.alert
        prefix = []

        if alert.value >= 95.0:
            prefix.append(
                f"CRITICAL: {alert.resource_type.value.upper()} at {alert.value:.1f}% "
                f"- IMMEDIATE action required"
            )
        elif alert.value >= 85.0:
            prefix.append(
                f"HIGH: {alert.resource_type.value.upper()} at {alert.value:.1f}% "
                f"- act within 5 minutes"
            )

        if alert.host:
            prefix.append(f"Target host: {alert.host}")

        return prefix + actions


def determine_complexity(blast_radius: BlastRadiusResult) -> str:
    """Assess how hard the fix will be from the blast radius."""
    score = 0
    if len(blast_radius.affected_hosts) > 1:
        score += 2
    score += blast_radius.cascade_depth
    if blast_radius.critical_alerts > 2:
        score += 2
    if blast_radius.impact_score > 75:
        score += 2

    if score <= 2:
        return SIMPLE
    if score <= 5:
        return MODERATE
    return COMPLEX
