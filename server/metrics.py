"""
Prometheus Metrics Module

Provides instrumentation for the voting backend:
- Votes cast and rejections by reason
- Result tallies computed
- API request counts and latency
- Error tracking

Usage:
    from server.metrics import metrics
    metrics.votes_cast.labels(kind="election").inc()
"""

from prometheus_client import Counter, Gauge, Histogram, generate_latest, REGISTRY


class CampusVoteMetrics:
    """Centralized metrics for the voting core and API

    Satisfies voting.protocols.MetricsCollector.
    """

    def __init__(self):
        # Voting metrics
        self.votes_cast = Counter(
            'campusvote_votes_cast_total',
            'Total ballot records stored',
            ['kind']
        )

        self.vote_rejections = Counter(
            'campusvote_vote_rejections_total',
            'Vote attempts rejected',
            ['kind', 'reason']  # reason: already_voted/not_active/not_eligible/...
        )

        self.tallies_computed = Counter(
            'campusvote_tallies_computed_total',
            'Result aggregations computed',
            ['kind']
        )

        self.active_items = Gauge(
            'campusvote_active_items',
            'Items currently open for voting',
            ['kind']
        )

        # API metrics
        self.api_requests = Counter(
            'campusvote_api_requests_total',
            'Total API requests',
            ['endpoint', 'method', 'status_code']
        )

        self.api_request_duration = Histogram(
            'campusvote_api_request_duration_seconds',
            'API request duration',
            ['endpoint', 'method'],
            buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0]
        )

        # Error metrics
        self.errors = Counter(
            'campusvote_errors_total',
            'Total errors by component and type',
            ['component', 'error_type']
        )

    def update_active_items(self, stats: dict):
        """Update active item gauges from VotingService.participation_stats()"""
        self.active_items.labels(kind='election').set(stats.get('active_elections', 0))
        self.active_items.labels(kind='poll').set(stats.get('active_polls', 0))

    def record_error(self, component: str, error: Exception):
        """Record an error

        Args:
            component: Component name (store/guard/api)
            error: Exception instance
        """
        error_type = type(error).__name__
        self.errors.labels(component=component, error_type=error_type).inc()


# Global metrics instance
metrics = CampusVoteMetrics()


def get_metrics_text() -> str:
    """Get Prometheus metrics in text format"""
    return generate_latest(REGISTRY).decode('utf-8')
