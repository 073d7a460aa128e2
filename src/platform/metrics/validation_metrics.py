from prometheus_client import Counter, Gauge, Histogram


class ValidationMetrics:
    """
    Ticket Validation Client Metrics Collector

    Tracks validation session lifecycle, rotating token health,
    location acquisition and peer voting outcomes.
    """

    def __init__(self):
        # ========== Validation Session Metrics ==========
        self.sessions_started = Counter(
            'validation_sessions_started_total',
            'Validation sessions started',
            ['geofenced'],
        )

        self.sessions_ended = Counter(
            'validation_sessions_ended_total',
            'Validation sessions ended',
            ['reason'],  # reason: expired/validated/cancelled/closed
        )

        self.sessions_rejected = Counter(
            'validation_sessions_rejected_total',
            'Session start attempts rejected',
            ['rejection'],  # rejection: out_of_geofence/not_eligible/failed
        )

        self.active_sessions = Gauge(
            'validation_sessions_active', 'Validation sessions currently displaying a QR'
        )

        # ========== Rotating Token Metrics ==========
        self.token_rotations = Counter(
            'validation_token_rotations_total',
            'Rotating token fetch attempts',
            ['result'],  # result: applied/discarded/failed
        )

        self.upstream_request_duration = Histogram(
            'validation_upstream_request_duration_seconds',
            'Ticketing API request duration',
            ['operation'],
            buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
        )

        # ========== Location Metrics ==========
        self.location_failures = Counter(
            'validation_location_failures_total',
            'Location acquisition failures',
            ['cause'],  # cause: permission_denied/unavailable/timeout/unsupported
        )

        # ========== Peer Voting Metrics ==========
        self.peer_votes = Counter(
            'validation_peer_votes_total',
            'Peer validation votes submitted',
            ['result'],  # result: accepted/rejected
        )


# Global metrics instance
metrics = ValidationMetrics()
