from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST

# Define metrics
REQUEST_COUNT = Counter(
    'mediconnect_requests_total',
    'Total number of requests',
    ['method', 'endpoint', 'status_code']
)

REQUEST_DURATION = Histogram(
    'mediconnect_request_duration_seconds',
    'Request duration in seconds',
    ['method', 'endpoint']
)

SIGNUPS = Counter(
    'mediconnect_signups_total',
    'Total number of account signups',
    ['role', 'status']
)

LOGINS = Counter(
    'mediconnect_logins_total',
    'Total number of login attempts',
    ['role', 'status']
)

PRESCRIPTIONS_ISSUED = Counter(
    'mediconnect_prescriptions_total',
    'Total number of prescription upserts',
    ['status']
)

PDF_RENDER_DURATION = Histogram(
    'mediconnect_pdf_render_duration_seconds',
    'Prescription PDF render duration in seconds'
)

STORAGE_UPLOADS = Counter(
    'mediconnect_storage_uploads_total',
    'Total number of document uploads to object storage',
    ['provider', 'status']
)

def get_metrics() -> bytes:
    """Get Prometheus metrics in text format"""
    return generate_latest()

def get_metrics_content_type() -> str:
    """Get Prometheus metrics content type"""
    return CONTENT_TYPE_LATEST

def _status(success: bool) -> str:
    return "success" if success else "error"

class MetricsCollector:
    """Centralized metrics collection"""

    @staticmethod
    def record_request(method: str, endpoint: str, status_code: str, duration: float):
        """Record HTTP request metrics"""
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status_code=status_code).inc()
        REQUEST_DURATION.labels(method=method, endpoint=endpoint).observe(duration)

    @staticmethod
    def record_signup(role: str, success: bool = True):
        SIGNUPS.labels(role=role, status=_status(success)).inc()

    @staticmethod
    def record_login(role: str, success: bool = True):
        LOGINS.labels(role=role, status=_status(success)).inc()

    @staticmethod
    def record_prescription(success: bool = True):
        PRESCRIPTIONS_ISSUED.labels(status=_status(success)).inc()

    @staticmethod
    def record_pdf_render(duration: float):
        PDF_RENDER_DURATION.observe(duration)

    @staticmethod
    def record_storage_upload(provider: str, success: bool = True):
        """Record object storage upload metrics"""
        STORAGE_UPLOADS.labels(provider=provider, status=_status(success)).inc()

# Global metrics collector instance
metrics = MetricsCollector()
