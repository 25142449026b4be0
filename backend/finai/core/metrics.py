"""
Prometheus metrics configuration
"""
import os

from prometheus_client import (CONTENT_TYPE_LATEST, Counter, Histogram, Info,
                               generate_latest)
from prometheus_client.multiprocess import MultiProcessCollector
from prometheus_client.registry import REGISTRY

# Check if we're in multiprocess mode
if os.environ.get('PROMETHEUS_MULTIPROC_DIR'):
    REGISTRY = MultiProcessCollector(REGISTRY)

# ============================================================================
# HTTP Request Metrics
# ============================================================================

http_requests_total = Counter(
    'finai_http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status_code']
)

http_request_duration_seconds = Histogram(
    'finai_http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint', 'status_code'],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0)
)

http_errors_total = Counter(
    'finai_http_errors_total',
    'Total number of HTTP errors',
    ['method', 'endpoint', 'status_code', 'error_type']
)

# ============================================================================
# LLM Request Metrics
# ============================================================================

llm_requests_total = Counter(
    'finai_llm_requests_total',
    'Total number of LLM requests',
    ['model', 'status']
)

llm_request_duration_seconds = Histogram(
    'finai_llm_request_duration_seconds',
    'LLM request duration in seconds',
    ['model'],
    buckets=(0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0)
)

llm_tokens_total = Counter(
    'finai_llm_tokens_total',
    'Total number of tokens reported by the provider',
    ['model']
)

llm_errors_total = Counter(
    'finai_llm_errors_total',
    'Total number of LLM errors',
    ['model', 'error_type']
)

# ============================================================================
# Analysis Metrics
# ============================================================================

analyses_total = Counter(
    'finai_analyses_total',
    'Total number of analyses produced',
    ['mode', 'status']  # status: 'success', 'parse_error', 'empty_response', 'error'
)

# ============================================================================
# Database Metrics
# ============================================================================

db_queries_total = Counter(
    'finai_db_queries_total',
    'Total number of database queries',
    ['operation']
)

db_query_duration_seconds = Histogram(
    'finai_db_query_duration_seconds',
    'Database query duration in seconds',
    ['operation'],
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0)
)

app_info = Info('finai_app', 'FinAI application information')
app_info.info({'name': 'FinAI', 'version': '0.1.0'})


def get_metrics():
    """Render all metrics in Prometheus text format"""
    return generate_latest(REGISTRY)


def get_metrics_content_type():
    return CONTENT_TYPE_LATEST
