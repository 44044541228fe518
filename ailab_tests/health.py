"""
Health check for locally running inference services.
"""

import logging
from typing import Optional

import requests

from ailab_tests.polling import DEFAULT_INTERVALS, to_pass

logger = logging.getLogger(__name__)


def service_url(port: int, host: str = "localhost") -> str:
    return f"http://{host}:{port}"


def check_service_endpoint(port: int, timeout: float = 30.0, intervals=DEFAULT_INTERVALS,
                           session: Optional[requests.Session] = None,
                           request_timeout: float = 5.0, **kwargs) -> requests.Response:
    """
    GET the service root until it answers with a success status.

    Non-success responses and connection errors are both retried.

    Args:
        port: Port the inference server listens on
        timeout: Overall deadline in seconds
        intervals: Poll schedule between attempts
        session: Optional requests session to issue the calls with
        request_timeout: Timeout of a single request in seconds

    Returns:
        The first successful response

    Raises:
        ConditionTimeoutError: If the service never answered successfully
    """
    url = service_url(port)
    http = session or requests

    def probe() -> requests.Response:
        response = http.get(url, timeout=request_timeout)
        if not 200 <= response.status_code < 300:
            raise AssertionError(f"GET {url} returned {response.status_code}")
        return response

    logger.info(f"Checking model service at {url}")
    response = to_pass(probe, timeout=timeout, intervals=intervals,
                       description=f"GET {url} to succeed", **kwargs)
    logger.info(f"Model service at {url} answered {response.status_code}")
    return response
