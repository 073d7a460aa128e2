"""
Service context extraction for logging.

Identifies which validation client produced a log line: the service name,
the deployment environment and the device (or process) it runs on.
"""

import os
from functools import lru_cache


@lru_cache(maxsize=1)
def get_service_context() -> str:
    service_name = os.getenv('SERVICE_NAME', 'ticket-validation')
    deploy_env = os.getenv('DEPLOY_ENV', 'local_dev')

    # Kiosks and companion devices register a DEVICE_ID; fall back to the PID locally
    device_id = os.getenv('DEVICE_ID', '')
    if device_id:
        device_id = device_id[:8]  # First 8 chars for brevity
    else:
        device_id = str(os.getpid())

    return f'{service_name}@{deploy_env}:{device_id}'
