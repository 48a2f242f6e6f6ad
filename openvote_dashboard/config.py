# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Dashboard configuration.

Configuration is an explicit object handed to each component at construction;
nothing in the core reads process-wide mutable state.
"""

import os
from dataclasses import dataclass
from urllib.parse import urlparse


DEFAULT_API_URL = "http://localhost:8095/api/v1"
DEFAULT_SESSION_KEY = "openvote_session"


@dataclass
class DashboardConfig:
    """Dashboard configuration settings."""
    api_base_url: str = DEFAULT_API_URL
    refresh_interval: int = 15
    tick_seconds: float = 1.0
    request_timeout: float = 10.0
    session_storage_key: str = DEFAULT_SESSION_KEY
    environment: str = "development"
    otel_enabled: bool = True
    otlp_endpoint: str = ""
    service_version: str = "1.0.0"

    def __post_init__(self):
        parsed = urlparse(self.api_base_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"API URL must use http or https, got {self.api_base_url!r}")
        if self.refresh_interval <= 0:
            raise ValueError("Refresh interval must be positive")
        if self.tick_seconds <= 0:
            raise ValueError("Tick duration must be positive")
        if self.request_timeout <= 0:
            raise ValueError("Request timeout must be positive")
        if not self.session_storage_key:
            raise ValueError("Session storage key cannot be empty")
        self.api_base_url = self.api_base_url.rstrip("/")

    @classmethod
    def from_env(cls) -> "DashboardConfig":
        """Build configuration from environment variables."""
        return cls(
            api_base_url=os.getenv("OPENVOTE_API_URL", DEFAULT_API_URL),
            refresh_interval=int(os.getenv("OPENVOTE_REFRESH_INTERVAL", "15")),
            tick_seconds=float(os.getenv("OPENVOTE_TICK_SECONDS", "1.0")),
            request_timeout=float(os.getenv("OPENVOTE_REQUEST_TIMEOUT", "10.0")),
            session_storage_key=os.getenv("OPENVOTE_SESSION_KEY", DEFAULT_SESSION_KEY),
            environment=os.getenv("ENVIRONMENT", "development"),
            otel_enabled=os.getenv("OTEL_ENABLED", "true").lower() == "true",
            otlp_endpoint=os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT", ""),
            service_version=os.getenv("SERVICE_VERSION", "1.0.0")
        )
