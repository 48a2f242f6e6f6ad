# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for Pydantic models and configuration.
"""

import pytest
from datetime import datetime, timezone
from pydantic import ValidationError

from factories import report_record
from openvote_dashboard.config import DashboardConfig, DEFAULT_API_URL
from openvote_dashboard.models.entities import GeoPoint, LegalMatch, Report, parse_timestamp
from openvote_dashboard.models.enums import ReportStatus, UserRole
from openvote_dashboard.models.requests import EnrollRequest, RegisterRequest, ReportSubmission


class TestReportModel:
    """Test Report parsing from backend records."""

    def test_valid_report(self):
        report = Report.model_validate(report_record("r1", status="verified"))

        assert report.id == "r1"
        assert report.status == ReportStatus.VERIFIED
        assert report.location == GeoPoint(longitude=2.3522, latitude=48.8566)
        assert report.author_role == UserRole.OBSERVER
        assert report.created_datetime() == datetime(2026, 3, 1, 10, 15, tzinfo=timezone.utc)

    def test_null_status_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            Report.model_validate(report_record("r1", status=None))

        assert "Report status cannot be null" in str(exc_info.value)

    def test_unknown_status_rejected(self):
        with pytest.raises(ValidationError):
            Report.model_validate(report_record("r1", status="archived"))

    def test_missing_status_rejected(self):
        record = report_record("r1")
        record.pop("status")

        with pytest.raises(ValidationError) as exc_info:
            Report.model_validate(record)

        assert "status" in str(exc_info.value)

    def test_malformed_location_dropped(self):
        report = Report.model_validate(report_record("r1", gps_location="somewhere"))

        assert report.location is None

    def test_empty_author_role(self):
        report = Report.model_validate(report_record("r1", author_role=""))

        assert report.author_role is None

    def test_reports_are_immutable(self):
        report = Report.model_validate(report_record("r1"))

        with pytest.raises(ValidationError):
            report.status = ReportStatus.VERIFIED


class TestTimestamps:
    """Test timestamp parsing."""

    def test_nanosecond_precision(self):
        parsed = parse_timestamp("2026-03-01T10:15:00.123456789Z")

        assert parsed == datetime(2026, 3, 1, 10, 15, 0, 123456, tzinfo=timezone.utc)

    def test_offset_preserved(self):
        parsed = parse_timestamp("2026-03-01T10:15:00+02:00")

        assert parsed.hour == 10
        assert parsed.utcoffset().total_seconds() == 7200

    def test_malformed(self):
        assert parse_timestamp("not a date") is None
        assert parse_timestamp(None) is None


class TestGeoPoint:
    def test_wkt_round_trip(self):
        point = GeoPoint.from_wkt("POINT(-46.63 -23.55)")

        assert point.longitude == -46.63
        assert point.to_wkt() == "POINT(-46.63 -23.55)"

    def test_out_of_range(self):
        assert GeoPoint.from_wkt("POINT(200 10)") is None


class TestRequestModels:
    """Test payload validation before submission."""

    def test_report_submission_coordinates(self):
        with pytest.raises(ValidationError):
            ReportSubmission(observer_id="obs-1", incident_type="fraud", latitude=95, longitude=0)

    def test_report_submission_proof_url(self):
        submission = ReportSubmission(
            observer_id="obs-1", incident_type="fraud", latitude=1, longitude=1, proof_url=""
        )
        assert submission.proof_url is None

        with pytest.raises(ValidationError) as exc_info:
            ReportSubmission(
                observer_id="obs-1", incident_type="fraud", latitude=1, longitude=1, proof_url="ftp://x"
            )
        assert "Proof URL must use http or https" in str(exc_info.value)

    def test_register_password_length(self):
        with pytest.raises(ValidationError):
            RegisterRequest(username="carol", password="12345")

    def test_enroll_pin_length(self):
        with pytest.raises(ValidationError):
            EnrollRequest(activation_token="act", pin="123")

    def test_legal_match_score_bounds(self):
        with pytest.raises(ValidationError):
            LegalMatch(report_id="r1", article_id="a1", similarity_score=1.5)


class TestDashboardConfig:
    """Test configuration validation."""

    def test_defaults(self):
        config = DashboardConfig()

        assert config.api_base_url == DEFAULT_API_URL
        assert config.refresh_interval == 15

    def test_trailing_slash_stripped(self):
        assert DashboardConfig(api_base_url="https://vote.example/api/v1/").api_base_url == "https://vote.example/api/v1"

    def test_invalid_values(self):
        with pytest.raises(ValueError):
            DashboardConfig(api_base_url="ftp://vote.example")
        with pytest.raises(ValueError):
            DashboardConfig(refresh_interval=0)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENVOTE_API_URL", "https://vote.example/api/v1")
        monkeypatch.setenv("OPENVOTE_REFRESH_INTERVAL", "30")
        monkeypatch.setenv("OTEL_ENABLED", "false")

        config = DashboardConfig.from_env()

        assert config.api_base_url == "https://vote.example/api/v1"
        assert config.refresh_interval == 30
        assert config.otel_enabled is False
