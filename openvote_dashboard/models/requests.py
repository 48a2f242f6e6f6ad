# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request payload models validated before submission to the backend.
"""

from typing import Optional
from pydantic import Field, field_validator
from .base import BaseRequest
from .enums import ReportStatus, UserRole


class CredentialsRequest(BaseRequest):
    """Login and registration payload."""

    username: str = Field(..., min_length=1, max_length=100, description="Login name")
    password: str = Field(..., min_length=1, description="Account password")


class RegisterRequest(CredentialsRequest):
    """Account registration payload."""

    password: str = Field(..., min_length=6, description="Account password (6 characters minimum)")


class EnrollRequest(BaseRequest):
    """Activation of an account from an activation token."""

    activation_token: str = Field(..., min_length=1, description="Token issued by an administrator")
    pin: str = Field(..., min_length=4, max_length=8, description="Personal PIN")


class StatusUpdateRequest(BaseRequest):
    """Report status change payload."""

    status: ReportStatus = Field(..., description="Requested status")


class ReportSubmission(BaseRequest):
    """New incident report."""

    observer_id: str = Field(..., min_length=1, description="Submitting observer")
    incident_type: str = Field(..., min_length=1, max_length=100, description="Incident category")
    description: str = Field("", max_length=2000, description="Free text description")
    latitude: float = Field(..., ge=-90, le=90, description="Latitude in degrees")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude in degrees")
    proof_url: Optional[str] = Field(None, description="Evidence object URL")

    @field_validator('proof_url')
    @classmethod
    def validate_proof_url(cls, v):
        """Validate evidence URL scheme."""
        if v is None or v == "":
            return None
        if not v.startswith(('http://', 'https://')):
            raise ValueError('Proof URL must use http or https')
        return v


class UploadURLRequest(BaseRequest):
    """Evidence upload URL request."""

    file_name: str = Field(..., min_length=1, max_length=255, description="Object name of the evidence file")


class GenerateTokenRequest(BaseRequest):
    """Activation token generation payload."""

    role: UserRole = Field(..., description="Role granted by the token")
    region_id: str = Field(..., min_length=1, description="Region scope granted by the token")


class UpdateUserRequest(BaseRequest):
    """User role/region change payload."""

    role: UserRole = Field(..., description="New role")
    region_id: Optional[str] = Field(None, description="New region scope")
