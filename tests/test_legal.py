# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for legal qualification of reports.
"""

import asyncio
import pytest
from unittest.mock import AsyncMock, Mock

from factories import FakeClock, open_session
from openvote_dashboard.domain.results import NO_MATCH_MESSAGE
from openvote_dashboard.exceptions import (
    AuthorizationExpiredError,
    PermissionDeniedError,
    QualificationError,
    TransientNetworkError,
    ValidationException
)
from openvote_dashboard.models.entities import LegalMatch
from openvote_dashboard.models.enums import NoticeLevel
from openvote_dashboard.services.legal import LegalMatchAdapter


def legal_match(article_id: str, score: float, report_id: str = "r1") -> LegalMatch:
    return LegalMatch(
        report_id=report_id,
        article_id=article_id,
        similarity_score=score,
        article_number=f"L.{article_id}",
        article_title=f"Article {article_id}"
    )


class TestLegalMatchAdapter:
    """Test qualification requests and result handling."""

    def setup_method(self):
        """Set up test fixtures."""
        self.clock = FakeClock()
        self.api = AsyncMock()
        self.session_manager = open_session("super_admin", self.clock, self.api)
        self.adapter = LegalMatchAdapter(self.api, self.session_manager)

    @pytest.mark.asyncio
    async def test_matches_sorted_by_similarity(self):
        self.api.qualify_report.return_value = [
            legal_match("a", 0.41),
            legal_match("b", 0.93),
            legal_match("c", 0.67),
        ]

        result = await self.adapter.qualify("r1")

        assert result.success
        assert not result.no_match
        assert [m.article_id for m in result.matches] == ["b", "c", "a"]
        assert self.adapter.matches == result.matches
        assert self.adapter.selected_report_id == "r1"

    @pytest.mark.asyncio
    async def test_empty_result_is_no_match(self):
        """Test that an empty answer is a successful "no match" outcome."""
        self.api.qualify_report.return_value = []

        result = await self.adapter.qualify("r1")

        assert result.success
        assert result.no_match
        assert result.error is None
        assert result.notice.level == NoticeLevel.INFO
        assert result.notice.message == NO_MATCH_MESSAGE
        assert self.adapter.matches == []

    @pytest.mark.asyncio
    async def test_failure_is_distinct_from_no_match(self):
        self.api.qualify_report.side_effect = TransientNetworkError("Server answered HTTP 500", 500)

        result = await self.adapter.qualify("r1")

        assert not result.success
        assert not result.no_match
        assert isinstance(result.error, QualificationError)
        assert result.notice.level == NoticeLevel.ERROR
        assert self.adapter.matches is None

    @pytest.mark.asyncio
    async def test_observer_denied_without_network_call(self):
        adapter = LegalMatchAdapter(self.api, open_session("observer", self.clock, self.api))

        result = await adapter.qualify("r1")

        assert isinstance(result.error, PermissionDeniedError)
        self.api.qualify_report.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unauthorized_logs_out(self):
        listener = Mock()
        self.session_manager.add_logout_listener(listener)
        self.api.qualify_report.side_effect = AuthorizationExpiredError()

        result = await self.adapter.qualify("r1")

        assert isinstance(result.error, AuthorizationExpiredError)
        listener.assert_called_once_with("unauthorized")

    @pytest.mark.asyncio
    async def test_result_for_previous_selection_not_stored(self):
        release = asyncio.Event()

        async def qualify_report(report_id):
            await release.wait()
            return [legal_match("a", 0.8, report_id)]

        self.api.qualify_report.side_effect = qualify_report

        pending = asyncio.create_task(self.adapter.qualify("r1"))
        await asyncio.sleep(0)
        self.adapter.select("r2")
        release.set()
        result = await pending

        assert result.report_id == "r1"
        assert self.adapter.selected_report_id == "r2"
        assert self.adapter.matches is None

    def test_selection_change_clears_results(self):
        self.adapter.select("r1")
        self.adapter.matches = [legal_match("a", 0.5)]

        self.adapter.select("r1")
        assert self.adapter.matches is not None

        self.adapter.select("r2")
        assert self.adapter.matches is None

    def test_close_clears_selection(self):
        self.adapter.select("r1")

        self.adapter.close()

        assert self.adapter.selected_report_id is None

    @pytest.mark.asyncio
    async def test_qualify_without_selection(self):
        result = await self.adapter.qualify()

        assert not result.success
        assert not result.no_match
        assert isinstance(result.error, ValidationException)
        assert result.notice.level == NoticeLevel.WARNING
        self.api.qualify_report.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_result_from_before_close_not_applied(self):
        """Test that a response issued before close never replaces a newer result."""
        release_first = asyncio.Event()
        calls = []

        async def qualify_report(report_id):
            calls.append(report_id)
            if len(calls) == 1:
                await release_first.wait()
                return [legal_match("old", 0.9, report_id)]
            return []

        self.api.qualify_report.side_effect = qualify_report

        first = asyncio.create_task(self.adapter.qualify("r1"))
        await asyncio.sleep(0)
        self.adapter.close()
        latest = await self.adapter.qualify("r1")
        release_first.set()
        stale = await first

        assert latest.no_match
        assert [m.article_id for m in stale.matches] == ["old"]
        assert self.adapter.matches == []

    @pytest.mark.asyncio
    async def test_later_request_for_same_report_wins(self):
        release_first = asyncio.Event()
        calls = []

        async def qualify_report(report_id):
            calls.append(report_id)
            if len(calls) == 1:
                await release_first.wait()
                return [legal_match("old", 0.4, report_id)]
            return [legal_match("new", 0.7, report_id)]

        self.api.qualify_report.side_effect = qualify_report

        first = asyncio.create_task(self.adapter.qualify("r1"))
        await asyncio.sleep(0)
        await self.adapter.qualify("r1")
        release_first.set()
        await first

        assert [m.article_id for m in self.adapter.matches] == ["new"]
