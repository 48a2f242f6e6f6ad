# SPDX-License-Identifier: Apache-2.0

"""
Domain logic package for the OpenVote dashboard.

This package contains pure functions with no side effects: capability policy,
triage rules, report filtering, statistics and display labels.
"""
