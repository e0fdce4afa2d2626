# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Domain services layer for StudySync.

Domains:
    resources: Client-side synchronization of documents, videos, forum
        posts, study events, admin users and the dashboard aggregate.
"""
