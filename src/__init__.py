"""StudySync client data layer.

Asynchronous resource synchronization for the StudySync learning platform:
fetching, paginating and mutating documents, videos, forum posts, study
events and the dashboard aggregate while keeping them consistent.

Copyright (C) 2025 Global Digital Labs (gdlabs.io)
SPDX-License-Identifier: LGPL-3.0-or-later
"""

__version__ = "1.0.0"
