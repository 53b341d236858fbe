# ctxdeck — Context & Job Deck for the Terminal
# Copyright (c) 2025
# TriFactoria (Andrew Blankfield)
#
# Licensed under the Business Source License 1.1 (BSL 1.1).
# You may use, modify, and redistribute this file under the terms of the BSL.
# On the Change Date (2029-01-01), this file will be licensed under
# the Apache License, Version 2.0.

"""
ctxdeck core package.

Named contexts (jobs) bundle shell command templates and variables; ctxdeck
switches between them or runs them, records the results, and offers a
two-panel terminal interface over the lot.
"""
from .kernel import Kernel as Kernel  # noqa: F401 (re-export)

__version__ = "0.1.0"
