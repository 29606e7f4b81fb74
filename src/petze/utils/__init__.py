# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Utility exports."""

from .context import CertificateWarning, FaultRecorder, get_fault_recorder, recording

__all__ = [
    "CertificateWarning",
    "FaultRecorder",
    "get_fault_recorder",
    "recording",
]
