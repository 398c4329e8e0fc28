# SPDX-License-Identifier: Apache-2.0

"""
Geolink - consent-based live location sharing API.
"""

__version__ = "1.0.0"
