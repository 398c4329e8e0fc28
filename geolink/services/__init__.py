# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Services package - in-memory stores, coordination and external integrations.
"""
