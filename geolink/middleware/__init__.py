# SPDX-License-Identifier: Apache-2.0

"""
Middleware package for request processing.

This package contains middleware components for authentication, request
validation, CORS and error formatting in the Geolink API.
"""
