# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
HAL (Hypertext Application Language) response formatting utilities.
Implements HATEOAS responses with conditional affordance links for the
location sharing resources.
"""

from typing import Dict, List, Any, Optional
from urllib.parse import urljoin, urlencode

from geolink.models.responses import HalLink


class HalLinkBuilder:
    """Builder for HAL links with proper URL construction."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/') + '/'

    def build_link(
        self,
        path: str,
        method: str = "GET",
        content_type: Optional[str] = None,
        title: Optional[str] = None,
        templated: bool = False
    ) -> HalLink:
        """Build a HAL link with proper URL construction."""
        href = urljoin(self.base_url, path.lstrip('/'))

        return HalLink(
            href=href,
            method=method,
            type=content_type,
            title=title,
            templated=templated or None
        )

    def build_self_link(self, resource_path: str) -> HalLink:
        """Build self link for a resource."""
        return self.build_link(resource_path, title="Self")

    def build_action_link(
        self,
        path: str,
        title: str,
        method: str = "POST"
    ) -> HalLink:
        """Build a JSON action link."""
        return self.build_link(
            path,
            method=method,
            content_type="application/json",
            title=title
        )


class AffordanceLinkBuilder:
    """Builder for conditional affordance links based on sharing state."""

    def __init__(self, base_url: str):
        self.link_builder = HalLinkBuilder(base_url)

    def build_sharing_affordances(self, sharing: Dict[str, Any]) -> Dict[str, HalLink]:
        """Build links for the caller's own sharing resource."""
        links = {
            'self': self.link_builder.build_self_link("/api/sharing"),
            'notifications': self.link_builder.build_link(
                "/api/notifications",
                title="Drain notifications"
            )
        }

        if sharing.get('enabled'):
            links['stop'] = self.link_builder.build_action_link("/api/sharing", "Stop sharing")
        else:
            links['start'] = self.link_builder.build_action_link("/api/sharing", "Start sharing")

        # Only offered while viewers exist
        if sharing.get('viewers'):
            links['revoke'] = self.link_builder.build_action_link(
                "/api/links/revoke",
                "Revoke a viewer"
            )

        return links

    def build_position_affordances(self, owner: str) -> Dict[str, HalLink]:
        """Build links for a released friend position."""
        query = urlencode({'friendEmail': owner})
        return {
            'self': self.link_builder.build_self_link(f"/api/friend-position?{query}"),
            'notifications': self.link_builder.build_link(
                "/api/notifications",
                title="Drain notifications"
            )
        }


class HalResponseBuilder:
    """Main HAL response builder."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/')
        self.link_builder = HalLinkBuilder(base_url)
        self.affordance_builder = AffordanceLinkBuilder(base_url)

    def build_resource_response(
        self,
        data: Dict[str, Any],
        resource_type: str,
        resource_id: Optional[str] = None
    ) -> Dict[str, Any]:
        """Build a HAL resource response with appropriate affordance links."""
        response = dict(data)

        if resource_type == "sharing":
            links = self.affordance_builder.build_sharing_affordances(data)
        elif resource_type == "position":
            links = self.affordance_builder.build_position_affordances(resource_id or "")
        else:
            path = f"/api/{resource_type}"
            if resource_id:
                path = f"{path}/{resource_id}"
            links = {'self': self.link_builder.build_self_link(path)}

        response['_links'] = {
            rel: link.model_dump(exclude_none=True) for rel, link in links.items()
        }
        return response

    def build_error_response(
        self,
        error_type: str,
        title: str,
        status: int,
        detail: str,
        instance: str,
        validation_errors: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        """Build RFC 7807 compliant error response with HAL links."""
        error_response = {
            'type': f"https://api.geolink.dev/problems/{error_type}",
            'title': title,
            'status': status,
            'detail': detail,
            'instance': instance
        }

        if validation_errors:
            error_response['errors'] = validation_errors

        links = {
            'help': self.link_builder.build_link(
                f"/docs/errors#{error_type}",
                title="Error documentation"
            )
        }

        if error_type == "validation-error":
            links['schema'] = self.link_builder.build_link(
                "/openapi/openapi.json",
                title="API schema"
            )
        elif error_type == "authentication-required":
            links['login'] = self.link_builder.build_action_link("/api/login", "Login")

        error_response['_links'] = {
            rel: link.model_dump(exclude_none=True) for rel, link in links.items()
        }
        return error_response


class HalFormatter:
    """High-level HAL formatter with convenience methods."""

    def __init__(self, base_url: str):
        self.builder = HalResponseBuilder(base_url)

    def format_sharing(self, sharing: Dict[str, Any]) -> Dict[str, Any]:
        """Format the caller's sharing snapshot with HAL links."""
        return self.builder.build_resource_response(sharing, "sharing", sharing.get('owner'))

    def format_position(self, owner: str, position: List[float]) -> Dict[str, Any]:
        """Format a released friend position with HAL links."""
        return self.builder.build_resource_response({"position": position}, "position", owner)

    def format_validation_error(
        self,
        detail: str,
        instance: str,
        validation_errors: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Format a validation error response."""
        return self.builder.build_error_response(
            "validation-error",
            "Validation Error",
            400,
            detail,
            instance,
            validation_errors
        )

    def format_authentication_error(self, detail: str, instance: str) -> Dict[str, Any]:
        """Format an authentication error response."""
        return self.builder.build_error_response(
            "authentication-required",
            "Authentication Required",
            401,
            detail,
            instance
        )

    def format_authorization_error(self, detail: str, instance: str) -> Dict[str, Any]:
        """Format an authorization error response."""
        return self.builder.build_error_response(
            "not-authorized",
            "Not Authorized",
            403,
            detail,
            instance
        )

    def format_not_found_error(self, detail: str, instance: str) -> Dict[str, Any]:
        """Format a not found error response."""
        return self.builder.build_error_response(
            "resource-not-found",
            "Resource Not Found",
            404,
            detail,
            instance
        )

    def format_conflict_error(self, detail: str, instance: str) -> Dict[str, Any]:
        """Format a conflict error response."""
        return self.builder.build_error_response(
            "resource-conflict",
            "Resource Conflict",
            409,
            detail,
            instance
        )

    def format_server_error(self, detail: str, instance: str) -> Dict[str, Any]:
        """Format a server error response."""
        return self.builder.build_error_response(
            "internal-server-error",
            "Internal Server Error",
            500,
            detail,
            instance
        )


def create_hal_formatter(base_url: str) -> HalFormatter:
    """Create a HAL formatter instance."""
    return HalFormatter(base_url)
