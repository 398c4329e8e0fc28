# SPDX-License-Identifier: Apache-2.0

"""
Location sharing endpoints.

This module implements the link handshake (request, approve, stop, revoke),
the notification drain, the caller's own sharing toggle and the
authorization-checked friend position read.
"""

from flask import jsonify, current_app, g
from flask_openapi3 import APIBlueprint, Tag
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
import logging

from geolink.models.entities import SharingSnapshot
from geolink.models.requests import (
    LinkRequestBody, SharePositionRequest, SharingToggleRequest,
    RevokeLinkRequest, FriendPositionQuery, LinkStateQuery
)
from geolink.models.responses import MessageResponse, PositionResponse, SharingResponse, ErrorResponse
from geolink.middleware.auth import require_auth
from geolink.middleware.validation import validate_json, validate_query

# Set up logging and tracing
logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# Create API blueprint
links_tag = Tag(name="Location Sharing", description="Consent handshake and position release")
links_bp = APIBlueprint(
    'links',
    __name__,
    url_prefix='/api',
    abp_tags=[links_tag]
)


def _sharing_payload(owner: str, snapshot):
    """Caller's sharing payload; an account that never shared reports the defaults."""
    if snapshot is None:
        snapshot = SharingSnapshot(owner=owner, enabled=False)
    return current_app.hal_formatter.format_sharing(snapshot.to_payload())


@links_bp.post('/link-request', responses={200: MessageResponse, 400: ErrorResponse, 404: ErrorResponse})
@require_auth
@validate_json(LinkRequestBody)
def request_link(data: LinkRequestBody):
    """
    Ask another account for permission to see its position.

    The target receives a link request on its next notification drain.
    Repeated calls queue repeated requests.
    """
    user_context = g.user_context

    with tracer.start_as_current_span(
        "links.request",
        attributes={"account.email": user_context.account, "links.target": data.to_email}
    ) as span:
        current_app.consent_coordinator.request_link(user_context.account, data.to_email)

        span.set_status(Status(StatusCode.OK))
        return jsonify({"message": "Link request sent"}), 200


@links_bp.get('/notifications')
@require_auth
def drain_notifications():
    """
    Drain the caller's mailbox.

    Every queued record is returned once, oldest first, and removed.
    """
    user_context = g.user_context

    with tracer.start_as_current_span(
        "links.notifications",
        attributes={"account.email": user_context.account}
    ) as span:
        messages = current_app.mailbox.drain_all(user_context.account)

        span.set_attribute("notifications.count", len(messages))
        return jsonify([message.to_payload() for message in messages]), 200


@links_bp.post('/share-position', responses={200: MessageResponse, 400: ErrorResponse, 404: ErrorResponse})
@require_auth
@validate_json(SharePositionRequest)
def share_position(data: SharePositionRequest):
    """
    Approve a link request (``sharing=true``) or stop sharing with a viewer.

    Approval turns the caller's sharing on, records the supplied position,
    authorizes the viewer and notifies it. Stopping turns sharing off and
    removes the viewer; the last position is kept.
    """
    user_context = g.user_context
    coordinator = current_app.consent_coordinator

    with tracer.start_as_current_span(
        "links.share_position",
        attributes={
            "account.email": user_context.account,
            "links.viewer": data.to_email,
            "links.sharing": data.sharing
        }
    ) as span:
        if data.sharing:
            coordinator.approve(user_context.account, data.to_email, data.position)
            message = "Started sharing"
        else:
            coordinator.stop_sharing(user_context.account, data.to_email, data.position)
            message = "Stopped sharing"

        span.set_status(Status(StatusCode.OK))
        return jsonify({"message": message}), 200


@links_bp.post('/links/revoke', responses={200: MessageResponse})
@require_auth
@validate_json(RevokeLinkRequest)
def revoke_link(data: RevokeLinkRequest):
    """
    Remove a viewer from the caller's authorized set.

    Idempotent; the viewer is not notified.
    """
    user_context = g.user_context

    removed = current_app.consent_coordinator.revoke(user_context.account, data.viewer_email)

    return jsonify({
        "message": "Viewer revoked" if removed else "Viewer was not authorized",
        "revoked": removed
    }), 200


@links_bp.get('/sharing', responses={200: SharingResponse})
@require_auth
def get_sharing():
    """Return the caller's sharing state with links for the available actions."""
    owner = g.user_context.account
    snapshot = current_app.sharing_registry.snapshot(owner)
    return jsonify(_sharing_payload(owner, snapshot)), 200


@links_bp.post('/sharing', responses={200: SharingResponse, 400: ErrorResponse})
@require_auth
@validate_json(SharingToggleRequest)
def set_sharing(data: SharingToggleRequest):
    """
    Turn the caller's own sharing on or off and optionally report a position.

    Viewer membership is left untouched.
    """
    owner = g.user_context.account

    with tracer.start_as_current_span(
        "links.set_sharing",
        attributes={"account.email": owner, "sharing.enabled": data.enabled}
    ):
        snapshot = current_app.consent_coordinator.set_own_sharing(owner, data.enabled, data.position)
        return jsonify(_sharing_payload(owner, snapshot)), 200


@links_bp.get('/link-state', responses={404: ErrorResponse})
@require_auth
@validate_query(LinkStateQuery)
def get_link_state(params: LinkStateQuery):
    """
    Report the caller's link with another account.

    ``no_relation``, ``requested`` or ``approved``. Advisory under concurrent
    traffic.
    """
    requester = g.user_context.account
    state = current_app.consent_coordinator.link_state(requester, params.target_email)

    return jsonify({
        "requester": requester,
        "target": params.target_email,
        "state": state.value
    }), 200


@links_bp.get('/friend-position', responses={200: PositionResponse, 403: ErrorResponse, 404: ErrorResponse})
@require_auth
@validate_query(FriendPositionQuery)
def get_friend_position(params: FriendPositionQuery):
    """
    Read another account's last reported position.

    Released only while that account shares and has authorized the caller.
    """
    viewer = g.user_context.account

    with tracer.start_as_current_span(
        "links.friend_position",
        attributes={"account.email": viewer, "links.owner": params.friend_email}
    ) as span:
        position = current_app.position_gate.read_position(viewer, params.friend_email)

        span.set_status(Status(StatusCode.OK))
        return jsonify(
            current_app.hal_formatter.format_position(params.friend_email, position.as_pair())
        ), 200
