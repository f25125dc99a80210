"""
The guard's own endpoints.

These are called by the Engine (session verifier, attribute consumer) or by
the user's browser on the way back from the Engine (podder), and are always
let through by the guard. An extension with its own logout path can route it
to :func:`logout`.
"""

from typing import Any, Tuple

from flask import Blueprint, Response, current_app, jsonify, \
    make_response, redirect, request
from werkzeug.exceptions import BadRequest, HTTPException, NotFound

from .attributes import ATTRIBUTES_PARAM
from .exceptions import AttributeDecodeError, MalformedTargetURIError, \
    UnknownSessionError
from .extensions import LOGOUT_PATH
from .passthru import ATTRIBUTE_CONSUMER_PATH, PODDER_PATH, \
    SESSION_VERIFIER_PATH

import logging

logger = logging.getLogger(__name__)
blueprint = Blueprint('guard', __name__, url_prefix='')

SESSION_ID_PARAM = 'sessionid'
PODDER_ID_PARAM = 'id'
DYNAMIC_DOMAIN_PARAM = 'dynamicDomainNameRequest'
GUARD_ID_HEADER = 'X-Guard-ID'
VERIFIED = 'verified'
NOT_VERIFIED = 'notverified'
NO_HOST_NAME = 'nohostnamefound'


def _guard() -> Any:
    return current_app.config['sp_guard.Guard']


def _text(body: str, status: int = 200) -> Response:
    response = make_response(body, status)
    response.mimetype = 'text/plain'
    return response


@blueprint.errorhandler(HTTPException)
def jsonify_exception(error: HTTPException) -> Tuple[Response, int]:
    """Render HTTP errors from the guard endpoints as JSON."""
    return jsonify(reason=error.description), error.code or 500


@blueprint.route(f'/{ATTRIBUTE_CONSUMER_PATH}', methods=['GET', 'POST'])
def attribute_consumer() -> Response:
    """Bind the attributes delivered by the Engine, respond with the ID."""
    try:
        pod, bag = _guard().binder.consume(request.values.get(ATTRIBUTES_PARAM))
    except AttributeDecodeError as e:
        logger.error('Error receiving attributes from Engine: %s', e)
        raise BadRequest(str(e)) from e
    except MalformedTargetURIError as e:
        logger.error('Error creating pod for unsolicited bag: %s', e)
        raise BadRequest(str(e)) from e
    except UnknownSessionError as e:
        logger.error('Attributes for unknown session: %s', e)
        raise NotFound(str(e)) from e
    return _text(pod.session_id)


@blueprint.route(f'/{SESSION_VERIFIER_PATH}', methods=['GET', 'POST'])
def session_verifier() -> Response:
    """
    Tell the Engine whether a session is one of ours.

    With ``dynamicDomainNameRequest``, respond with the host name the Pod was
    created on instead, so the Engine knows which tenant it is talking to.
    """
    guard = _guard()
    session_id = request.values.get(SESSION_ID_PARAM)
    pod = guard.store.get(session_id)
    if DYNAMIC_DOMAIN_PARAM in request.values:
        if pod is None:
            logger.debug('No dynamic domain for session %s', session_id)
            response = _text(NO_HOST_NAME)
        else:
            logger.debug('Dynamic domain of %s is %s', session_id,
                         pod.host_name)
            response = _text(pod.host_name)
    else:
        response = _text(VERIFIED if pod is not None else NOT_VERIFIED)
    response.headers[GUARD_ID_HEADER] = guard.guard_id()
    return response


@blueprint.route(f'/{PODDER_PATH}', methods=['GET'])
def podder() -> Response:
    """Set the guard cookie, and send the user on to where they started."""
    guard = _guard()
    session_id = request.args.get(PODDER_ID_PARAM)
    pod = guard.store.get(session_id)
    if pod is None:
        logger.error('Podder called for unknown session %s', session_id)
        raise NotFound('No such session')
    response = make_response(redirect(pod.original_url, code=303))
    guard.cookies.set(response, request, pod.session_id,
                      secure=pod.request_scheme == 'https')
    return response


@blueprint.route(f'/{LOGOUT_PATH}', methods=['GET', 'POST'])
def logout() -> Response:
    """Drop the user's Pod and cookie."""
    guard = _guard()
    binding = guard.cookies.bind(request)
    guard.deactivate(binding.pod)
    response = _text('logged out')
    guard.cookies.expire(response, request)
    return response
