# vault/server/app.py

import json
import logging

from quart import Quart, jsonify, request

from ..errors import VaultError, INTERNAL_ERROR_MESSAGE
from .middleware import BadBodyError, install_access_log, limit_concurrency, read_body

logger = logging.getLogger(__name__)

USER_HEADER = "X-Auth-User"

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603


def _error(request_id, code, message):
    return jsonify({"jsonrpc": "2.0", "id": request_id, "error": {"code": code, "message": message}})


def _params(raw):
    if raw is None:
        return {}
    if isinstance(raw, list) and len(raw) == 1:
        raw = raw[0]
    if not isinstance(raw, dict):
        raise ValueError("params must be an object or a one-element array")
    return raw


def create_app(handler, max_connections=200):
    """
    Builds the caller-facing JSON-RPC app around a ThetaRPCHandler. The auth
    proxy in front of the gateway identifies the caller in the X-Auth-User
    header; requests without it are rejected by the handler.
    """
    app = Quart(__name__)
    install_access_log(app)

    @app.route('/health', methods=['GET'])
    async def health_check():
        return jsonify({'status': 'healthy'}), 200

    @app.route('/rpc', methods=['POST'])
    @limit_concurrency(max_connections)
    async def rpc():
        try:
            body = await read_body()
        except BadBodyError as e:
            logger.warning(f"[rpc] {e}")
            return jsonify({'error': str(e)}), e.status_code

        try:
            payload = json.loads(body)
        except (ValueError, UnicodeDecodeError):
            return _error(None, PARSE_ERROR, "parse error")

        if not isinstance(payload, dict) or not isinstance(payload.get("method"), str):
            return _error(None, INVALID_REQUEST, "invalid request")

        request_id = payload.get("id")
        method = payload["method"]
        user_id = request.headers.get(USER_HEADER)
        try:
            params = _params(payload.get("params"))
        except ValueError as e:
            return _error(request_id, INVALID_PARAMS, str(e))

        try:
            result = await handler.dispatch(method, user_id, params)
        except VaultError as e:
            if e.rpc_code == INTERNAL_ERROR:
                logger.error(f"[{method}] user={user_id} failed: {e}")
            else:
                logger.info(f"[{method}] user={user_id} rejected: {e}")
            return jsonify({"jsonrpc": "2.0", "id": request_id, "error": e.to_rpc_error()})
        except Exception as e:
            logger.exception(f"[{method}] user={user_id} unhandled error: {e}")
            return _error(request_id, INTERNAL_ERROR, INTERNAL_ERROR_MESSAGE)

        return jsonify({"jsonrpc": "2.0", "id": request_id, "result": result})

    return app
