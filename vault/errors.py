# vault/errors.py

"""
Error taxonomy shared by the key vault, the signer and the gateway handler.

Every error carries the JSON-RPC code the transport reports and the message a
caller is allowed to see. Internal failures keep their detail in ``str(e)``
(and in the chained cause) for the logs, while ``public_message`` stays generic.
"""

INTERNAL_ERROR_MESSAGE = "internal error"


class VaultError(Exception):
    rpc_code = -32603
    public_message = INTERNAL_ERROR_MESSAGE

    def to_rpc_error(self):
        return {"code": self.rpc_code, "message": self.public_message}


class UnauthenticatedError(VaultError):
    rpc_code = -32001
    public_message = "unauthenticated"


class StorageError(VaultError):
    pass


class DuplicateUserError(VaultError):
    """Raised by KeyManager.create when a record for the user already exists."""

    def __init__(self, user_id):
        super().__init__(f"Record already exists for user ID: {user_id}")
        self.user_id = user_id


class KeyGenerationError(VaultError):
    pass


class InvalidParamsError(VaultError):
    rpc_code = -32602

    @property
    def public_message(self):
        return str(self)


class SigningError(InvalidParamsError):
    pass


class MethodNotFoundError(VaultError):
    rpc_code = -32601

    def __init__(self, method):
        super().__init__(f"Method not found: {method}")
        self.method = method

    @property
    def public_message(self):
        return str(self)


class UpstreamError(VaultError):
    """
    Application-level error returned by the upstream node. The code and message
    are passed through to the caller untouched.
    """

    def __init__(self, code, message, data=None):
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
        self.data = data

    def to_rpc_error(self):
        error = {"code": self.code, "message": self.message}
        if self.data is not None:
            error["data"] = self.data
        return error


class UpstreamUnavailableError(VaultError):
    rpc_code = -32002
    public_message = "upstream node unavailable"


class RequestTimeoutError(VaultError):
    rpc_code = -32003
    public_message = "request timed out"
