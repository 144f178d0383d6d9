"""
This module provides the communication client for the commerce API used by the order workflow:
- Cart / order / payment endpoints (signed REST API, via the `ovh` SDK)
The SDK handles endpoint resolution, clock synchronisation and request signing.
This wrapper adds logging and maps SDK errors onto the workflow's error taxonomy.
The workflow only sees `post(path, body)` and `get(path)`.
"""

import logging
from typing import Any, Optional

import ovh
import ovh.exceptions

from .config import ApiCredentials
from .errors import ApiError, ConfigurationError, ResponseShapeError

log = logging.getLogger(__name__)


def _error_message(error: ovh.exceptions.APIError) -> str:
    # HTTPError wraps the underlying requests exception as second argument
    parts = [str(arg) for arg in error.args if arg is not None and str(arg)]
    return ": ".join(parts) or type(error).__name__


def _status_code(error: ovh.exceptions.APIError) -> Optional[int]:
    response = getattr(error, "response", None)
    return getattr(response, "status_code", None)


# --- Commerce API Client (signed REST) ---
class OvhApiClient:
    """
    Client for the signed commerce API.
    Wraps an `ovh.Client` and translates its exceptions into `ApiError`/`ResponseShapeError`.
    """
    def __init__(self, credentials: ApiCredentials, ovh_client: Optional[ovh.Client] = None):
        """
        Initializes the SDK client.

        Args:
            credentials (ApiCredentials): Endpoint and application credentials.
            ovh_client (ovh.Client): Optional preconfigured SDK client.

        Raises:
            ConfigurationError: If the SDK rejects the endpoint (unknown region).
        """
        if ovh_client is None:
            try:
                ovh_client = ovh.Client(
                    endpoint=credentials.endpoint,
                    application_key=credentials.application_key,
                    application_secret=credentials.application_secret,
                    consumer_key=credentials.consumer_key,
                )
            except ovh.exceptions.APIError as e:
                raise ConfigurationError(f"cannot create API client for endpoint "
                                         f"'{credentials.endpoint}': {_error_message(e)}") from e
        self.client = ovh_client

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self):
        """Closes the SDK's HTTP session, if it has one."""
        session = getattr(self.client, "_session", None)
        if session is not None:
            session.close()

    def get(self, path: str) -> Any:
        """Sends a signed GET request and returns the decoded JSON response."""
        return self._send("GET", path, lambda: self.client.get(path))

    def post(self, path: str, body: Optional[dict] = None) -> Any:
        """
        Sends a signed POST request.

        Args:
            path (str): API path, e.g. '/order/cart'.
            body (dict): JSON payload, or None for a call without parameters.

        Returns:
            The decoded JSON response.

        Raises:
            ApiError: If the request fails or the API rejects it.
            ResponseShapeError: If the API answers with something that is not JSON.
        """
        return self._send("POST", path, lambda: self.client.post(path, **(body or {})))

    def _send(self, method, path, call):
        log.debug(f"{method} {path}")
        try:
            return call()
        except ovh.exceptions.InvalidResponse as e:
            raise ResponseShapeError(f"{method} {path} returned a body that is not JSON") from e
        except ovh.exceptions.HTTPError as e:
            # Netzwerkfehler, Timeout, Redirect-Schleife: Status der Anfrage unbekannt.
            message = _error_message(e)
            log.error(f"API nicht erreichbar bei {method} {path}: {message}")
            raise ApiError(message, method=method, path=path) from e
        except ovh.exceptions.APIError as e:
            status = _status_code(e)
            message = _error_message(e)
            log.error(f"API-Fehler {status} bei {method} {path}: {message}")
            raise ApiError(message, status_code=status, method=method, path=path) from e
