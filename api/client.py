"""
Clarifai API Client
-------------------
Authenticated client for the Clarifai v1 recognition API.

Rules:
- Tokens come from the client-credentials exchange only
- An expired token is refreshed and the call retried exactly once
- Every other failure is raised to the caller unchanged
- Local file paths never leave the machine
"""

from contextlib import ExitStack
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Sequence, Tuple, Union
from urllib.parse import urlencode
import json
import threading

import httpx

from core.errors import (
    ErrorCategory, RetryPolicy, error_for_status,
    FileUploadError, SerializationError, TokenInvalidError, TransportError,
)
from infra.logging import CallContext, get_logger

from .token import TokenResponse


VERSION = "v1"
ROOT_URL = "https://api.clarifai.com"

# Value of access_token before the first exchange
UNASSIGNED_TOKEN = "unasigned"

UPLOAD_FIELD = "encoded_data"
OPERATION_FIELD = "op"


class Attempt(Enum):
    """Position of a dispatch within one logical call."""
    FIRST = 0
    RETRIED = 1


@dataclass
class ClientConfig:
    """Configuration for a Clarifai client."""
    api_root: str = ROOT_URL
    version: str = VERSION
    timeout_seconds: Optional[float] = None  # None blocks until the transport returns
    user_agent: str = "clarifai-python-client/1.0"
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class JSONRequest:
    """A JSON-encoded request to an endpoint."""
    endpoint: str
    body: Any = None
    verb: str = "POST"


@dataclass(frozen=True)
class FileRequest:
    """A multipart upload of local files; always sent as POST."""
    endpoint: str
    files: Tuple[str, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "files", tuple(str(f) for f in self.files))


ClarifaiRequest = Union[JSONRequest, FileRequest]


class ClarifaiClient:
    """
    One authenticated session with the Clarifai API.

    No network traffic happens at construction; the first request goes out
    with the unassigned token and a 401 triggers the first real exchange.
    Token and throttle state are lock-guarded so a client can be shared
    between threads.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        config: Optional[ClientConfig] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._client_id = client_id
        self._client_secret = client_secret
        self.config = config or ClientConfig()

        self._lock = threading.Lock()
        self._access_token = UNASSIGNED_TOKEN
        self._api_root = self.config.api_root
        self._throttled = False

        self._logger = get_logger("api.client")
        self._http = httpx.Client(
            transport=transport,
            timeout=self.config.timeout_seconds,
            headers={"User-Agent": self.config.user_agent, **self._default_headers()},
        )

    def _default_headers(self) -> Dict[str, str]:
        """Config headers minus Content-Type, which each dispatch sets itself."""
        return {
            name: value for name, value in self.config.headers.items()
            if name.lower() != "content-type"
        }

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def client_secret(self) -> str:
        return self._client_secret

    @property
    def access_token(self) -> str:
        with self._lock:
            return self._access_token

    def set_access_token(self, token: str) -> None:
        with self._lock:
            self._access_token = token

    @property
    def api_root(self) -> str:
        with self._lock:
            return self._api_root

    def set_api_root(self, root: str) -> None:
        """Point the client at another server, e.g. a test double."""
        with self._lock:
            self._api_root = root

    @property
    def throttled(self) -> bool:
        with self._lock:
            return self._throttled

    def set_throttle(self, throttled: bool) -> None:
        with self._lock:
            self._throttled = throttled

    def build_url(self, endpoint: str) -> str:
        """Join root, API version and endpoint with '/'."""
        return "/".join([self.api_root, self.config.version, endpoint])

    def _auth_header(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.access_token}"}

    # ------------------------------------------------------------------
    # Token acquisition
    # ------------------------------------------------------------------

    def request_access_token(self) -> TokenResponse:
        """
        Exchange the client credentials for a new access token.

        The current (possibly unassigned) token is still sent as the bearer.
        Raises TransportError or TokenDecodeError; the stored token is only
        replaced when the exchange decodes cleanly.
        """
        form = urlencode({
            "grant_type": "client_credentials",
            "client_id": self._client_id,
            "client_secret": self._client_secret,
        }).encode("ascii")

        headers = {
            **self._auth_header(),
            "Content-Length": str(len(form)),
            "Content-Type": "application/x-www-form-urlencoded",
        }

        self._logger.debug("Requesting access token")
        try:
            response = self._http.post(self.build_url("token"), content=form, headers=headers)
        except httpx.RequestError as e:
            self._logger.warning(f"Token request failed: {e}")
            raise TransportError(f"Token request failed: {e}", details={"endpoint": "token"}) from e

        token = TokenResponse.from_json(response.content)
        self.set_access_token(token.access_token)
        self._logger.info(f"Acquired access token (expires in {token.expires_in}s)")
        return token

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    def json_request(self, endpoint: str, body: Any = None, verb: str = "POST") -> bytes:
        """Send a JSON body to an endpoint and return the raw response body."""
        return self.send(JSONRequest(endpoint, body, verb))

    def file_request(self, endpoint: str, files: Sequence[str]) -> bytes:
        """Upload files to an endpoint and return the raw response body."""
        return self.send(FileRequest(endpoint, tuple(files)))

    def send(self, request: ClarifaiRequest, attempt: Attempt = Attempt.FIRST) -> bytes:
        """Dispatch a request descriptor, refreshing the token once on 401."""
        with CallContext():
            if isinstance(request, JSONRequest):
                response = self._send_json(request)
            elif isinstance(request, FileRequest):
                response = self._send_files(request)
            else:
                raise TypeError(f"Unsupported request type: {type(request).__name__}")

            return self._handle_response(response, request, attempt)

    def _send_json(self, request: JSONRequest) -> httpx.Response:
        payload = {} if request.body is None else request.body

        try:
            body = json.dumps(payload).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise SerializationError(
                f"Could not encode body for '{request.endpoint}': {e}",
                details={"endpoint": request.endpoint},
            ) from e

        headers = {
            "Content-Type": "application/json",
            "Content-Length": str(len(body)),
            **self._auth_header(),
        }

        self._logger.debug(
            f"{request.verb} {request.endpoint} ({len(body)} bytes)",
            extra={"endpoint": request.endpoint},
        )
        try:
            return self._http.request(
                request.verb, self.build_url(request.endpoint), content=body, headers=headers
            )
        except httpx.RequestError as e:
            raise TransportError(
                f"{request.verb} '{request.endpoint}' failed: {e}",
                details={"endpoint": request.endpoint},
            ) from e

    def _send_files(self, request: FileRequest) -> httpx.Response:
        with ExitStack() as stack:
            parts = []
            for idx, path in enumerate(request.files):
                try:
                    handle = stack.enter_context(open(path, "rb"))
                except OSError as e:
                    raise FileUploadError(
                        f"Cannot open upload file #{idx}: {e.strerror}",
                        details={"endpoint": request.endpoint, "index": idx},
                    ) from e
                # The part is named by position so the local path is never sent
                parts.append((UPLOAD_FIELD, (str(idx), handle, "application/octet-stream")))

            file_count = len(parts)
            # Sent as a part, not form data, so the body is multipart even with no files
            parts.append((OPERATION_FIELD, (None, request.endpoint.encode("utf-8"))))

            self._logger.debug(
                f"POST {request.endpoint} with {file_count} file(s)",
                extra={"endpoint": request.endpoint, "file_count": file_count},
            )
            try:
                return self._http.post(
                    self.build_url(request.endpoint),
                    files=parts,
                    headers=self._auth_header(),
                )
            except httpx.RequestError as e:
                raise TransportError(
                    f"Upload to '{request.endpoint}' failed: {e}",
                    details={"endpoint": request.endpoint},
                ) from e
            except OSError as e:
                raise FileUploadError(
                    f"Reading upload files failed: {e.strerror}",
                    details={"endpoint": request.endpoint},
                ) from e

    # ------------------------------------------------------------------
    # Response interpretation
    # ------------------------------------------------------------------

    def _handle_response(
        self,
        response: httpx.Response,
        request: ClarifaiRequest,
        attempt: Attempt,
    ) -> bytes:
        status = response.status_code
        extra = {"endpoint": request.endpoint, "status_code": status, "attempt": attempt.name}

        if status in (200, 201):
            with self._lock:
                if self._throttled:
                    self._throttled = False
                    self._logger.info("Throttle cleared", extra=extra)
            return response.content

        if status == 401:
            if RetryPolicy.should_retry(ErrorCategory.AUTH_EXPIRED, attempt.value):
                self._logger.info(
                    f"Unauthorized on '{request.endpoint}', refreshing token", extra=extra
                )
                self.request_access_token()
                return self.send(request, Attempt.RETRIED)

            self._logger.warning(f"Token rejected after refresh on '{request.endpoint}'", extra=extra)
            raise TokenInvalidError(status, request.endpoint, response.text)

        if status == 429:
            self.set_throttle(True)
            self._logger.warning(f"Throttled on '{request.endpoint}'", extra=extra)
        else:
            self._logger.debug(f"HTTP {status} on '{request.endpoint}'", extra=extra)

        raise error_for_status(status, request.endpoint, response.text)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ClarifaiClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()


def new_client(client_id: str, client_secret: str) -> ClarifaiClient:
    """Create a client for the production API."""
    return ClarifaiClient(client_id, client_secret)
