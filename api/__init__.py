# API module - Clarifai recognition API client
# One client per credential pair, one token refresh per call

from .client import (
    ClarifaiClient, ClientConfig, ClarifaiRequest, JSONRequest, FileRequest,
    Attempt, new_client, UNASSIGNED_TOKEN, ROOT_URL, VERSION
)
from .token import TokenResponse

__all__ = [
    "ClarifaiClient", "ClientConfig", "ClarifaiRequest", "JSONRequest", "FileRequest",
    "Attempt", "new_client", "UNASSIGNED_TOKEN", "ROOT_URL", "VERSION",
    "TokenResponse",
]
