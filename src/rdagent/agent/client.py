"""
Control Plane Client

Completes a partially populated entity by posting it to the entity's own
``api_url``. The server answers with the same document shape, fully
populated.
"""

from typing import Optional, TypeVar

import requests
from pydantic import BaseModel
from pydantic import ValidationError as SchemaError

from ..utils.exceptions import DecodeError, NetworkError, ServerError
from ..utils.http import StandardClient
from ..utils.logging import get_logger

logger = get_logger(__name__)

EntityT = TypeVar("EntityT", bound=BaseModel)


class ControlPlaneClient:
    """
    Request/response exchange with the fleet control plane.

    There is no retry here. The resolver treats any failure as fatal, so a
    retry policy belongs to whoever restarts the agent.
    """

    def __init__(self, http: Optional[StandardClient] = None, timeout: Optional[float] = None):
        self.http = http or StandardClient(timeout=timeout)

    def fetch(self, entity: EntityT) -> EntityT:
        """
        POST ``entity`` to ``entity.api_url`` and parse the completed entity.

        Raises:
            NetworkError: transport failure or no URL to post to
            ServerError: non-success HTTP status
            DecodeError: response body is not a valid entity document
        """
        model = type(entity)
        url = getattr(entity, "api_url", "")
        if not url:
            raise NetworkError(f"No API URL to fetch {model.__name__} from")

        try:
            response = self.http.post(url, json=entity.model_dump(mode="json"))
        except requests.exceptions.RequestException as e:
            logger.error(f"Network Error: {e}")
            raise NetworkError(f"Failed to reach control plane at {url}: {e}") from e

        if not response.ok:
            logger.error(f"HTTP Error: {response.status_code} - {response.text}")
            raise ServerError(
                f"Control plane returned {response.status_code} for {model.__name__}",
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise DecodeError(f"Response from {url} is not JSON: {e}") from e

        if not isinstance(data, dict):
            raise DecodeError(f"Expected a {model.__name__} object from {url}")

        try:
            return model.model_validate(data)
        except SchemaError as e:
            raise DecodeError(f"Invalid {model.__name__} from {url}: {e}") from e

    def close(self):
        self.http.close()
