"""
Keyspaces Client - aiohttp implementation of TableAPI.

Speaks the AWS JSON 1.0 protocol: every call is a POST to the service
endpoint with the operation named in the X-Amz-Target header. Throttling
and server-side failures are retried with exponential backoff and jitter;
everything else is surfaced to the caller as NotFoundError or APIError.
"""

import asyncio
import json
import logging
import random
from typing import Any, Dict, List, Optional, Tuple

import aiohttp
import botocore.session
from botocore.auth import SigV4Auth
from botocore.awsrequest import AWSRequest
from botocore.credentials import Credentials

from clients.base import TableAPI
from config import APIConfig
from errors import APIError, NotFoundError
from models import flatten_tags

logger = logging.getLogger(__name__)

SIGNING_NAME = "cassandra"
TARGET_PREFIX = "KeyspacesService"
CONTENT_TYPE = "application/x-amz-json-1.0"
NOT_FOUND_CODE = "ResourceNotFoundException"
RETRYABLE_CODES = {"ThrottlingException", "InternalServerException"}


class KeyspacesClient(TableAPI):
    """
    Client for the Keyspaces control-plane API.

    Requests are SigV4-signed with credentials from the standard botocore
    chain (environment, shared config, instance role) unless explicit
    credentials are given. When auth_token is set, a bearer token is sent
    instead, for endpoints that front the service with token auth.
    """

    def __init__(
        self,
        endpoint_url: str,
        region: str = "us-east-1",
        credentials: Optional[Credentials] = None,
        auth_token: str = "",
        request_timeout: int = 30,
        max_retries: int = 3,
        retry_base_delay: float = 1.0,
        retry_max_delay: float = 20.0,
        jitter_factor: float = 0.1,  # ±10% jitter
    ):
        self.endpoint_url = endpoint_url.rstrip("/")
        self.region = region
        self.credentials = credentials
        self.auth_token = auth_token
        self.request_timeout = request_timeout
        self.max_retries = max_retries
        self.retry_base_delay = retry_base_delay
        self.retry_max_delay = retry_max_delay
        self.jitter_factor = jitter_factor

    @classmethod
    def from_config(cls, api_config: APIConfig) -> "KeyspacesClient":
        """Create a client from an APIConfig."""
        return cls(
            endpoint_url=api_config.endpoint_url,
            region=api_config.region,
            auth_token=api_config.auth_token,
            request_timeout=api_config.request_timeout,
            max_retries=api_config.max_retries,
            retry_base_delay=api_config.retry_base_delay,
        )

    # TableAPI

    async def create_table(self, request: Dict[str, Any]) -> Dict[str, Any]:
        return await self._call("CreateTable", request)

    async def update_table(self, request: Dict[str, Any]) -> Dict[str, Any]:
        return await self._call("UpdateTable", request)

    async def delete_table(self, keyspace_name: str, table_name: str) -> None:
        await self._call(
            "DeleteTable", {"keyspaceName": keyspace_name, "tableName": table_name}
        )

    async def get_table(self, keyspace_name: str, table_name: str) -> Dict[str, Any]:
        return await self._call(
            "GetTable", {"keyspaceName": keyspace_name, "tableName": table_name}
        )

    async def list_tags(self, arn: str) -> Dict[str, str]:
        tags: Dict[str, str] = {}
        next_token: Optional[str] = None

        while True:
            payload: Dict[str, Any] = {"resourceArn": arn}
            if next_token:
                payload["nextToken"] = next_token

            output = await self._call("ListTagsForResource", payload)
            tags.update(flatten_tags(output.get("tags")))

            next_token = output.get("nextToken")
            if not next_token:
                return tags

    async def tag_resource(self, arn: str, tags: List[Dict[str, str]]) -> None:
        await self._call("TagResource", {"resourceArn": arn, "tags": tags})

    async def untag_resource(self, arn: str, tags: List[Dict[str, str]]) -> None:
        await self._call("UntagResource", {"resourceArn": arn, "tags": tags})

    # Private helper methods

    def _get_headers(self, operation: str, data: str) -> Dict[str, str]:
        """Get signed HTTP headers for an API call."""
        headers = {
            "Content-Type": CONTENT_TYPE,
            "X-Amz-Target": f"{TARGET_PREFIX}.{operation}",
        }
        if self.auth_token:
            headers["Authorization"] = f"Bearer {self.auth_token}"
            return headers

        request = AWSRequest(
            method="POST", url=f"{self.endpoint_url}/", data=data, headers=headers
        )
        SigV4Auth(self._get_credentials(), SIGNING_NAME, self.region).add_auth(request)
        return dict(request.headers.items())

    def _get_credentials(self) -> Credentials:
        """Resolve AWS credentials once, from the botocore provider chain."""
        if self.credentials is None:
            credentials = botocore.session.get_session().get_credentials()
            if credentials is None:
                raise APIError(
                    "Unable to locate AWS credentials", code="CredentialsError"
                )
            self.credentials = credentials
        return self.credentials

    def _backoff_delay(self, attempt: int) -> float:
        """Exponential backoff capped at retry_max_delay, with jitter."""
        delay = min(self.retry_base_delay * (2**attempt), self.retry_max_delay)
        return delay * (1 + (random.random() * 2 - 1) * self.jitter_factor)

    async def _post(
        self, operation: str, payload: Dict[str, Any]
    ) -> Tuple[int, Dict[str, Any]]:
        """Send one request and return (status, decoded body)."""
        timeout = aiohttp.ClientTimeout(total=self.request_timeout)
        data = json.dumps(payload)
        headers = self._get_headers(operation, data)

        async with aiohttp.ClientSession(timeout=timeout) as session:
            async with session.post(
                f"{self.endpoint_url}/",
                headers=headers,
                data=data,
            ) as response:
                text = await response.text()

        try:
            body = json.loads(text) if text else {}
        except ValueError:
            body = {"message": text}
        return response.status, body

    async def _call(self, operation: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Call an API operation, retrying throttling and server errors.

        Raises:
            NotFoundError: If the service reports the resource is missing.
            APIError: For any other rejection, or once retries are exhausted.
        """
        attempt = 0

        while True:
            logger.debug(f"{operation} request: {payload}")
            try:
                status, body = await self._post(operation, payload)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                error = APIError(
                    f"{operation} request failed: {e!r}", code="RequestError"
                )
            else:
                if status < 300:
                    return body
                error = _parse_error(status, body)

            if attempt >= self.max_retries or not _is_retryable(error):
                raise error

            delay = self._backoff_delay(attempt)
            attempt += 1
            logger.warning(
                f"{operation} failed ({error}), retrying in {delay:.1f}s "
                f"(attempt {attempt}/{self.max_retries})"
            )
            await asyncio.sleep(delay)


def _parse_error(status: int, body: Dict[str, Any]) -> APIError:
    """Map an error response body to an exception."""
    code = str(body.get("__type", "")).split("#")[-1]
    message = body.get("message") or body.get("Message") or f"HTTP {status}"

    if code == NOT_FOUND_CODE:
        return NotFoundError(message)
    return APIError(message, code=code, status=status)


def _is_retryable(error: APIError) -> bool:
    if isinstance(error, NotFoundError):
        return False
    if error.code in RETRYABLE_CODES or error.code == "RequestError":
        return True
    return error.status is not None and error.status >= 500
