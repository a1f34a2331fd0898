"""
REST configuration driver.

Fetches the configuration document with an HTTP GET and stores it back
with a POST of the serialized document.
"""

import logging
from datetime import timedelta
from typing import Optional

import httpx
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ...core.exceptions import ConnectorError
from ...core.interfaces.drivers import ChangeHandler, IDriver
from ...core.options.codec import FORMAT_JSON, normalize_format, to_text
from ...core.options.duration import Duration
from ...core.options.node import Options
from .scheduled import PollingConnector

logger = logging.getLogger(__name__)

_CONTENT_TYPES = {
    "json": "application/json",
    "hjson": "application/hjson",
    "yaml": "application/yaml",
}


class RestDriverOptions(BaseModel):
    """Connection properties of the REST driver."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    uri: str
    format: str = FORMAT_JSON
    cron_spec: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    timeout: Duration = timedelta(seconds=10)


class RestConnector(PollingConnector):
    """Connector talking to one HTTP endpoint."""

    def __init__(self, options: RestDriverOptions, client: httpx.Client,
                 on_change: Optional[ChangeHandler] = None):
        super().__init__(normalize_format(options.format), on_change, options.cron_spec)
        self._options = options
        self._client = client

    def _fetch(self) -> str:
        try:
            response = self._client.get(self._options.uri)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ConnectorError(f"GET {self._options.uri} failed: {e}") from e
        return response.text

    def store(self, options: Options) -> None:
        if options is None:
            raise ConnectorError("RestConnector: config parameter is None")

        document = to_text(options, self._format)
        try:
            response = self._client.post(
                self._options.uri,
                content=document.encode("utf-8"),
                headers={"Content-Type": _CONTENT_TYPES[self._format]})
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ConnectorError(f"POST {self._options.uri} failed: {e}") from e

    def _release(self) -> None:
        self._client.close()


class RestDriver(IDriver):
    """
    Driver for configuration served over HTTP.

    Properties: ``uri``, ``format``, ``cronSpec``, ``username``,
    ``password`` and ``timeout``.
    """

    def __init__(self, transport: Optional[httpx.BaseTransport] = None):
        self._transport = transport

    def connect(self, on_change: Optional[ChangeHandler], properties: Options) -> RestConnector:
        options = properties.as_struct(RestDriverOptions)

        auth = None
        if options.username:
            auth = httpx.BasicAuth(options.username, options.password or "")

        client = httpx.Client(
            timeout=options.timeout.total_seconds(),
            auth=auth,
            transport=self._transport)
        connector = RestConnector(options, client, on_change)
        try:
            connector.start_polling()
        except Exception:
            connector.close()
            raise
        return connector
