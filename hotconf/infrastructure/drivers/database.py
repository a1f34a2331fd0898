"""
Database configuration driver.

The whole configuration is one document stored in a database row. The
``loadQuery`` must select a single text column; the optional ``storeQuery``
receives the serialized document as the ``:config`` bind parameter.
"""

import logging
from typing import Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from ...core.exceptions import ConnectorError
from ...core.interfaces.drivers import ChangeHandler, IDriver
from ...core.options.codec import FORMAT_JSON, normalize_format, to_text
from ...core.options.node import Options
from .scheduled import PollingConnector

logger = logging.getLogger(__name__)


class DatabaseDriverOptions(BaseModel):
    """Connection properties of the database driver."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    url: str
    load_query: str
    store_query: Optional[str] = None
    cron_spec: Optional[str] = None
    format: str = FORMAT_JSON


class DatabaseConnector(PollingConnector):
    """Connector reading the configuration document through SQLAlchemy."""

    def __init__(self, options: DatabaseDriverOptions, engine: Engine,
                 on_change: Optional[ChangeHandler] = None):
        super().__init__(normalize_format(options.format), on_change, options.cron_spec)
        self._options = options
        self._engine = engine

    def _fetch(self) -> str:
        try:
            with self._engine.connect() as conn:
                value = conn.execute(text(self._options.load_query)).scalar()
        except SQLAlchemyError as e:
            raise ConnectorError(f"Load query failed: {e}") from e

        if value is None:
            raise ConnectorError("Load query returned no configuration")
        if isinstance(value, (bytes, bytearray, memoryview)):
            return bytes(value).decode("utf-8")
        return str(value)

    def store(self, options: Options) -> None:
        if options is None:
            raise ConnectorError("DatabaseConnector: config parameter is None")
        if not self._options.store_query:
            raise ConnectorError("No store query configured")

        document = to_text(options, self._format)
        try:
            with self._engine.begin() as conn:
                conn.execute(text(self._options.store_query), {"config": document})
        except SQLAlchemyError as e:
            raise ConnectorError(f"Store query failed: {e}") from e

    def _release(self) -> None:
        self._engine.dispose()


class DatabaseDriver(IDriver):
    """
    Driver for configuration stored in a relational database.

    Properties: ``url`` (SQLAlchemy database URL), ``loadQuery``,
    ``storeQuery``, ``cronSpec`` and ``format``.
    """

    def connect(self, on_change: Optional[ChangeHandler], properties: Options) -> DatabaseConnector:
        options = properties.as_struct(DatabaseDriverOptions)

        try:
            engine = create_engine(options.url)
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except (SQLAlchemyError, ValueError) as e:
            raise ConnectorError(f"Cannot connect to database: {e}") from e

        connector = DatabaseConnector(options, engine, on_change)
        try:
            connector.start_polling()
        except Exception:
            connector.close()
            raise
        return connector
