"""Document sources: JSONL files and MongoDB collections."""

import logging
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

from bson import json_util
from pymongo import MongoClient
from pymongo.errors import OperationFailure

from .errors import InvalidConfiguration

logger = logging.getLogger(__name__)

DEFAULT_SORT = {"_id": -1}
DEFAULT_RESULTS_DATABASE = "docschemaResults"


def parse_jsonl(path: Union[str, Path]) -> Iterator[Dict[str, Any]]:
    """Parse a JSONL file of MongoDB Extended JSON, yielding documents.

    Skips blank lines, invalid JSON and lines that are not objects.
    """
    with open(path, "r", encoding="utf-8") as f:
        for lineno, line in enumerate(f, 1):
            line = line.strip()
            if not line:
                continue
            try:
                data = json_util.loads(line)
            except (ValueError, TypeError):
                logger.warning("%s:%d: skipping invalid JSON", path, lineno)
                continue
            if isinstance(data, dict):
                yield data


def count_jsonl(path: Union[str, Path]) -> int:
    return sum(1 for _ in parse_jsonl(path))


class JsonlSource:
    """Samples a JSONL file in file order.

    Query and sort do not apply to files; only the limit is honoured.
    Index definitions can be supplied as a JSON list of index documents.
    """

    def __init__(
        self,
        path: Union[str, Path],
        indexes_path: Optional[Union[str, Path]] = None,
    ):
        self.path = Path(path)
        if not self.path.exists():
            raise FileNotFoundError(f"File not found: {self.path}")
        self.indexes_path = Path(indexes_path) if indexes_path else None

    def sample(
        self,
        query: Optional[Dict[str, Any]] = None,
        sort: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
    ) -> Tuple[Iterable[Dict[str, Any]], int]:
        if query:
            logger.warning("Ignoring query for %s: files are read in full", self.path.name)
        if sort and dict(sort) != DEFAULT_SORT:
            logger.warning("Ignoring sort for %s: files are read in order", self.path.name)
        count = count_jsonl(self.path)
        if limit:
            count = min(count, limit)
        return _take(parse_jsonl(self.path), count), count

    def raw_indexes(self) -> List[Dict[str, Any]]:
        if self.indexes_path is None:
            return []
        data = json_util.loads(self.indexes_path.read_text(encoding="utf-8"))
        if not isinstance(data, list):
            raise InvalidConfiguration(f"{self.indexes_path} must contain a list of indexes")
        return data


def _take(documents: Iterable[Dict[str, Any]], count: int) -> Iterator[Dict[str, Any]]:
    for i, document in enumerate(documents):
        if i >= count:
            break
        yield document


class MongoSource:
    """Samples a pymongo collection with query, sort and limit."""

    def __init__(self, collection):
        self.collection = collection

    def sample(
        self,
        query: Optional[Dict[str, Any]] = None,
        sort: Optional[Dict[str, Any]] = None,
        limit: Optional[int] = None,
    ):
        query = query or {}
        count = self.collection.count_documents(query)
        if limit:
            count = min(count, limit)
        cursor = self.collection.find(query)
        if sort:
            cursor = cursor.sort(list(sort.items()))
        if limit:
            cursor = cursor.limit(limit)
        return cursor, count

    def raw_indexes(self) -> List[Dict[str, Any]]:
        return [dict(index) for index in self.collection.list_indexes()]


def check_collection(client, database: Optional[str], collection: Optional[str]) -> None:
    """Fail early, naming the alternatives, when the target does not exist."""
    if not database:
        raise InvalidConfiguration("No database specified")
    try:
        names = client.list_database_names()
    except OperationFailure as e:
        # users without listDatabases can still read their own database
        logger.warning("Cannot list databases, skipping database check: %s", e)
        names = None
    if names is not None:
        populated = [name for name in names if client[name].list_collection_names()]
        if database not in populated:
            reason = "is empty" if database in names else "does not exist"
            raise InvalidConfiguration(
                f"The database specified ({database}) {reason}.\n"
                f"Possible database options are: {', '.join(populated)}."
            )

    collections = client[database].list_collection_names()
    if not collection:
        raise InvalidConfiguration(
            "You have to supply a collection.\n"
            f"Possible collection options for database specified: {', '.join(collections)}."
        )
    if collection not in collections or client[database][collection].estimated_document_count() == 0:
        raise InvalidConfiguration(
            f"The collection specified ({collection}) in the database specified "
            f"({database}) does not exist or is empty.\n"
            f"Possible collection options for database specified: {', '.join(collections)}."
        )


def _remote_uri(target: str) -> str:
    if "://" in target:
        return target
    return "mongodb://" + target


@contextmanager
def results_database(client, config):
    """Yield the database that persisted results go to.

    A results_database containing ``/`` is a separate server, either a
    full connection string or ``host:port/db``; otherwise it names a
    database on ``client``. Any extra client opened here is closed on exit.
    """
    credentials = {}
    if config.results_user is not None and config.results_pass is not None:
        credentials = {"username": config.results_user, "password": config.results_pass}

    if "/" in config.results_database:
        other = MongoClient(_remote_uri(config.results_database), **credentials)
        db = other.get_default_database(DEFAULT_RESULTS_DATABASE)
    elif credentials:
        other = MongoClient(config.uri, authSource=config.results_database, **credentials)
        db = other[config.results_database]
    else:
        other = None
        db = client[config.results_database]

    try:
        yield db
    finally:
        if other is not None:
            other.close()


def persist_results(db, collection_name: str, rows: List[Dict[str, Any]]) -> int:
    """Replace ``collection_name`` in ``db`` with the given report rows."""
    logger.info("replacing results collection: %s", collection_name)
    db[collection_name].drop()
    if rows:
        db[collection_name].insert_many([dict(row) for row in rows])
    return len(rows)
