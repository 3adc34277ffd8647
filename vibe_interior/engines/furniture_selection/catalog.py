"""
Product catalog access for the Furniture Selection Engine

Two query shapes are supported, both restricted to approved products:
- category equality (``in`` over a list of values)
- keyword membership (``array_contains_any`` over a list of keywords)
"""
import json
import logging
from typing import Any, Dict, Iterable, List, Optional

from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter
from pydantic import ValidationError

from vibe_interior.core.config import settings

from .schemas import Product

logger = logging.getLogger(__name__)

# Firestore caps disjunctive filters ("in", "array-contains-any") at 30 values
FIRESTORE_DISJUNCTION_LIMIT = 30


class CatalogError(Exception):
    """Raised when a catalog query fails"""


def _unique(values: Iterable[str]) -> List[str]:
    seen = set()
    result = []
    for value in values:
        if value and value not in seen:
            seen.add(value)
            result.append(value)
    return result


def _chunks(values: List[str], size: int) -> Iterable[List[str]]:
    for i in range(0, len(values), size):
        yield values[i : i + size]


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _as_text(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _to_product(doc_id: str, data: Dict[str, Any]) -> Optional[Product]:
    """Convert one document, skipping it when its fields cannot be coerced"""
    try:
        return Product.from_document(doc_id, data)
    except (ValidationError, TypeError) as e:
        logger.warning(f"Skipping malformed catalog document '{doc_id}': {e}")
        return None


class CatalogClient:
    """Interface for catalog backends"""

    async def find_by_categories(self, categories: List[str], limit: int) -> List[Product]:
        """Approved products whose category equals one of the given values"""
        raise NotImplementedError

    async def find_by_keywords(self, keywords: List[str], limit: int) -> List[Product]:
        """Approved products whose keyword list contains one of the given keywords"""
        raise NotImplementedError


class FirestoreCatalog(CatalogClient):
    """Catalog backed by a Firestore collection"""

    def __init__(
        self,
        client: Optional[firestore.AsyncClient] = None,
        collection: str = settings.catalog_collection,
        status_field: str = settings.catalog_status_field,
        approved_status: str = settings.catalog_approved_status,
        keyword_field: str = settings.catalog_keyword_field,
    ):
        self._client = client
        self.collection = collection
        self.status_field = status_field
        self.approved_status = approved_status
        self.keyword_field = keyword_field

    @property
    def client(self) -> firestore.AsyncClient:
        # Lazy: constructing the client requires credentials
        if self._client is None:
            self._client = firestore.AsyncClient(project=settings.firestore_project)
            logger.info(f"Firestore client initialized for collection '{self.collection}'")
        return self._client

    async def find_by_categories(self, categories: List[str], limit: int) -> List[Product]:
        return await self._query("category", "in", _unique(categories), limit)

    async def find_by_keywords(self, keywords: List[str], limit: int) -> List[Product]:
        return await self._query(self.keyword_field, "array_contains_any", _unique(keywords), limit)

    async def _query(self, field_path: str, op: str, values: List[str], limit: int) -> List[Product]:
        if not values or limit <= 0:
            return []

        products: List[Product] = []
        seen_ids = set()
        try:
            for chunk in _chunks(values, FIRESTORE_DISJUNCTION_LIMIT):
                query = (
                    self.client.collection(self.collection)
                    .where(filter=FieldFilter(self.status_field, "==", self.approved_status))
                    .where(filter=FieldFilter(field_path, op, chunk))
                    .limit(limit - len(products))
                )
                async for snapshot in query.stream():
                    if snapshot.id in seen_ids:
                        continue
                    seen_ids.add(snapshot.id)
                    product = _to_product(snapshot.id, snapshot.to_dict() or {})
                    if product is not None:
                        products.append(product)
                if len(products) >= limit:
                    break
        except Exception as e:
            raise CatalogError(f"Firestore query on '{field_path}' {op} {values[:5]} failed: {e}") from e

        return products


class InMemoryCatalog(CatalogClient):
    """
    Catalog held in memory.

    Used for tests and local development; mirrors the Firestore query
    semantics (exact equality, approved status only, document order).
    """

    def __init__(
        self,
        documents: Iterable[Dict[str, Any]],
        status_field: str = settings.catalog_status_field,
        approved_status: str = settings.catalog_approved_status,
        keyword_field: str = settings.catalog_keyword_field,
    ):
        self.documents = [doc for doc in documents if doc.get("id")]
        self.status_field = status_field
        self.approved_status = approved_status
        self.keyword_field = keyword_field

    @classmethod
    def from_file(cls, path: str) -> "InMemoryCatalog":
        """Load documents from a JSON file holding a list of objects with an "id" field"""
        try:
            with open(path, "r", encoding="utf-8") as f:
                documents = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise CatalogError(f"Failed to load catalog fixture {path}: {e}") from e

        if not isinstance(documents, list):
            raise CatalogError(f"Catalog fixture {path} must contain a JSON list")

        logger.info(f"Loaded {len(documents)} catalog documents from {path}")
        return cls(documents)

    def _approved(self) -> Iterable[Dict[str, Any]]:
        return (doc for doc in self.documents if doc.get(self.status_field) == self.approved_status)

    def _convert(self, documents: Iterable[Dict[str, Any]], limit: int) -> List[Product]:
        products: List[Product] = []
        for doc in documents:
            if len(products) >= limit:
                break
            product = _to_product(doc["id"], doc)
            if product is not None:
                products.append(product)
        return products

    async def find_by_categories(self, categories: List[str], limit: int) -> List[Product]:
        wanted = set(_unique(categories))
        if not wanted:
            return []
        return self._convert((doc for doc in self._approved() if _as_text(doc.get("category")) in wanted), limit)

    async def find_by_keywords(self, keywords: List[str], limit: int) -> List[Product]:
        wanted = set(_unique(keywords))
        if not wanted:
            return []
        return self._convert(
            (doc for doc in self._approved() if wanted.intersection(_as_list(doc.get(self.keyword_field)))), limit
        )


def build_catalog() -> CatalogClient:
    """Create the catalog backend selected in settings"""
    if settings.catalog_backend == "memory":
        if not settings.catalog_fixture_path:
            logger.warning("CATALOG_BACKEND=memory without CATALOG_FIXTURE_PATH - catalog is empty")
            return InMemoryCatalog([])
        return InMemoryCatalog.from_file(settings.catalog_fixture_path)

    return FirestoreCatalog()
