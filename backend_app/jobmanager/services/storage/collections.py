"""
Collections known to the data layer.

Each collection maps to the versioned key used by the local JSON store
(the keys the browser client kept in localStorage), the document ``type``
stamped on Cosmos documents, and the envelope names the REST API uses.
"""
from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class CollectionSpec:
    name: str
    storage_key: str
    doc_type: str
    singular: str
    plural: str


def _spec(name: str, storage_key: str, doc_type: str, singular: str) -> CollectionSpec:
    return CollectionSpec(name, storage_key, doc_type, singular, name)


COLLECTIONS: Dict[str, CollectionSpec] = {
    "users": _spec("users", "jobmanager_users_v3", "user", "user"),
    "businesses": _spec("businesses", "jobmanager_businesses_v1", "business", "business"),
    "jobs": _spec("jobs", "jobmanager_jobs_v1", "job", "job"),
    "customers": _spec("customers", "jobmanager_customers_v1", "customer", "customer"),
    "notifications": _spec("notifications", "jobmanager_notifications_v1", "notification", "notification"),
    "products": _spec("products", "jobmanager_products_v1", "product", "product"),
    "module_permissions": _spec(
        "module_permissions", "module_permissions_v1", "module_permission", "permission"
    ),
    "ar_models": _spec("ar_models", "ar_models_v1", "ar_model", "model"),
    "emails": _spec("emails", "demo_emails", "email", "email"),
    "activity_logs": _spec("activity_logs", "jobmanager_activity_v1", "activity_log", "activity"),
    "revoked_tokens": _spec("revoked_tokens", "jobmanager_revoked_tokens_v1", "revoked_token", "token"),
}


def get_collection(name: str) -> CollectionSpec:
    """Look up a collection, raising KeyError for unknown names."""
    try:
        return COLLECTIONS[name]
    except KeyError:
        raise KeyError(f"Unknown collection: {name}") from None
