from .adapters import ADAPTERS, normalize
from .avatar import AvatarResolver, fetch_json
from .credentials import CredentialService
from .reconciler import OAuthReconciler, ReconcileResult, ReconcileState
from .resolver import AccountFieldResolver
from .types import CredentialPayload, NormalizedIdentity, Provider

__all__ = [
    "ADAPTERS",
    "normalize",
    "AvatarResolver",
    "fetch_json",
    "CredentialService",
    "OAuthReconciler",
    "ReconcileResult",
    "ReconcileState",
    "AccountFieldResolver",
    "CredentialPayload",
    "NormalizedIdentity",
    "Provider",
]
