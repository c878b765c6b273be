"""FastAPI dependencies."""

from functools import lru_cache

from examguard.config.settings import Settings, get_settings
from examguard.infrastructure.llm.executor import ModelExecutor
from examguard.infrastructure.llm.factory import get_shared_client
from examguard.services.session.store import ResultHistory, SessionStore
from examguard.services.verification.verifier import FaceVerifier


@lru_cache
def get_settings_dependency() -> Settings:
    """Get settings as a FastAPI dependency."""
    return get_settings()


@lru_cache
def get_executor() -> ModelExecutor:
    settings = get_settings_dependency()
    return ModelExecutor(settings, get_shared_client(settings))


@lru_cache
def get_verifier() -> FaceVerifier:
    return FaceVerifier(get_settings_dependency(), get_executor())


@lru_cache
def get_session_store() -> SessionStore:
    return SessionStore(ttl_seconds=get_settings_dependency().session_ttl_seconds)


@lru_cache
def get_result_history() -> ResultHistory:
    return ResultHistory()
