from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from eyetracktask.config import PROJECT_ROOT, SETTINGS, Settings
from eyetracktask.infra.db import SessionLocal
from eyetracktask.infra.images import LocalImageStorage
from eyetracktask.infra.remote_repository import (
    RemoteImageStorage,
    RemoteProfileRepository,
    RemoteProjectRepository,
)
from eyetracktask.infra.repository import LocalProfileRepository, LocalProjectRepository
from eyetracktask.infra.session_store import SessionStore
from eyetracktask.infra.supabase import SupabaseClient

from .auth_service import AuthService
from .media_service import MediaService
from .profile_service import ProfileService


@dataclass(frozen=True)
class Backend:
    mode: str
    project_repo: object
    profiles: ProfileService
    media: MediaService
    auth: Optional[AuthService] = None

    @property
    def is_remote(self) -> bool:
        return self.mode == "remote"


def build_remote_backend(settings: Settings = SETTINGS, http=None) -> Backend:
    client = SupabaseClient(
        settings.supabase_url,
        settings.supabase_anon_key,
        SessionStore(PROJECT_ROOT / settings.session_file),
        timeout=settings.http_timeout,
        http=http,
    )
    profile_repo = RemoteProfileRepository(client)
    media = MediaService(RemoteImageStorage(client), lambda: profile_repo.user_id, settings)
    return Backend(
        mode="remote",
        project_repo=RemoteProjectRepository(client),
        profiles=ProfileService(profile_repo, media),
        media=media,
        auth=AuthService(client, settings),
    )


def build_local_backend(settings: Settings = SETTINGS, session_factory=None) -> Backend:
    factory = session_factory or SessionLocal
    profile_repo = LocalProfileRepository(factory)
    media = MediaService(LocalImageStorage(), lambda: profile_repo.user_id, settings)
    return Backend(
        mode="local",
        project_repo=LocalProjectRepository(factory),
        profiles=ProfileService(profile_repo, media),
        media=media,
    )


def build_backend(settings: Settings = SETTINGS) -> Backend:
    if settings.remote_enabled:
        return build_remote_backend(settings)
    return build_local_backend(settings)
