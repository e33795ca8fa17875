import json
import logging
from typing import Optional

import redis

from arena_core.container import StateContainer
from arena_core.defaults import default_state
from arena_core.models import AppState

logger = logging.getLogger(__name__)

THEMES = ('light', 'dark', 'orange', 'neon', 'aggressive', 'tech')
DEFAULT_THEME = 'dark'


class StateStore:
    """
    Mirrors the AppState aggregate into redis as a single JSON document.
    The selected theme lives under its own key.
    """

    def __init__(self, redis_client: redis.Redis, state_key: str = 'arena:state', theme_key: str = 'arena:theme'):
        self.redis = redis_client
        self.state_key = state_key
        self.theme_key = theme_key

    def load(self) -> AppState:
        """Stored state, or the factory dataset when nothing usable is stored."""
        try:
            data = self.redis.get(self.state_key)
        except redis.RedisError as e:
            logger.error(f"Could not read state from redis: {e}")
            return default_state()

        if not data:
            logger.info("No stored state found, starting from factory defaults")
            return default_state()

        try:
            return AppState.from_dict(json.loads(data))
        except (ValueError, TypeError, AttributeError, OverflowError) as e:
            logger.warning(f"Stored state is unreadable ({e}), starting from factory defaults")
            return default_state()

    def save(self, state: AppState) -> bool:
        try:
            self.redis.set(self.state_key, json.dumps(state.to_dict()))
            return True
        except redis.RedisError as e:
            logger.error(f"Failed to persist state: {e}")
            return False

    def load_theme(self) -> str:
        theme = self.redis.get(self.theme_key)
        if isinstance(theme, bytes):
            theme = theme.decode()
        return theme if theme in THEMES else DEFAULT_THEME

    def save_theme(self, theme: str):
        if theme not in THEMES:
            raise ValueError(f"Unknown theme '{theme}'")
        self.redis.set(self.theme_key, theme)

    def attach(self, container: StateContainer):
        """Persist after every committed transition."""
        return container.subscribe(self.save)

    def open_container(self, clock=None) -> StateContainer:
        state = self.load()
        container = StateContainer(state) if clock is None else StateContainer(state, clock=clock)
        self.attach(container)
        return container


def connect(redis_url: str, client: Optional[redis.Redis] = None) -> redis.Redis:
    if client is not None:
        return client
    return redis.from_url(
        redis_url,
        decode_responses=True,
        socket_connect_timeout=5,
        socket_timeout=5
    )
