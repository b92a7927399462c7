from typing import Callable, Dict, NamedTuple, Optional

import pygame


class KeyResponse(NamedTuple):
    response: str
    timestamp_ms: int


class InputManager:
    """
    Layer between pygame events and the trial engine.

    Idea:
    - only KEYDOWN matters
    - the key name (pygame.key.name) is looked up in the task's key map
    - a mapped key becomes (response, timestamp) for TrialManager.handle_response
    - the timestamp is taken when the event is read, on the same clock the
      scheduler runs on
    """

    def __init__(
        self,
        response_keys: Dict[str, str],
        key_name: Callable[[int], str] = pygame.key.name,
        clock: Callable[[], int] = pygame.time.get_ticks,
    ) -> None:
        self.response_keys = {k.lower(): v for k, v in response_keys.items()}
        self.key_name = key_name
        self.clock = clock

    def map_event(self, event) -> Optional[KeyResponse]:
        if event.type != pygame.KEYDOWN:
            return None
        response = self.response_keys.get(self.key_name(event.key).lower())
        if response is None:
            return None
        return KeyResponse(response, self.clock())

    @staticmethod
    def is_quit(event) -> bool:
        if event.type == pygame.QUIT:
            return True
        return event.type == pygame.KEYDOWN and event.key == pygame.K_ESCAPE

    @staticmethod
    def is_continue(event) -> bool:
        return event.type == pygame.KEYDOWN and event.key in (pygame.K_SPACE, pygame.K_RETURN)
