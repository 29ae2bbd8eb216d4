import random
import uuid
from typing import Optional

ADJECTIVES = ("Anonymous", "Secret", "Hidden", "Mystery", "Shadow")
ANIMALS = ("Fox", "Owl", "Cat", "Wolf", "Bear", "Eagle", "Raven")
MAX_SENDER_NUMBER = 999
LINK_ID_LENGTH = 8


class IdentifierFactory:
    """Generates link IDs, message IDs and anonymous sender names.

    All randomness comes from ``rng``, so a seeded ``random.Random`` makes
    every generated value reproducible.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def _uuid4(self) -> uuid.UUID:
        return uuid.UUID(int=self.rng.getrandbits(128), version=4)

    def link_id(self) -> str:
        return str(self._uuid4())[:LINK_ID_LENGTH]

    def message_id(self) -> str:
        return str(self._uuid4())

    def sender_name(self) -> str:
        number = self.rng.randint(1, MAX_SENDER_NUMBER)
        adjective = self.rng.choice(ADJECTIVES)
        animal = self.rng.choice(ANIMALS)
        return f"{adjective}{animal}{number}"


def share_path(prefix: str, link_id: str) -> str:
    return f"{prefix.rstrip('/')}/{link_id}"


def keys_match(provided: str, stored: str) -> bool:
    # Exact equality, no hashing
    return provided == stored
