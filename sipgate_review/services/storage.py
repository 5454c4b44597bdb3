"""Database storage service for shared year reviews"""
import logging
import random
import uuid
from typing import Dict, Optional, Tuple

from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError

from sipgate_review.models.db import SharedReview
from sipgate_review.models.review import YearReviewSummary
from sipgate_review.normalizer import CONTACT_PLACEHOLDERS

logger = logging.getLogger(__name__)

SHARE_ADJECTIVES = (
    "galactic", "prismatic", "retro", "electric", "mythic",
    "sonic", "cosmic", "midnight", "vintage", "lush",
)
SHARE_ANIMALS = (
    "llama", "penguin", "lynx", "otter", "badger",
    "viper", "sparrow", "orca", "panda", "yak",
)
SHARE_ID_ATTEMPTS = 5


class _AliasPool:
    """Hands out placeholder aliases in order, one per distinct name"""

    def __init__(self):
        self._aliases: Dict[str, str] = {}
        self._next = 0

    def _next_alias(self) -> str:
        size = len(CONTACT_PLACEHOLDERS)
        base = CONTACT_PLACEHOLDERS[self._next % size]
        suffix = f" #{self._next // size + 1}" if self._next >= size else ""
        self._next += 1
        return f"{base}{suffix}"

    def alias_for(self, name: Optional[str]) -> str:
        if not name:
            return self._next_alias()
        if name not in self._aliases:
            self._aliases[name] = self._next_alias()
        return self._aliases[name]


def sanitize_review(summary: YearReviewSummary) -> YearReviewSummary:
    """Copy of the summary with every contact name replaced by an alias"""
    pool = _AliasPool()
    top_contacts = tuple(
        contact.model_copy(update={'name': pool.alias_for(contact.name)})
        for contact in summary.top_contacts
    )
    longest_call = None
    if summary.longest_call is not None:
        longest_call = summary.longest_call.model_copy(
            update={'contact': pool.alias_for(summary.longest_call.contact)}
        )
    return summary.model_copy(update={'top_contacts': top_contacts, 'longest_call': longest_call})


class ShareService:
    """Handles storing and loading shared reviews"""

    def __init__(self, session: Session, rng: Optional[random.Random] = None):
        self.session = session
        self.rng = rng or random.SystemRandom()

    def _candidate_id(self) -> str:
        adjective = self.rng.choice(SHARE_ADJECTIVES)
        animal = self.rng.choice(SHARE_ANIMALS)
        return f"{adjective}-{animal}-{self.rng.randrange(1000):03d}"

    def share_exists(self, share_id: str) -> bool:
        return self.session.get(SharedReview, share_id) is not None

    def generate_share_id(self) -> str:
        """
        Readable share id like "cosmic-otter-042".
        Falls back to a UUID when every attempt collides.
        """
        for _ in range(SHARE_ID_ATTEMPTS):
            candidate = self._candidate_id()
            if not self.share_exists(candidate):
                return candidate
        fallback = str(uuid.uuid4())
        logger.warning(f"Share id collided {SHARE_ID_ATTEMPTS} times; using {fallback}")
        return fallback

    def share_review(self, summary: YearReviewSummary) -> Tuple[str, str]:
        """Store an anonymized copy of the summary. Returns (share_id, share_url)."""
        sanitized = sanitize_review(summary)
        try:
            share_id = self.generate_share_id()
            self.session.add(SharedReview(
                id=share_id,
                year=sanitized.year,
                payload=sanitized.to_json(),
            ))
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error storing shared review for {summary.year}: {e}")
            raise
        logger.info(f"Stored shared review {share_id} for {sanitized.year}")
        return share_id, f"/share/{share_id}"

    def load_share(self, share_id: str) -> Optional[YearReviewSummary]:
        """Load a shared review; None if the id is unknown"""
        try:
            record = self.session.get(SharedReview, share_id)
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Database error loading shared review {share_id}: {e}")
            raise
        if record is None:
            logger.info(f"Shared review {share_id} not found")
            return None
        return YearReviewSummary.model_validate_json(record.payload)
